import logging

from .exceptions import InvalidCredentials
from .records import SessionUser
from .security import verify_password
from .store import SESSION_KEY, Store, parse_document
from .users import UserService

logger = logging.getLogger(__name__)


class AuthSession:
    """The single dashboard session, persisted under ``currentUser`` with no expiry."""

    def __init__(self, store: Store):
        self.store = store
        self.users = UserService(store)

    def login(self, username: str, password: str) -> SessionUser:
        wanted = (username or "").strip().lower()
        match = next((u for u in self.users.stored_users() if u.username.lower() == wanted), None)
        if match is None or not verify_password(password or "", match.password_hash):
            logger.warning(f"Login failed for '{username}'")
            raise InvalidCredentials()

        session_user = match.without_password()
        self.store.set(SESSION_KEY, session_user.to_document())
        logger.info(f"Login success for '{match.username}' ({match.id})")
        return session_user

    def logout(self) -> None:
        session_user = self.current_session()
        self.store.delete(SESSION_KEY)
        if session_user is not None:
            logger.info(f"Logout for '{session_user.username}' ({session_user.id})")

    def current_session(self) -> SessionUser | None:
        document = self.store.get(SESSION_KEY)
        if document is None:
            return None
        return parse_document(SESSION_KEY, SessionUser, document)
