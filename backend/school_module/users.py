import logging
import uuid
from typing import Any

from .exceptions import (
    DuplicateUsernameError,
    NotFoundError,
    PermissionDenied,
    ProtectedAccountError,
    ValidationError,
)
from .models import Permission, Role
from .permissions import has_permission, permissions_for_role
from .records import SessionUser, StoredUser
from .security import hash_password
from .seed import HEADTEACHER_ID, default_users
from .store import SESSION_KEY, USERS_KEY, Store, load_records

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class UserService:
    def __init__(self, store: Store):
        self.store = store

    def _load(self) -> list[StoredUser]:
        return load_records(self.store, USERS_KEY, StoredUser, default_users)

    def _save(self, users: list[StoredUser]) -> None:
        self.store.set(USERS_KEY, [u.to_document() for u in users])

    def _username_taken(self, users: list[StoredUser], username: str, ignore_id: str | None = None) -> bool:
        wanted = username.lower()
        return any(u.username.lower() == wanted and u.id != ignore_id for u in users)

    def stored_users(self) -> list[StoredUser]:
        return self._load()

    def list_users(self, role: Role | None = None, search: str | None = None) -> list[SessionUser]:
        users = [u.without_password() for u in self._load()]
        if role is not None:
            users = [u for u in users if u.role == role]
        if search:
            needle = search.lower()
            users = [u for u in users if needle in u.full_name.lower() or needle in u.username.lower()]
        return users

    def get_user(self, user_id: str) -> SessionUser:
        for user in self._load():
            if user.id == user_id:
                return user.without_password()
        raise NotFoundError(f"User '{user_id}' not found")

    def create_user(
        self,
        *,
        username: str,
        password: str,
        full_name: str,
        role: Role,
        permissions: list[Permission] | None = None,
        year_group: str | None = None,
        class_name: str | None = None,
    ) -> SessionUser:
        username = username.strip()
        full_name = full_name.strip()
        if not username or not password or not full_name:
            raise ValidationError("Please fill in all required fields")

        users = self._load()
        if self._username_taken(users, username):
            raise DuplicateUsernameError(username)

        is_student = role == Role.STUDENT
        user = StoredUser(
            id=uuid.uuid4().hex,
            username=username,
            full_name=full_name,
            role=role,
            permissions=permissions_for_role(role, permissions),
            year_group=_clean(year_group) if is_student else None,
            class_name=_clean(class_name) if is_student else None,
            password_hash=hash_password(password),
        )
        self._save(users + [user])
        logger.info(f"Created {role.value} account '{username}' ({user.id})")
        return user.without_password()

    def update_user(self, user_id: str, changes: dict[str, Any], actor: SessionUser) -> SessionUser:
        """Apply a partial update. ``changes`` uses snake_case field names; absent keys are left alone."""
        users = self._load()
        index = next((i for i, u in enumerate(users) if u.id == user_id), None)
        if index is None:
            raise NotFoundError(f"User '{user_id}' not found")
        current = users[index]

        role = changes.get("role") or current.role
        requested = changes.get("permissions")

        if user_id == HEADTEACHER_ID:
            if role != current.role:
                raise ProtectedAccountError("The main headteacher's role cannot be changed")
            if requested is not None and set(requested) != set(current.permissions):
                raise ProtectedAccountError("The main headteacher's permissions cannot be changed")

        permissions = permissions_for_role(role, requested if requested is not None else current.permissions)
        if set(permissions) != set(current.permissions) and not has_permission(
            actor, Permission.MANAGE_PERMISSIONS
        ):
            raise PermissionDenied("Permission denied: manage_permissions required.")

        full_name = current.full_name
        if "full_name" in changes:
            full_name = (changes["full_name"] or "").strip()
            if not full_name:
                raise ValidationError("Please fill in all required fields")

        username = current.username
        if "username" in changes:
            username = (changes["username"] or "").strip()
            if not username:
                raise ValidationError("Please fill in all required fields")
            if self._username_taken(users, username, ignore_id=user_id):
                raise DuplicateUsernameError(username)

        is_student = role == Role.STUDENT
        year_group = _clean(changes["year_group"]) if "year_group" in changes else current.year_group
        class_name = _clean(changes["class_name"]) if "class_name" in changes else current.class_name

        password_hash = current.password_hash
        if changes.get("password"):
            password_hash = hash_password(changes["password"])

        updated = StoredUser(
            id=current.id,
            username=username,
            full_name=full_name,
            role=role,
            permissions=permissions,
            year_group=year_group if is_student else None,
            class_name=class_name if is_student else None,
            password_hash=password_hash,
        )
        users[index] = updated
        self._save(users)
        self._refresh_session(updated)
        logger.info(f"Updated account '{updated.username}' ({user_id}) by {actor.username}")
        return updated.without_password()

    def _refresh_session(self, user: StoredUser) -> None:
        session = self.store.get(SESSION_KEY)
        if session and session.get("id") == user.id:
            self.store.set(SESSION_KEY, user.without_password().to_document())

    def reset_password(self, user_id: str, password: str) -> None:
        if not password:
            raise ValidationError("Password is required")
        users = self._load()
        for user in users:
            if user.id == user_id:
                user.password_hash = hash_password(password)
                self._save(users)
                logger.info(f"Password reset for '{user.username}' ({user_id})")
                return
        raise NotFoundError(f"User '{user_id}' not found")

    def delete_user(self, user_id: str, actor: SessionUser) -> None:
        if user_id == HEADTEACHER_ID:
            raise ProtectedAccountError("The main headteacher account cannot be deleted")
        if user_id == actor.id:
            raise ValidationError("You cannot delete your own account")

        users = self._load()
        remaining = [u for u in users if u.id != user_id]
        if len(remaining) == len(users):
            raise NotFoundError(f"User '{user_id}' not found")
        self._save(remaining)
        logger.info(f"Deleted account {user_id} by {actor.username}")

    def list_credentials(self) -> list[dict[str, str]]:
        return [
            {"id": u.id, "username": u.username, "fullName": u.full_name, "role": u.role.value}
            for u in self._load()
        ]

    def students(self) -> list[SessionUser]:
        return self.list_users(role=Role.STUDENT)
