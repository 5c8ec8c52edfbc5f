import logging
from collections.abc import Callable

from fastapi import Depends

from .auth import AuthSession
from .database import SessionLocal
from .exceptions import NotAuthenticated, PermissionDenied
from .models import Permission, Role
from .permissions import has_permission
from .records import SessionUser
from .store import SqlAlchemyStore, Store

logger = logging.getLogger(__name__)


def get_store() -> Store:
    return SqlAlchemyStore(SessionLocal)


def get_current_user(store: Store = Depends(get_store)) -> SessionUser:
    user = AuthSession(store).current_session()
    if user is None:
        raise NotAuthenticated()
    return user


def require_permission(*permissions: Permission) -> Callable:
    def dependency(current_user: SessionUser = Depends(get_current_user)) -> SessionUser:
        missing = [p.value for p in permissions if not has_permission(current_user, p)]
        if missing:
            logger.warning(f"Unauthorized access by {current_user.username}: missing {', '.join(missing)}")
            raise PermissionDenied(f"Permission denied: {', '.join(missing)} required.")
        return current_user

    return dependency


def require_roles(*allowed_roles: Role) -> Callable:
    def dependency(current_user: SessionUser = Depends(get_current_user)) -> SessionUser:
        if current_user.role not in allowed_roles:
            raise PermissionDenied("Insufficient role privileges")
        return current_user

    return dependency
