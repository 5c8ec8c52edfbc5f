"""
Permission checks and role principals.

A headteacher always carries every permission (the user service fills the
list in on create and update), so ``has_permission`` is plain membership and
no call site needs a role bypass. Behaviour that genuinely differs by role
dispatches on the principal variant returned by ``principal_for``.
"""

from dataclasses import dataclass

from .models import Permission, Role
from .records import SessionUser

ALL_PERMISSIONS: tuple[Permission, ...] = tuple(Permission)


def has_permission(user: SessionUser | None, permission: Permission) -> bool:
    if user is None:
        return False
    return permission in user.permissions


def permissions_for_role(role: Role, requested: list[Permission] | None) -> list[Permission]:
    if role == Role.HEADTEACHER:
        return list(ALL_PERMISSIONS)
    if role == Role.STUDENT:
        return []
    # Keep declaration order and drop duplicates.
    wanted = set(requested or [])
    return [p for p in ALL_PERMISSIONS if p in wanted]


@dataclass(frozen=True)
class Headteacher:
    user: SessionUser


@dataclass(frozen=True)
class Teacher:
    user: SessionUser


@dataclass(frozen=True)
class Student:
    user: SessionUser
    year_group: str | None
    class_name: str | None


Principal = Headteacher | Teacher | Student


def principal_for(user: SessionUser) -> Principal:
    if user.role == Role.HEADTEACHER:
        return Headteacher(user)
    if user.role == Role.TEACHER:
        return Teacher(user)
    if user.role == Role.STUDENT:
        return Student(user, user.year_group, user.class_name)
    raise ValueError(f"Unknown role: {user.role}")
