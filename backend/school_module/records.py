"""
Shapes of the JSON documents kept in the store.

Field names are snake_case in Python and camelCase in the stored JSON
(``fullName``, ``yearGroup``, ``studentId`` ...). ``class`` is spelled
``class_name`` on the Python side.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import ActivityType, AnnouncementTarget, Permission, Role


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=False)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SessionUser(Record):
    """A user without credentials. This is what the ``currentUser`` session holds."""

    id: str
    username: str
    full_name: str
    role: Role
    permissions: list[Permission] = Field(default_factory=list)
    year_group: str | None = None
    class_name: str | None = Field(default=None, alias="class")


class StoredUser(SessionUser):
    password_hash: str

    def without_password(self) -> SessionUser:
        return SessionUser.model_validate(self.model_dump(exclude={"password_hash"}))


class Activity(Record):
    activity_id: str
    student_id: str
    type: ActivityType
    description: str
    points: int | None = None
    sanction_type: str | None = None
    teacher_id: str
    teacher_name: str
    date: str


class Announcement(Record):
    id: str
    title: str
    content: str
    date: str
    author: str
    author_id: str
    target: AnnouncementTarget = AnnouncementTarget.ALL
    target_specific: str | None = None


class Homework(Record):
    id: str
    title: str
    description: str = ""
    subject: str
    class_name: str | None = Field(default=None, alias="class")
    due_date: str
    attachments: list[str] = Field(default_factory=list)


class HomeworkCompletion(Record):
    student_id: str
    homework_id: str
    completed: bool = True
