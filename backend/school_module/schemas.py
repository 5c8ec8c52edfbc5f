from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import AnnouncementTarget, Permission, Role


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(RequestModel):
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str


class UserCreateRequest(RequestModel):
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)
    full_name: str = Field(min_length=1, max_length=255)
    role: Role = Role.STUDENT
    permissions: list[Permission] = Field(default_factory=list)
    year_group: str | None = None
    class_name: str | None = Field(default=None, alias="class")


class UserUpdateRequest(RequestModel):
    username: str | None = Field(default=None, min_length=1, max_length=255)
    password: str | None = None
    full_name: str | None = Field(default=None, max_length=255)
    role: Role | None = None
    permissions: list[Permission] | None = None
    year_group: str | None = None
    class_name: str | None = Field(default=None, alias="class")


class PasswordResetRequest(RequestModel):
    password: str = Field(min_length=1)


class CredentialOut(RequestModel):
    id: str
    username: str
    full_name: str
    role: Role


class ActivityCreateRequest(RequestModel):
    description: str = Field(min_length=1)
    points: int | None = Field(default=1, ge=1)
    sanction_type: str | None = None


class AnnouncementRequest(RequestModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    target: AnnouncementTarget = AnnouncementTarget.ALL
    target_specific: str | None = None


class HomeworkCreateRequest(RequestModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    subject: str = Field(min_length=1, max_length=255)
    class_name: str | None = Field(default=None, alias="class")
    due_date: str = Field(min_length=10, max_length=10)
    attachments: list[str] = Field(default_factory=list)
