import enum
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class Role(str, enum.Enum):
    HEADTEACHER = "headteacher"
    TEACHER = "teacher"
    STUDENT = "student"


class Permission(str, enum.Enum):
    ADD_USERS = "add_users"
    VIEW_ALL_USERS = "view_all_users"
    MANAGE_PERMISSIONS = "manage_permissions"
    SET_HOMEWORK = "set_homework"
    VIEW_USER_CREDENTIALS = "view_user_credentials"
    SET_SANCTIONS = "set_sanctions"
    SET_REWARDS = "set_rewards"
    MAKE_ANNOUNCEMENTS = "make_announcements"
    DELETE_HOMEWORK = "delete_homework"


class ActivityType(str, enum.Enum):
    REWARD = "reward"
    SANCTION = "sanction"


class AnnouncementTarget(str, enum.Enum):
    ALL = "all"
    TEACHERS = "teachers"
    STUDENTS = "students"
    YEAR = "year"
    CLASS = "class"


class Document(Base):
    __tablename__ = "school_documents"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
