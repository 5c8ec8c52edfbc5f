from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from .activities import ActivityFilter, ActivityLedger, aggregate, export_csv
from .announcements import AnnouncementService
from .auth import AuthSession
from .config import settings
from .dashboard import build_dashboard
from .exceptions import PermissionDenied
from .homework import HomeworkService
from .middleware import get_current_user, get_store, require_permission, require_roles
from .models import ActivityType, Permission, Role
from .records import SessionUser
from .schemas import (
    ActivityCreateRequest,
    AnnouncementRequest,
    CredentialOut,
    HomeworkCreateRequest,
    LoginRequest,
    MessageResponse,
    PasswordResetRequest,
    UserCreateRequest,
    UserUpdateRequest,
)
from .store import Store
from .students import search_students, student_profile
from .users import UserService

router = APIRouter(prefix=settings.api_prefix, tags=["School Dashboard"])


def _document(model) -> dict[str, Any]:
    return model.to_document()


# --- Auth ---

@router.post("/auth/login")
def login(payload: LoginRequest, store: Store = Depends(get_store)):
    user = AuthSession(store).login(payload.username, payload.password)
    return _document(user)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(store: Store = Depends(get_store)):
    AuthSession(store).logout()
    return MessageResponse(message="Logged out successfully")


@router.get("/auth/session")
def session(current_user: SessionUser = Depends(get_current_user)):
    return _document(current_user)


# --- Users ---

@router.get("/users")
def list_users(
    role: Role | None = None,
    search: str | None = None,
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_permission(Permission.VIEW_ALL_USERS)),
):
    return [_document(u) for u in UserService(store).list_users(role=role, search=search)]


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreateRequest,
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_permission(Permission.ADD_USERS)),
):
    user = UserService(store).create_user(
        username=payload.username,
        password=payload.password,
        full_name=payload.full_name,
        role=payload.role,
        permissions=payload.permissions,
        year_group=payload.year_group,
        class_name=payload.class_name,
    )
    return _document(user)


@router.get("/users/credentials", response_model=list[CredentialOut])
def list_credentials(
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_permission(Permission.VIEW_USER_CREDENTIALS)),
):
    return UserService(store).list_credentials()


@router.get("/users/{user_id}")
def get_user(
    user_id: str,
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_permission(Permission.VIEW_ALL_USERS)),
):
    return _document(UserService(store).get_user(user_id))


@router.patch("/users/{user_id}")
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(require_permission(Permission.ADD_USERS)),
):
    changes = payload.model_dump(exclude_unset=True)
    return _document(UserService(store).update_user(user_id, changes, actor=current_user))


@router.put("/users/{user_id}/password", response_model=MessageResponse)
def reset_password(
    user_id: str,
    payload: PasswordResetRequest,
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_permission(Permission.ADD_USERS)),
):
    UserService(store).reset_password(user_id, payload.password)
    return MessageResponse(message="Password updated")


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(require_permission(Permission.ADD_USERS)),
):
    UserService(store).delete_user(user_id, actor=current_user)
    return MessageResponse(message="User deleted successfully")


# --- Students & activity ledger ---

@router.get("/students")
def find_students(
    name: str | None = None,
    year_group: str | None = Query(default=None, alias="yearGroup"),
    class_name: str | None = Query(default=None, alias="class"),
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_roles(Role.HEADTEACHER, Role.TEACHER)),
):
    return _document(search_students(store, name=name, year_group=year_group, class_name=class_name))


@router.get("/students/{student_id}")
def get_student_profile(
    student_id: str,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    if current_user.role == Role.STUDENT and current_user.id != student_id:
        raise PermissionDenied("Students can only view their own profile")
    return _document(student_profile(store, student_id))


def _issue(store: Store, student_id: str, activity_type: ActivityType, payload: ActivityCreateRequest,
           issuer: SessionUser) -> dict[str, Any]:
    activity = ActivityLedger(store).issue(
        student_id=student_id,
        activity_type=activity_type,
        description=payload.description,
        points=payload.points,
        sanction_type=payload.sanction_type,
        issuer=issuer,
    )
    return _document(activity)


@router.post("/students/{student_id}/rewards", status_code=status.HTTP_201_CREATED)
def issue_reward(
    student_id: str,
    payload: ActivityCreateRequest,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    return _issue(store, student_id, ActivityType.REWARD, payload, current_user)


@router.post("/students/{student_id}/sanctions", status_code=status.HTTP_201_CREATED)
def issue_sanction(
    student_id: str,
    payload: ActivityCreateRequest,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    return _issue(store, student_id, ActivityType.SANCTION, payload, current_user)


def _activity_filter(
    type: ActivityType | None = None,
    day: date | None = Query(default=None, alias="date"),
    year_group: str | None = Query(default=None, alias="yearGroup"),
    class_name: str | None = Query(default=None, alias="class"),
) -> ActivityFilter:
    return ActivityFilter(type=type, day=day, year_group=year_group, class_name=class_name)


@router.get("/activities")
def list_activities(
    criteria: ActivityFilter = Depends(_activity_filter),
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_roles(Role.HEADTEACHER, Role.TEACHER)),
):
    activities = ActivityLedger(store).view(criteria)
    return {
        "activities": [_document(a) for a in activities],
        "stats": _document(aggregate(activities)),
    }


@router.get("/activities/export")
def export_activities(
    criteria: ActivityFilter = Depends(_activity_filter),
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_roles(Role.HEADTEACHER, Role.TEACHER)),
):
    content = export_csv(ActivityLedger(store).view(criteria))
    response = StreamingResponse(iter([content]), media_type="text/csv")
    response.headers["Content-Disposition"] = "attachment; filename=student_activities.csv"
    return response


@router.delete("/activities/{activity_id}", response_model=MessageResponse)
def delete_activity(
    activity_id: str,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    removed = ActivityLedger(store).delete_activity(activity_id, actor=current_user)
    return MessageResponse(message=f"{removed.type.value.capitalize()} deleted successfully")


# --- Announcements ---

@router.get("/announcements")
def list_announcements(
    search: str | None = None,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    return [_document(a) for a in AnnouncementService(store).list_for(current_user, search=search)]


@router.post("/announcements", status_code=status.HTTP_201_CREATED)
def create_announcement(
    payload: AnnouncementRequest,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    announcement = AnnouncementService(store).create(
        author=current_user,
        title=payload.title,
        content=payload.content,
        target=payload.target,
        target_specific=payload.target_specific,
    )
    return _document(announcement)


@router.put("/announcements/{announcement_id}")
def update_announcement(
    announcement_id: str,
    payload: AnnouncementRequest,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    announcement = AnnouncementService(store).update(
        announcement_id,
        actor=current_user,
        title=payload.title,
        content=payload.content,
        target=payload.target,
        target_specific=payload.target_specific,
    )
    return _document(announcement)


@router.delete("/announcements/{announcement_id}", response_model=MessageResponse)
def delete_announcement(
    announcement_id: str,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    AnnouncementService(store).delete(announcement_id, actor=current_user)
    return MessageResponse(message="Announcement deleted successfully")


# --- Homework ---

@router.get("/homework")
def list_homework(
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    service = HomeworkService(store)
    if current_user.role == Role.STUDENT:
        return [_document(h) for h in service.for_student(current_user)]
    return [_document(h) for h in service.all()]


@router.post("/homework", status_code=status.HTTP_201_CREATED)
def create_homework(
    payload: HomeworkCreateRequest,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    homework = HomeworkService(store).create(
        author=current_user,
        title=payload.title,
        description=payload.description,
        subject=payload.subject,
        class_name=payload.class_name,
        due_date=payload.due_date,
        attachments=payload.attachments,
    )
    return _document(homework)


@router.delete("/homework/{homework_id}", response_model=MessageResponse)
def delete_homework(
    homework_id: str,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    HomeworkService(store).delete(homework_id, actor=current_user)
    return MessageResponse(message="Homework deleted successfully")


@router.post("/homework/{homework_id}/complete")
def complete_homework(
    homework_id: str,
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    return _document(HomeworkService(store).mark_completed(homework_id, current_user))


@router.get("/homework/{homework_id}/completions")
def homework_completions(
    homework_id: str,
    store: Store = Depends(get_store),
    _: SessionUser = Depends(require_roles(Role.HEADTEACHER, Role.TEACHER)),
):
    service = HomeworkService(store)
    service.get(homework_id)
    return service.completions_for_homework(homework_id)


# --- Dashboard ---

@router.get("/dashboard")
def dashboard(
    store: Store = Depends(get_store),
    current_user: SessionUser = Depends(get_current_user),
):
    return build_dashboard(store, current_user)
