from .activities import ActivityLedger, points_total
from .exceptions import NotFoundError
from .models import ActivityType, Role
from .records import Activity, Record, SessionUser
from .store import Store
from .users import UserService


class StudentSearchResult(Record):
    students: list[SessionUser]
    year_groups: list[str]
    classes: list[str]


class StudentProfile(Record):
    student: SessionUser
    activities: list[Activity]
    reward_points: int
    sanction_points: int


def search_students(
    store: Store,
    *,
    name: str | None = None,
    year_group: str | None = None,
    class_name: str | None = None,
) -> StudentSearchResult:
    students = UserService(store).students()
    year_groups = sorted({s.year_group for s in students if s.year_group})
    # Class options narrow to the chosen year group.
    in_year = [s for s in students if not year_group or s.year_group == year_group]
    classes = sorted({s.class_name for s in in_year if s.class_name})

    matches = in_year
    if class_name:
        matches = [s for s in matches if s.class_name == class_name]
    if name:
        needle = name.lower()
        matches = [s for s in matches if needle in s.full_name.lower()]
    return StudentSearchResult(students=matches, year_groups=year_groups, classes=classes)


def student_profile(store: Store, student_id: str) -> StudentProfile:
    try:
        student = UserService(store).get_user(student_id)
    except NotFoundError:
        student = None
    if student is None or student.role != Role.STUDENT:
        raise NotFoundError(f"Student '{student_id}' not found")

    activities = ActivityLedger(store).for_student(student_id)
    return StudentProfile(
        student=student,
        activities=activities,
        reward_points=points_total(activities, ActivityType.REWARD),
        sanction_points=points_total(activities, ActivityType.SANCTION),
    )
