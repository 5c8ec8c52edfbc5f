import logging
import uuid
from datetime import date

from .exceptions import NotFoundError, PermissionDenied, ValidationError
from .models import Permission, Role
from .permissions import has_permission
from .records import Homework, HomeworkCompletion, SessionUser
from .seed import DEFAULT_HOMEWORKS
from .store import COMPLETIONS_KEY, HOMEWORKS_KEY, Store, load_records

logger = logging.getLogger(__name__)


class StudentHomework(Homework):
    completed: bool = False
    due_label: str = ""


def due_label(due: date, today: date | None = None) -> str:
    days = (due - (today or date.today())).days
    if days <= 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    return f"Due in {days} days"


def _parse_due(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid due date '{value}', expected YYYY-MM-DD") from exc


class HomeworkService:
    def __init__(self, store: Store):
        self.store = store

    def all(self) -> list[Homework]:
        return load_records(self.store, HOMEWORKS_KEY, Homework, DEFAULT_HOMEWORKS)

    def _save(self, homeworks: list[Homework]) -> None:
        self.store.set(HOMEWORKS_KEY, [h.to_document() for h in homeworks])

    def completions(self) -> list[HomeworkCompletion]:
        return load_records(self.store, COMPLETIONS_KEY, HomeworkCompletion, [])

    def _save_completions(self, rows: list[HomeworkCompletion]) -> None:
        self.store.set(COMPLETIONS_KEY, [r.to_document() for r in rows])

    def get(self, homework_id: str) -> Homework:
        for homework in self.all():
            if homework.id == homework_id:
                return homework
        raise NotFoundError(f"Homework '{homework_id}' not found")

    def create(
        self,
        *,
        author: SessionUser,
        title: str,
        subject: str,
        due_date: str,
        description: str = "",
        class_name: str | None = None,
        attachments: list[str] | None = None,
    ) -> Homework:
        if not has_permission(author, Permission.SET_HOMEWORK):
            raise PermissionDenied("Permission denied: set_homework required.")
        if not title.strip() or not subject.strip() or not due_date:
            raise ValidationError("Please fill in all required fields")
        _parse_due(due_date)

        homework = Homework(
            id=uuid.uuid4().hex,
            title=title.strip(),
            description=description.strip(),
            subject=subject.strip(),
            class_name=(class_name or "").strip() or None,
            due_date=due_date,
            attachments=[name for name in (attachments or []) if name],
        )
        self.write(homework)
        logger.info(f"Homework {homework.id} '{homework.title}' set by {author.username}")
        return homework

    def write(self, homework: Homework) -> None:
        """Insert or replace a homework document by id."""
        homeworks = self.all()
        for index, existing in enumerate(homeworks):
            if existing.id == homework.id:
                homeworks[index] = homework
                break
        else:
            homeworks.append(homework)
        self._save(homeworks)

    def delete(self, homework_id: str, actor: SessionUser) -> None:
        if not has_permission(actor, Permission.DELETE_HOMEWORK):
            raise PermissionDenied("Permission denied: delete_homework required.")
        homeworks = self.all()
        remaining = [h for h in homeworks if h.id != homework_id]
        if len(remaining) == len(homeworks):
            raise NotFoundError(f"Homework '{homework_id}' not found")
        self._save(remaining)
        self._save_completions([c for c in self.completions() if c.homework_id != homework_id])
        logger.info(f"Homework {homework_id} deleted by {actor.username}")

    def mark_completed(self, homework_id: str, student: SessionUser) -> HomeworkCompletion:
        if student.role != Role.STUDENT:
            raise PermissionDenied("Only students can complete homework")
        self.get(homework_id)

        rows = [c for c in self.completions() if not (c.student_id == student.id and c.homework_id == homework_id)]
        row = HomeworkCompletion(student_id=student.id, homework_id=homework_id, completed=True)
        self._save_completions(rows + [row])
        logger.info(f"Homework {homework_id} completed by {student.username}")
        return row

    def completions_for_student(self, student_id: str) -> dict[str, bool]:
        return {c.homework_id: c.completed for c in self.completions() if c.student_id == student_id}

    def completions_for_homework(self, homework_id: str) -> dict[str, bool]:
        return {c.student_id: c.completed for c in self.completions() if c.homework_id == homework_id}

    def for_student(self, student: SessionUser, today: date | None = None) -> list[StudentHomework]:
        done = self.completions_for_student(student.id)
        result = []
        for homework in self.all():
            if homework.class_name and homework.class_name != student.class_name:
                continue
            result.append(StudentHomework(
                **homework.model_dump(),
                completed=done.get(homework.id, False),
                due_label=due_label(_parse_due(homework.due_date), today),
            ))
        return result
