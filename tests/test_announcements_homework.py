from datetime import date

import pytest

from backend.school_module.announcements import AnnouncementService, can_moderate, is_visible_to
from backend.school_module.dashboard import build_dashboard
from backend.school_module.exceptions import NotFoundError, PermissionDenied, ValidationError
from backend.school_module.homework import HomeworkService, due_label
from backend.school_module.models import AnnouncementTarget, Role
from backend.school_module.records import Homework
from backend.school_module.students import search_students, student_profile
from backend.school_module.users import UserService


def test_create_announcement_requires_permission(store, student):
    with pytest.raises(PermissionDenied):
        AnnouncementService(store).create(author=student, title="Hi", content="Hello")


def test_targeted_announcement_needs_specific_value(store, teacher):
    with pytest.raises(ValidationError):
        AnnouncementService(store).create(
            author=teacher, title="Trip", content="Museum trip", target=AnnouncementTarget.CLASS
        )


def test_new_announcement_is_first(store, teacher):
    service = AnnouncementService(store)
    created = service.create(author=teacher, title="Trip", content="Museum trip")
    assert service.all()[0].id == created.id
    assert created.author_id == teacher.id
    assert created.target_specific is None


def test_only_author_or_headteacher_can_moderate(store, teacher, headteacher):
    service = AnnouncementService(store)
    heads_post = next(a for a in service.all() if a.author_id == "1")
    teachers_post = next(a for a in service.all() if a.author_id == "2")
    assert can_moderate(headteacher, teachers_post)
    assert can_moderate(teacher, teachers_post)
    assert not can_moderate(teacher, heads_post)

    with pytest.raises(PermissionDenied):
        service.delete(heads_post.id, actor=teacher)

    updated = service.update(
        teachers_post.id, actor=headteacher, title="Science Fair", content="Updated",
        target=AnnouncementTarget.STUDENTS,
    )
    assert updated.content == "Updated"
    assert updated.date == teachers_post.date

    service.delete(teachers_post.id, actor=headteacher)
    with pytest.raises(NotFoundError):
        service.delete(teachers_post.id, actor=headteacher)


def test_student_visibility(store, teacher, student):
    service = AnnouncementService(store)
    service.create(author=teacher, title="Staff", content="Meeting", target=AnnouncementTarget.TEACHERS)
    service.create(author=teacher, title="9B", content="Trip", target=AnnouncementTarget.CLASS, target_specific="9B")
    service.create(author=teacher, title="10A", content="Quiz", target=AnnouncementTarget.CLASS, target_specific="10A")

    titles = {a.title for a in service.list_for(student)}
    assert "Staff" not in titles and "9B" not in titles
    assert {"10A", "Year 10 Parents Evening", "Science Fair Registration Open"} <= titles
    assert all(is_visible_to(teacher, a) for a in service.all())


def test_search_matches_title_or_content(store, teacher):
    results = AnnouncementService(store).list_for(teacher, search="SCIENCE")
    assert [a.id for a in results] == ["2"]


def test_homework_write_then_read_round_trip(store):
    service = HomeworkService(store)
    homework = Homework(
        id="hw-42", title="Poetry", description="Annotate the poem", subject="English", class_name="10A",
        due_date="2024-03-01", attachments=["poem.pdf", "notes.docx"],
    )
    service.write(homework)
    assert homework in service.all()


def test_create_homework_permissions_and_validation(store, teacher, student):
    service = HomeworkService(store)
    with pytest.raises(PermissionDenied):
        service.create(author=student, title="x", subject="y", due_date="2024-03-01")
    with pytest.raises(ValidationError):
        service.create(author=teacher, title="x", subject="y", due_date="03/01/2024")
    created = service.create(author=teacher, title="Lab report", subject="Science", due_date="2024-03-01")
    assert service.get(created.id) == created


def test_delete_homework_requires_delete_permission(store, teacher, headteacher, student):
    service = HomeworkService(store)
    service.mark_completed("1", student)
    with pytest.raises(PermissionDenied):
        service.delete("1", actor=teacher)
    service.delete("1", actor=headteacher)
    assert service.completions_for_homework("1") == {}
    with pytest.raises(NotFoundError):
        service.get("1")


def test_completion_relation(store, student, teacher):
    service = HomeworkService(store)
    with pytest.raises(PermissionDenied):
        service.mark_completed("1", teacher)
    service.mark_completed("1", student)
    service.mark_completed("1", student)

    assert service.completions_for_student(student.id) == {"1": True}
    assert service.completions_for_homework("1") == {student.id: True}
    assert len(service.completions()) == 1


def test_student_homework_list_filters_by_class(store, teacher, student):
    service = HomeworkService(store)
    service.create(author=teacher, title="Other class", subject="Art", class_name="9B", due_date="2023-09-20")
    service.mark_completed("2", student)

    listing = service.for_student(student, today=date(2023, 9, 21))
    assert {h.id for h in listing} == {"1", "2"}
    by_id = {h.id: h for h in listing}
    assert by_id["2"].completed and not by_id["1"].completed
    assert by_id["1"].due_label == "Due tomorrow"


@pytest.mark.parametrize("due, label", [
    (date(2024, 1, 1), "Due today"),
    (date(2023, 12, 30), "Due today"),
    (date(2024, 1, 2), "Due tomorrow"),
    (date(2024, 1, 5), "Due in 4 days"),
])
def test_due_label(due, label):
    assert due_label(due, today=date(2024, 1, 1)) == label


def test_student_search_and_facets(store):
    UserService(store).create_user(
        username="kai", password="pw", full_name="Kai Lee", role=Role.STUDENT, year_group="9", class_name="9B"
    )
    everyone = search_students(store)
    assert everyone.year_groups == ["10", "9"]
    assert everyone.classes == ["10A", "9B"]

    year_9 = search_students(store, year_group="9")
    assert [s.username for s in year_9.students] == ["kai"]
    assert year_9.classes == ["9B"]

    by_name = search_students(store, name="EMMA")
    assert [s.id for s in by_name.students] == ["3"]


def test_student_profile_totals(store):
    profile = student_profile(store, "3")
    assert profile.reward_points == 8
    assert profile.sanction_points == 2
    assert len(profile.activities) == 3

    with pytest.raises(NotFoundError):
        student_profile(store, "2")


def test_dashboard_per_role(store, headteacher, teacher, student):
    head = build_dashboard(store, headteacher)
    assert head["counts"]["students"] == 1
    assert head["counts"]["rewards"] == 2

    staff = build_dashboard(store, teacher)
    assert len(staff["recentActivities"]) == 3

    pupil = build_dashboard(store, student)
    assert pupil["rewardPoints"] == 8
    assert pupil["pendingHomework"] == 2


def test_rewriting_homework_keeps_its_position(store):
    service = HomeworkService(store)
    first = service.get("1")
    service.write(first.model_copy(update={"title": "Algebra Worksheet (revised)"}))
    homeworks = service.all()
    assert [h.id for h in homeworks] == ["1", "2"]
    assert homeworks[0].title == "Algebra Worksheet (revised)"
