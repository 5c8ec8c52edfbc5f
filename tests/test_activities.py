from datetime import date

import pytest

from backend.school_module.activities import (
    ActivityFilter,
    ActivityLedger,
    aggregate,
    enrich,
    export_csv,
    filter_activities,
    points_total,
)
from backend.school_module.exceptions import NotFoundError, PermissionDenied, ValidationError
from backend.school_module.models import ActivityType, Permission, Role
from backend.school_module.records import Activity
from backend.school_module.store import ACTIVITIES_KEY
from backend.school_module.users import UserService


def _stats_for(ledger, student_id):
    users = UserService(ledger.store).list_users()
    return aggregate(enrich(ledger.for_student(student_id), users))


def test_issue_reward_is_reflected_in_aggregate(store, teacher):
    ledger = ActivityLedger(store)
    before = _stats_for(ledger, "3")

    ledger.issue(student_id="3", activity_type=ActivityType.REWARD, description="Great essay", issuer=teacher)

    after = _stats_for(ledger, "3")
    assert after.total_rewards == before.total_rewards + 1
    assert after.total_sanctions == before.total_sanctions


def test_issue_sanction_is_reflected_in_aggregate(store, teacher):
    ledger = ActivityLedger(store)
    before = _stats_for(ledger, "3")

    ledger.issue(
        student_id="3", activity_type=ActivityType.SANCTION, description="Talking in class",
        sanction_type="Detention", points=2, issuer=teacher,
    )

    after = _stats_for(ledger, "3")
    assert after.total_sanctions == before.total_sanctions + 1
    assert after.total_rewards == before.total_rewards
    assert after.sanction_type_stats["Detention"] == 1


def test_new_activities_are_prepended(store, teacher):
    ledger = ActivityLedger(store)
    created = ledger.issue(student_id="3", activity_type=ActivityType.REWARD, description="First", issuer=teacher)
    assert store.get(ACTIVITIES_KEY)[0]["activityId"] == created.activity_id


def test_activity_id_is_distinct_from_student_id(store, teacher):
    created = ActivityLedger(store).issue(
        student_id="3", activity_type=ActivityType.REWARD, description="Kindness", issuer=teacher
    )
    assert created.student_id == "3"
    assert created.activity_id != created.student_id


def test_delete_removes_exactly_one_of_identical_twins(store, teacher):
    ledger = ActivityLedger(store)
    kwargs = dict(
        student_id="3", activity_type=ActivityType.SANCTION, description="Late", issuer=teacher,
        on=date(2024, 1, 8),
    )
    first = ledger.issue(**kwargs)
    second = ledger.issue(**kwargs)
    total = len(ledger.all())

    ledger.delete_activity(first.activity_id, actor=teacher)

    remaining = ledger.all()
    assert len(remaining) == total - 1
    assert [a.activity_id for a in remaining if a.description == "Late"] == [second.activity_id]


def test_delete_requires_matching_permission(store, headteacher):
    users = UserService(store)
    rewarder = users.create_user(
        username="rewarder", password="pw", full_name="Rewards Only", role=Role.TEACHER,
        permissions=[Permission.SET_REWARDS],
    )
    ledger = ActivityLedger(store)
    sanction = ledger.issue(
        student_id="3", activity_type=ActivityType.SANCTION, description="Phone", issuer=headteacher
    )
    with pytest.raises(PermissionDenied):
        ledger.delete_activity(sanction.activity_id, actor=rewarder)
    with pytest.raises(PermissionDenied):
        ledger.issue(student_id="3", activity_type=ActivityType.SANCTION, description="x", issuer=rewarder)


def test_delete_unknown_activity(store, teacher):
    with pytest.raises(NotFoundError):
        ActivityLedger(store).delete_activity("missing", actor=teacher)


def test_issue_to_non_student_is_not_found(store, teacher):
    with pytest.raises(NotFoundError):
        ActivityLedger(store).issue(student_id="2", activity_type=ActivityType.REWARD, description="x", issuer=teacher)
    with pytest.raises(NotFoundError):
        ActivityLedger(store).issue(student_id="404", activity_type=ActivityType.REWARD, description="x", issuer=teacher)


def test_validation_rules(store, teacher):
    ledger = ActivityLedger(store)
    with pytest.raises(ValidationError):
        ledger.issue(student_id="3", activity_type=ActivityType.REWARD, description="  ", issuer=teacher)
    with pytest.raises(ValidationError):
        ledger.issue(
            student_id="3", activity_type=ActivityType.REWARD, description="x", sanction_type="Detention",
            issuer=teacher,
        )
    with pytest.raises(ValidationError):
        ledger.issue(student_id="3", activity_type=ActivityType.REWARD, description="x", points=0, issuer=teacher)


def _activity(activity_id, activity_type, student_id, day, sanction_type=None, points=1):
    return Activity(
        activity_id=activity_id, student_id=student_id, type=activity_type, description="d",
        points=points, sanction_type=sanction_type, teacher_id="2", teacher_name="John Smith", date=day,
    )


@pytest.fixture
def views(store, headteacher):
    users = UserService(store)
    other = users.create_user(
        username="kai", password="pw", full_name="Kai Lee", role=Role.STUDENT, year_group="9", class_name="9B"
    )
    activities = [
        _activity("a1", ActivityType.REWARD, "3", "2024-02-01", points=5),
        _activity("a2", ActivityType.SANCTION, "3", "2024-02-01", sanction_type="Detention", points=2),
        _activity("a3", ActivityType.REWARD, other.id, "2024-02-02", points=3),
        _activity("a4", ActivityType.SANCTION, other.id, "2024-02-01", sanction_type="Detention"),
        _activity("a5", ActivityType.SANCTION, "orphan", "2024-02-01", sanction_type="Isolation"),
    ]
    return enrich(activities, users.list_users())


def test_enrich_attaches_student_details(views):
    by_id = {v.activity_id: v for v in views}
    assert by_id["a1"].student_name == "Emma Johnson"
    assert (by_id["a3"].year_group, by_id["a3"].class_name) == ("9", "9B")
    assert by_id["a5"].student_name is None


def test_aggregate_groups(views):
    stats = aggregate(views)
    assert stats.total_rewards == 2
    assert stats.total_sanctions == 3
    assert stats.reward_points == 8
    assert stats.sanction_points == 4
    assert stats.year_group_stats["10"].rewards == 1
    assert stats.year_group_stats["10"].sanctions == 1
    assert stats.class_stats["9B"].rewards == 1
    assert stats.class_stats["9B"].sanctions == 1
    assert stats.sanction_type_stats == {"Detention": 2, "Isolation": 1}


def test_filters_are_anded_and_absent_means_unconstrained(views):
    assert len(filter_activities(views, ActivityFilter())) == len(views)

    sanctions_on_day = filter_activities(views, ActivityFilter(type=ActivityType.SANCTION, day=date(2024, 2, 1)))
    assert {v.activity_id for v in sanctions_on_day} == {"a2", "a4", "a5"}

    class_9b = filter_activities(views, ActivityFilter(type=ActivityType.SANCTION, class_name="9B"))
    assert [v.activity_id for v in class_9b] == ["a4"]

    year_10 = filter_activities(views, ActivityFilter(year_group="10", day=date(2024, 2, 2)))
    assert year_10 == []


def test_points_total_by_type(views):
    assert points_total(views, ActivityType.REWARD) == 8
    assert points_total(views, ActivityType.SANCTION) == 4


def test_export_csv_has_header_and_rows(views):
    lines = export_csv(views).strip().splitlines()
    assert lines[0].startswith("Activity ID,Date,Type")
    assert len(lines) == len(views) + 1
