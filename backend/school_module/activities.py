"""
Reward and sanction ledger.

Activities are kept most-recent-first under ``student_activities``. Each one
carries its own ``activityId`` and a separate ``studentId``; deletes go by
``activityId`` only, so two otherwise identical entries stay independent.
Every statistic is recomputed from the full list on read.
"""

import csv
import io
import logging
import uuid
from dataclasses import dataclass
from datetime import date

from pydantic import Field

from .exceptions import NotFoundError, PermissionDenied, ValidationError
from .models import ActivityType, Permission, Role
from .permissions import has_permission
from .records import Activity, Record, SessionUser
from .seed import DEFAULT_ACTIVITIES
from .store import ACTIVITIES_KEY, Store, load_records
from .users import UserService

logger = logging.getLogger(__name__)

PERMISSION_FOR_TYPE = {
    ActivityType.REWARD: Permission.SET_REWARDS,
    ActivityType.SANCTION: Permission.SET_SANCTIONS,
}


class ActivityView(Activity):
    student_name: str | None = None
    year_group: str | None = None
    class_name: str | None = Field(default=None, alias="class")


class GroupCounts(Record):
    rewards: int = 0
    sanctions: int = 0


class ActivityStats(Record):
    total_rewards: int = 0
    total_sanctions: int = 0
    reward_points: int = 0
    sanction_points: int = 0
    year_group_stats: dict[str, GroupCounts] = Field(default_factory=dict)
    class_stats: dict[str, GroupCounts] = Field(default_factory=dict)
    sanction_type_stats: dict[str, int] = Field(default_factory=dict)


@dataclass
class ActivityFilter:
    type: ActivityType | None = None
    day: date | None = None
    year_group: str | None = None
    class_name: str | None = None


def enrich(activities: list[Activity], users: list[SessionUser]) -> list[ActivityView]:
    by_id = {u.id: u for u in users}
    views = []
    for activity in activities:
        view = ActivityView.model_validate(activity.model_dump())
        student = by_id.get(activity.student_id)
        if student is not None:
            view.student_name = student.full_name
            view.year_group = student.year_group
            view.class_name = student.class_name
        views.append(view)
    return views


def filter_activities(activities: list[ActivityView], criteria: ActivityFilter) -> list[ActivityView]:
    result = activities
    if criteria.type is not None:
        result = [a for a in result if a.type == criteria.type]
    if criteria.day is not None:
        day = criteria.day.isoformat()
        result = [a for a in result if a.date == day]
    if criteria.year_group:
        result = [a for a in result if a.year_group == criteria.year_group]
    if criteria.class_name:
        result = [a for a in result if a.class_name == criteria.class_name]
    return result


def points_total(activities: list[Activity], activity_type: ActivityType) -> int:
    return sum(a.points or 0 for a in activities if a.type == activity_type)


def aggregate(activities: list[ActivityView]) -> ActivityStats:
    stats = ActivityStats()
    for activity in activities:
        is_reward = activity.type == ActivityType.REWARD
        if is_reward:
            stats.total_rewards += 1
            stats.reward_points += activity.points or 0
        else:
            stats.total_sanctions += 1
            stats.sanction_points += activity.points or 0
            if activity.sanction_type:
                key = activity.sanction_type
                stats.sanction_type_stats[key] = stats.sanction_type_stats.get(key, 0) + 1

        for value, bucket in ((activity.year_group, stats.year_group_stats), (activity.class_name, stats.class_stats)):
            if not value:
                continue
            counts = bucket.setdefault(value, GroupCounts())
            if is_reward:
                counts.rewards += 1
            else:
                counts.sanctions += 1
    return stats


def export_csv(activities: list[ActivityView]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        "Activity ID", "Date", "Type", "Student ID", "Student", "Year Group", "Class",
        "Description", "Points", "Sanction Type", "Issued By",
    ])
    for a in activities:
        writer.writerow([
            a.activity_id, a.date, a.type.value, a.student_id, a.student_name or "", a.year_group or "",
            a.class_name or "", a.description, a.points if a.points is not None else "",
            a.sanction_type or "", a.teacher_name,
        ])
    return output.getvalue()


class ActivityLedger:
    def __init__(self, store: Store):
        self.store = store

    def all(self) -> list[Activity]:
        return load_records(self.store, ACTIVITIES_KEY, Activity, DEFAULT_ACTIVITIES)

    def _save(self, activities: list[Activity]) -> None:
        self.store.set(ACTIVITIES_KEY, [a.to_document() for a in activities])

    def add_activity(self, activity: Activity) -> Activity:
        if not activity.description.strip():
            raise ValidationError("Please enter a description")
        if activity.type == ActivityType.REWARD and activity.sanction_type:
            raise ValidationError("Only sanctions can carry a sanction type")
        if activity.points is not None and activity.points < 1:
            raise ValidationError("Points must be at least 1")
        self._save([activity] + self.all())
        logger.info(
            f"Recorded {activity.type.value} {activity.activity_id} for student {activity.student_id} "
            f"by {activity.teacher_id}"
        )
        return activity

    def issue(
        self,
        *,
        student_id: str,
        activity_type: ActivityType,
        description: str,
        issuer: SessionUser,
        points: int | None = 1,
        sanction_type: str | None = None,
        on: date | None = None,
    ) -> Activity:
        required = PERMISSION_FOR_TYPE[activity_type]
        if not has_permission(issuer, required):
            raise PermissionDenied(f"Permission denied: {required.value} required.")

        try:
            student = UserService(self.store).get_user(student_id)
        except NotFoundError:
            student = None
        if student is None or student.role != Role.STUDENT:
            raise NotFoundError(f"Student '{student_id}' not found")

        activity = Activity(
            activity_id=uuid.uuid4().hex,
            student_id=student.id,
            type=activity_type,
            description=(description or "").strip(),
            points=points,
            sanction_type=(sanction_type or "").strip() or None,
            teacher_id=issuer.id,
            teacher_name=issuer.full_name,
            date=(on or date.today()).isoformat(),
        )
        return self.add_activity(activity)

    def delete_activity(self, activity_id: str, actor: SessionUser) -> Activity:
        activities = self.all()
        target = next((a for a in activities if a.activity_id == activity_id), None)
        if target is None:
            raise NotFoundError(f"Activity '{activity_id}' not found")

        required = PERMISSION_FOR_TYPE[target.type]
        if not has_permission(actor, required):
            raise PermissionDenied(f"Permission denied: {required.value} required.")

        self._save([a for a in activities if a.activity_id != activity_id])
        logger.info(f"Deleted {target.type.value} {activity_id} by {actor.username}")
        return target

    def for_student(self, student_id: str) -> list[Activity]:
        return [a for a in self.all() if a.student_id == student_id]

    def issued_by(self, teacher_id: str) -> list[Activity]:
        return [a for a in self.all() if a.teacher_id == teacher_id]

    def view(self, criteria: ActivityFilter | None = None) -> list[ActivityView]:
        views = enrich(self.all(), UserService(self.store).list_users())
        if criteria is not None:
            views = filter_activities(views, criteria)
        return views
