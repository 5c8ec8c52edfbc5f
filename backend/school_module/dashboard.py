from typing import Any

from .activities import ActivityLedger, points_total
from .announcements import AnnouncementService
from .homework import HomeworkService
from .models import ActivityType, Role
from .permissions import Headteacher, Student, Teacher, principal_for
from .records import SessionUser
from .store import Store
from .users import UserService

RECENT_LIMIT = 5


def build_dashboard(store: Store, user: SessionUser) -> dict[str, Any]:
    principal = principal_for(user)
    announcements = AnnouncementService(store)
    homework = HomeworkService(store)
    ledger = ActivityLedger(store)
    summary: dict[str, Any] = {"role": user.role.value, "fullName": user.full_name}

    if isinstance(principal, Headteacher):
        users = UserService(store).list_users()
        activities = ledger.all()
        summary["counts"] = {
            "users": len(users),
            "teachers": sum(1 for u in users if u.role == Role.TEACHER),
            "students": sum(1 for u in users if u.role == Role.STUDENT),
            "announcements": len(announcements.all()),
            "homework": len(homework.all()),
            "rewards": sum(1 for a in activities if a.type == ActivityType.REWARD),
            "sanctions": sum(1 for a in activities if a.type == ActivityType.SANCTION),
        }
    elif isinstance(principal, Teacher):
        summary["counts"] = {
            "announcements": len(announcements.all()),
            "homework": len(homework.all()),
        }
        summary["recentActivities"] = [
            a.to_document() for a in ledger.issued_by(user.id)[:RECENT_LIMIT]
        ]
    elif isinstance(principal, Student):
        own = ledger.for_student(user.id)
        pending = [h for h in homework.for_student(user) if not h.completed]
        summary["rewardPoints"] = points_total(own, ActivityType.REWARD)
        summary["sanctionPoints"] = points_total(own, ActivityType.SANCTION)
        summary["pendingHomework"] = len(pending)
        summary["recentActivities"] = [a.to_document() for a in own[:RECENT_LIMIT]]
        summary["announcements"] = [a.to_document() for a in announcements.list_for(user)[:RECENT_LIMIT]]
    else:
        raise TypeError(f"Unhandled principal: {principal!r}")
    return summary
