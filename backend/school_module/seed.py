import logging
from typing import Any

from .models import Permission, Role
from .permissions import ALL_PERMISSIONS
from .security import hash_password
from .store import (
    ACTIVITIES_KEY,
    ANNOUNCEMENTS_KEY,
    COMPLETIONS_KEY,
    HOMEWORKS_KEY,
    USERS_KEY,
    Store,
    read_or_seed,
)

logger = logging.getLogger(__name__)

HEADTEACHER_ID = "1"

DEFAULT_USERS = [
    {
        "id": HEADTEACHER_ID,
        "username": "Learnerair",
        "password": "LEARNERAIR",
        "fullName": "Head Teacher",
        "role": Role.HEADTEACHER.value,
        "permissions": [p.value for p in ALL_PERMISSIONS],
    },
    {
        "id": "2",
        "username": "teacher1",
        "password": "password123",
        "fullName": "John Smith",
        "role": Role.TEACHER.value,
        "permissions": [
            Permission.SET_HOMEWORK.value,
            Permission.SET_SANCTIONS.value,
            Permission.SET_REWARDS.value,
            Permission.MAKE_ANNOUNCEMENTS.value,
        ],
    },
    {
        "id": "3",
        "username": "student1",
        "password": "student123",
        "fullName": "Emma Johnson",
        "role": Role.STUDENT.value,
        "permissions": [],
        "yearGroup": "10",
        "class": "10A",
    },
]

DEFAULT_ANNOUNCEMENTS = [
    {
        "id": "1",
        "title": "School Closure - Staff Training Day",
        "content": (
            "Please be informed that the school will be closed on Friday, September 20th for a staff "
            "training day. Classes will resume as normal on Monday, September 23rd."
        ),
        "date": "2023-09-12",
        "author": "Head Teacher",
        "authorId": HEADTEACHER_ID,
        "target": "all",
        "targetSpecific": None,
    },
    {
        "id": "2",
        "title": "Science Fair Registration Open",
        "content": (
            "Registration for the annual Science Fair is now open! Students interested in participating "
            "should register by October 5th."
        ),
        "date": "2023-09-10",
        "author": "John Smith",
        "authorId": "2",
        "target": "students",
        "targetSpecific": None,
    },
    {
        "id": "3",
        "title": "Year 10 Parents Evening",
        "content": (
            "Year 10 Parents Evening will be held next Thursday from 4:30pm to 7:00pm in the main hall."
        ),
        "date": "2023-09-05",
        "author": "Head Teacher",
        "authorId": HEADTEACHER_ID,
        "target": "year",
        "targetSpecific": "10",
    },
]

DEFAULT_HOMEWORKS = [
    {
        "id": "1",
        "title": "Algebra Worksheet",
        "description": "Complete questions 1-20 on solving linear equations.",
        "subject": "Mathematics",
        "class": "10A",
        "dueDate": "2023-09-22",
        "attachments": ["algebra_worksheet.pdf"],
    },
    {
        "id": "2",
        "title": "Photosynthesis Essay",
        "description": "Write 500 words explaining the light-dependent reactions.",
        "subject": "Science",
        "class": None,
        "dueDate": "2023-09-29",
        "attachments": [],
    },
]

DEFAULT_ACTIVITIES = [
    {
        "activityId": "seed-activity-1",
        "studentId": "3",
        "type": "reward",
        "description": "Outstanding contribution in science class",
        "points": 5,
        "sanctionType": None,
        "teacherId": "2",
        "teacherName": "John Smith",
        "date": "2023-09-15",
    },
    {
        "activityId": "seed-activity-2",
        "studentId": "3",
        "type": "sanction",
        "description": "Late submission of homework",
        "points": 2,
        "sanctionType": "Late homework",
        "teacherId": "2",
        "teacherName": "John Smith",
        "date": "2023-09-10",
    },
    {
        "activityId": "seed-activity-3",
        "studentId": "3",
        "type": "reward",
        "description": "Helping a classmate with math problems",
        "points": 3,
        "sanctionType": None,
        "teacherId": "2",
        "teacherName": "John Smith",
        "date": "2023-09-05",
    },
]


def default_users() -> list[dict[str, Any]]:
    users = []
    for entry in DEFAULT_USERS:
        user = {k: v for k, v in entry.items() if k != "password"}
        user["passwordHash"] = hash_password(entry["password"])
        users.append(user)
    return users


def seed_users(store: Store) -> list[dict[str, Any]]:
    return read_or_seed(store, USERS_KEY, default_users)


def seed_defaults(store: Store, demo_data: bool = True) -> None:
    """Lazily initialise every document. Without demo data only the bootstrap headteacher is created."""
    if demo_data:
        seed_users(store)
        read_or_seed(store, ANNOUNCEMENTS_KEY, DEFAULT_ANNOUNCEMENTS)
        read_or_seed(store, HOMEWORKS_KEY, DEFAULT_HOMEWORKS)
        read_or_seed(store, ACTIVITIES_KEY, DEFAULT_ACTIVITIES)
    else:
        read_or_seed(store, USERS_KEY, lambda: default_users()[:1])
        read_or_seed(store, ANNOUNCEMENTS_KEY, [])
        read_or_seed(store, HOMEWORKS_KEY, [])
        read_or_seed(store, ACTIVITIES_KEY, [])
    read_or_seed(store, COMPLETIONS_KEY, [])
    logger.info(f"School documents ready (demo data: {demo_data})")
