import logging
import uuid
from datetime import date

from .exceptions import NotFoundError, PermissionDenied, ValidationError
from .models import AnnouncementTarget, Permission
from .permissions import Headteacher, Student, Teacher, has_permission, principal_for
from .records import Announcement, SessionUser
from .seed import DEFAULT_ANNOUNCEMENTS
from .store import ANNOUNCEMENTS_KEY, Store, load_records

logger = logging.getLogger(__name__)

TARGETED = {AnnouncementTarget.YEAR, AnnouncementTarget.CLASS}


def can_moderate(user: SessionUser, announcement: Announcement) -> bool:
    principal = principal_for(user)
    if isinstance(principal, Headteacher):
        return True
    if isinstance(principal, (Teacher, Student)):
        return announcement.author_id == user.id
    raise TypeError(f"Unhandled principal: {principal!r}")


def is_visible_to(user: SessionUser, announcement: Announcement) -> bool:
    principal = principal_for(user)
    target = announcement.target
    if isinstance(principal, (Headteacher, Teacher)):
        return True
    if isinstance(principal, Student):
        if target in (AnnouncementTarget.ALL, AnnouncementTarget.STUDENTS):
            return True
        if target == AnnouncementTarget.YEAR:
            return announcement.target_specific == principal.year_group
        if target == AnnouncementTarget.CLASS:
            return announcement.target_specific == principal.class_name
        return False
    raise TypeError(f"Unhandled principal: {principal!r}")


def _validate(title: str, content: str, target: AnnouncementTarget, target_specific: str | None) -> None:
    if not title.strip() or not content.strip():
        raise ValidationError("Please fill in all required fields")
    if target in TARGETED and not (target_specific or "").strip():
        raise ValidationError("Please specify the target year or class")


class AnnouncementService:
    def __init__(self, store: Store):
        self.store = store

    def all(self) -> list[Announcement]:
        return load_records(self.store, ANNOUNCEMENTS_KEY, Announcement, DEFAULT_ANNOUNCEMENTS)

    def _save(self, announcements: list[Announcement]) -> None:
        self.store.set(ANNOUNCEMENTS_KEY, [a.to_document() for a in announcements])

    def _find(self, announcements: list[Announcement], announcement_id: str) -> int:
        for index, announcement in enumerate(announcements):
            if announcement.id == announcement_id:
                return index
        raise NotFoundError(f"Announcement '{announcement_id}' not found")

    def list_for(self, user: SessionUser, search: str | None = None) -> list[Announcement]:
        visible = [a for a in self.all() if is_visible_to(user, a)]
        if search:
            needle = search.lower()
            visible = [a for a in visible if needle in a.title.lower() or needle in a.content.lower()]
        return visible

    def create(
        self,
        *,
        author: SessionUser,
        title: str,
        content: str,
        target: AnnouncementTarget = AnnouncementTarget.ALL,
        target_specific: str | None = None,
    ) -> Announcement:
        if not has_permission(author, Permission.MAKE_ANNOUNCEMENTS):
            raise PermissionDenied("Permission denied: make_announcements required.")
        _validate(title, content, target, target_specific)

        announcement = Announcement(
            id=uuid.uuid4().hex,
            title=title.strip(),
            content=content.strip(),
            date=date.today().isoformat(),
            author=author.full_name,
            author_id=author.id,
            target=target,
            target_specific=(target_specific or "").strip() or None if target in TARGETED else None,
        )
        self._save([announcement] + self.all())
        logger.info(f"Announcement {announcement.id} posted by {author.username} to {target.value}")
        return announcement

    def update(
        self,
        announcement_id: str,
        *,
        actor: SessionUser,
        title: str,
        content: str,
        target: AnnouncementTarget,
        target_specific: str | None = None,
    ) -> Announcement:
        announcements = self.all()
        index = self._find(announcements, announcement_id)
        existing = announcements[index]
        if not can_moderate(actor, existing):
            raise PermissionDenied("Only the author or a headteacher can edit this announcement")
        _validate(title, content, target, target_specific)

        updated = existing.model_copy(update={
            "title": title.strip(),
            "content": content.strip(),
            "target": target,
            "target_specific": (target_specific or "").strip() or None if target in TARGETED else None,
        })
        announcements[index] = updated
        self._save(announcements)
        logger.info(f"Announcement {announcement_id} updated by {actor.username}")
        return updated

    def delete(self, announcement_id: str, actor: SessionUser) -> None:
        announcements = self.all()
        index = self._find(announcements, announcement_id)
        if not can_moderate(actor, announcements[index]):
            raise PermissionDenied("Only the author or a headteacher can delete this announcement")
        del announcements[index]
        self._save(announcements)
        logger.info(f"Announcement {announcement_id} deleted by {actor.username}")
