"""
Document store used by every service.

Each key holds one JSON document. Reads and writes are atomic per key only;
there are no cross-key transactions and concurrent writers race with last
write wins.
"""

import json
import logging
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import pydantic
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .exceptions import StorageReadError, StorageWriteError
from .models import Document

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=pydantic.BaseModel)

USERS_KEY = "users"
SESSION_KEY = "currentUser"
ANNOUNCEMENTS_KEY = "announcements"
HOMEWORKS_KEY = "homeworks"
ACTIVITIES_KEY = "student_activities"
COMPLETIONS_KEY = "homework_completions"


class Store(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


def _dump(key: str, value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise StorageWriteError(key, f"Value for '{key}' is not JSON serializable: {exc}") from exc


def _load(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        logger.error(f"Stored document '{key}' could not be parsed: {exc}")
        raise StorageReadError(key, f"Stored data for '{key}' is corrupted") from exc


class MemoryStore:
    """Keeps serialized documents in a dict, so values round-trip through JSON like the real store."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._documents: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Any | None:
        raw = self._documents.get(key)
        if raw is None:
            return None
        return _load(key, raw)

    def set(self, key: str, value: Any) -> None:
        self._documents[key] = _dump(key, value)

    def delete(self, key: str) -> None:
        self._documents.pop(key, None)

    def set_raw(self, key: str, raw: str) -> None:
        self._documents[key] = raw


class SqlAlchemyStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, key: str) -> Any | None:
        with self._session_factory() as db:
            row = db.get(Document, key)
            if row is None:
                return None
            raw = row.value
        return _load(key, raw)

    def set(self, key: str, value: Any) -> None:
        payload = _dump(key, value)
        db: Session = self._session_factory()
        try:
            row = db.get(Document, key)
            if row is None:
                db.add(Document(key=key, value=payload))
            else:
                row.value = payload
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Failed to write document '{key}': {exc}")
            raise StorageWriteError(key, f"Failed to save '{key}'") from exc
        finally:
            db.close()

    def delete(self, key: str) -> None:
        db: Session = self._session_factory()
        try:
            row = db.get(Document, key)
            if row is not None:
                db.delete(row)
                db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Failed to delete document '{key}': {exc}")
            raise StorageWriteError(key, f"Failed to delete '{key}'") from exc
        finally:
            db.close()


def read_or_seed(store: Store, key: str, seed: Any | Callable[[], Any]) -> Any:
    """Return the document at ``key``, writing ``seed`` first if the key is absent.

    ``seed`` may be a zero-argument callable so costly seeds are only built when needed.
    """
    value = store.get(key)
    if value is not None:
        return value
    value = seed() if callable(seed) else seed
    store.set(key, value)
    logger.info(f"Seeded document '{key}'")
    return value


def parse_document(key: str, model: type[T], document: Any) -> T:
    try:
        return model.model_validate(document)
    except pydantic.ValidationError as exc:
        logger.error(f"Stored document '{key}' has an unexpected shape: {exc}")
        raise StorageReadError(key, f"Stored data for '{key}' is corrupted") from exc


def load_records(store: Store, key: str, model: type[T], seed: Any | Callable[[], Any]) -> list[T]:
    """Read the list at ``key`` (seeding it if absent) and validate every entry as ``model``."""
    documents = read_or_seed(store, key, seed)
    if not isinstance(documents, list):
        logger.error(f"Stored document '{key}' is not a list")
        raise StorageReadError(key, f"Stored data for '{key}' is corrupted")
    return [parse_document(key, model, doc) for doc in documents]
