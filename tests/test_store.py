import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.school_module.announcements import AnnouncementService
from backend.school_module.database import Base
from backend.school_module.exceptions import StorageReadError, StorageWriteError
from backend.school_module.homework import HomeworkService
from backend.school_module.store import (
    ANNOUNCEMENTS_KEY,
    HOMEWORKS_KEY,
    SESSION_KEY,
    MemoryStore,
    SqlAlchemyStore,
    read_or_seed,
)


@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool, future=True
    )
    Base.metadata.create_all(bind=engine)
    return SqlAlchemyStore(sessionmaker(bind=engine, future=True))


def test_read_or_seed_writes_seed_only_when_absent():
    store = MemoryStore()
    assert read_or_seed(store, "homeworks", [{"id": "1"}]) == [{"id": "1"}]
    assert read_or_seed(store, "homeworks", [{"id": "other"}]) == [{"id": "1"}]


def test_read_or_seed_calls_factory_lazily():
    store = MemoryStore({"users": []})
    calls = []

    def factory():
        calls.append(1)
        return [{"id": "1"}]

    assert read_or_seed(store, "users", factory) == []
    assert calls == []


def test_corrupted_document_is_surfaced():
    store = MemoryStore()
    store.set_raw("announcements", "{not json")
    with pytest.raises(StorageReadError) as info:
        store.get("announcements")
    assert info.value.key == "announcements"


def test_unserializable_write_raises_storage_write_error():
    store = MemoryStore()
    with pytest.raises(StorageWriteError):
        store.set("homeworks", {"when": object()})
    assert store.get("homeworks") is None


def test_sqlalchemy_store_round_trip(sql_store):
    assert sql_store.get("currentUser") is None
    sql_store.set("currentUser", {"id": "1", "username": "Learnerair"})
    sql_store.set("currentUser", {"id": "2", "username": "teacher1"})
    assert sql_store.get("currentUser") == {"id": "2", "username": "teacher1"}

    sql_store.delete("currentUser")
    assert sql_store.get("currentUser") is None
    sql_store.delete("currentUser")


def test_document_with_wrong_shape_is_surfaced(store, teacher):
    store.set(ANNOUNCEMENTS_KEY, [{"id": "1"}])
    with pytest.raises(StorageReadError) as info:
        AnnouncementService(store).list_for(teacher)
    assert info.value.key == ANNOUNCEMENTS_KEY


def test_non_list_document_is_surfaced(store):
    store.set(HOMEWORKS_KEY, {"id": "1"})
    with pytest.raises(StorageReadError):
        HomeworkService(store).all()


def test_corrupted_session_is_surfaced(store, auth):
    store.set(SESSION_KEY, {"username": "ghost"})
    with pytest.raises(StorageReadError) as info:
        auth.current_session()
    assert info.value.key == SESSION_KEY


def test_wrong_shape_maps_to_server_error(client, login_as, store):
    login_as("teacher1", "password123")
    store.set(ANNOUNCEMENTS_KEY, [{"id": "1"}])
    response = client.get("/api/v1/school/announcements")
    assert response.status_code == 500
    assert ANNOUNCEMENTS_KEY in response.json()["detail"]
