import os

os.environ.setdefault("SCHOOL_BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from backend.backend import app
from backend.school_module.auth import AuthSession
from backend.school_module.middleware import get_store
from backend.school_module.seed import seed_defaults
from backend.school_module.store import MemoryStore

API = "/api/v1/school"

HEADTEACHER = ("Learnerair", "LEARNERAIR")
TEACHER = ("teacher1", "password123")
STUDENT = ("student1", "student123")


@pytest.fixture
def store():
    memory = MemoryStore()
    seed_defaults(memory)
    return memory


@pytest.fixture
def auth(store):
    return AuthSession(store)


@pytest.fixture
def headteacher(auth):
    return auth.login(*HEADTEACHER)


@pytest.fixture
def teacher(auth):
    return auth.login(*TEACHER)


@pytest.fixture
def student(auth):
    return auth.login(*STUDENT)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with_client = TestClient(app)
    yield with_client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    def _login(username, password):
        response = client.post(f"{API}/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login
