"""
Pytest Configuration and Fixtures

The environment is prepared before any application import so settings,
logging and the scheduler pick up test values. Every test gets a fresh
in-memory mongomock database injected into the repository layer.
"""

import os
import tempfile

os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["LOGS_PATH"] = tempfile.mkdtemp(prefix="taskplus-test-logs-")
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-bytes"
os.environ["MONGO_DB"] = "taskplus_test"

from typing import Callable, Dict, Generator, List, Optional

import mongomock
import pytest
from fastapi.testclient import TestClient

from taskplus.config.settings import settings
from taskplus.repositories import mongo_client
from taskplus.repositories.access_repo import AccessRepository
from taskplus.repositories.user_repo import UserRepository
from taskplus.repositories.counter_repo import CounterRepository
from taskplus.domain.models import User, Employee
from taskplus.utils.idgen import generate_user_id
from taskplus.utils.security import hash_password
from taskplus.utils.time import storage_now
from scripts.seed_data import seed_registry, seed_organization, seed_users


@pytest.fixture(autouse=True)
def db() -> Generator:
    """Fresh in-memory database for every test"""
    database = mongomock.MongoClient()[settings.mongo_db]
    mongo_client._database = database
    mongo_client.create_indexes()
    yield database
    mongo_client._database = None


@pytest.fixture
def registry(db) -> AccessRepository:
    """Permission catalog and role presets"""
    access_repo = AccessRepository()
    seed_registry(access_repo)
    return access_repo


@pytest.fixture
def users(registry) -> Dict[str, User]:
    """Demo accounts keyed by username, each holding the same-named role"""
    user_repo = UserRepository()
    sections = seed_organization(user_repo)
    seeded = seed_users(user_repo, registry, CounterRepository(), sections)
    return {user.username: user for user in seeded}


@pytest.fixture
def make_user(registry) -> Callable[..., User]:
    """Factory for extra accounts with an arbitrary access record"""
    user_repo = UserRepository()
    counter_repo = CounterRepository()

    def _make(
        username: str,
        roles: Optional[List[str]] = None,
        perms_extra: Optional[List[str]] = None,
        perms_denied: Optional[List[str]] = None,
        with_employee: bool = False,
        with_access: bool = True,
        **access_fields
    ) -> User:
        employee_id = None
        if with_employee:
            employee_id = counter_repo.next_sequence("employees")
            user_repo.create_employee(Employee(employee_id=employee_id, name=username.title()))

        now = storage_now()
        user = user_repo.create_user(User(
            user_id=generate_user_id(),
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(settings.seed_password),
            employee_id=employee_id,
            created_at=now,
            updated_at=now,
        ))
        if with_access:
            registry.upsert_user_access(user.user_id, {
                "roles": roles or [],
                "perms_extra": perms_extra or [],
                "perms_denied": perms_denied or [],
                **access_fields,
            })
        return user

    return _make


@pytest.fixture
def app():
    from taskplus.main import app as application
    return application


@pytest.fixture
def client(app) -> TestClient:
    """Anonymous client; lifespan is not run so the scheduler stays off"""
    return TestClient(app)


@pytest.fixture
def login_as(app) -> Callable[[str], TestClient]:
    """Client carrying the session cookie of the given user"""

    def _login(username: str, password: Optional[str] = None) -> TestClient:
        test_client = TestClient(app)
        response = test_client.post(
            "/api/auth/login",
            json={"identifier": username, "password": password or settings.seed_password},
        )
        assert response.status_code == 200, response.text
        return test_client

    return _login

