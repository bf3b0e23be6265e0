import os
from datetime import datetime

import pytest

# Settings are read at import time, so the environment comes first
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["RATE_LIMIT_PER_HOUR"] = "1000"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from healthcare_portal.main import app
from healthcare_portal.api.deps import get_clock
from healthcare_portal.core.database import Base, get_db, get_redis

# Monday morning, before opening
NOW = datetime(2030, 1, 7, 8, 0)

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class InMemoryRedis:
    """The three commands the rate limiter uses."""

    def __init__(self):
        self.data = {}

    def setex(self, key, ttl, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def fixed_clock():
    return NOW


@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_stub():
    return InMemoryRedis()


@pytest.fixture
def client(test_db, redis_stub):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis_stub
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


def patient_payload(email="patient@example.com", **overrides):
    data = {
        "email": email,
        "password": "TestPassword123",
        "role": "patient",
        "full_name": "Pat Patient",
        "phone_number": "+1 555 0100",
        "age": 34,
        "gender": "female",
    }
    data.update(overrides)
    return data


def provider_payload(email="provider@example.com", **overrides):
    data = {
        "email": email,
        "password": "TestPassword123",
        "role": "provider",
        "full_name": "Dr. Casey Provider",
        "phone_number": "+1 555 0200",
        "specialty": "Cardiology",
        "clinic_address": "1 Main Street",
    }
    data.update(overrides)
    return data


def register_and_login(client, payload):
    """Register a user and return (profile id, auth headers)."""
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.text
    profile_id = response.json()["profile_id"]

    login = client.post(
        "/api/v1/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    assert login.status_code == 200, login.text
    return profile_id, {"Authorization": f"Bearer {login.json()['access_token']}"}


@pytest.fixture
def patient(client):
    return register_and_login(client, patient_payload())


@pytest.fixture
def other_patient(client):
    return register_and_login(client, patient_payload("other@example.com", full_name="Olly Other"))


@pytest.fixture
def provider(client):
    return register_and_login(client, provider_payload())


@pytest.fixture
def other_provider(client):
    return register_and_login(client, provider_payload("second@example.com", full_name="Dr. Second"))
