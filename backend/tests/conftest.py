"""Test fixtures: a fresh in-memory database and app per test."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.db import Database
from app.main import create_app
from app.repositories.user_repository import UserRepository
from app.services.user_service import UserService


@pytest.fixture
def settings() -> Settings:
    return Settings(DATABASE_URL="sqlite://", LOG_LEVEL="WARNING")


@pytest.fixture
def database(settings: Settings):
    database = Database.from_settings(settings)
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def db_session(database: Database):
    with database.session() as db:
        yield db


@pytest.fixture
def repo() -> UserRepository:
    return UserRepository()


@pytest.fixture
def service(repo: UserRepository) -> UserService:
    return UserService(repo)


@pytest.fixture
def client(settings: Settings, database: Database):
    app = create_app(settings=settings, database=database)
    return TestClient(app)


@pytest.fixture
def make_user(client: TestClient):
    def _make(username: str = "testuser", email: str = "test@example.com", password: str = "password123"):
        response = client.post("/api/users/", json={"username": username, "email": email, "password": password})
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _make
