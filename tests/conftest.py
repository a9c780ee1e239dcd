from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient


def pytest_configure() -> None:
    # Ensure a local .env cannot point tests at a shared database.
    os.environ["ENVIRONMENT"] = "test"
    os.environ.setdefault("CACHE_BACKEND", "memory")


class FakeResumeParser:
    """Stands in for the third-party parser; records every document it receives."""

    def __init__(self, payload: dict[str, Any] | None = None) -> None:
        self.payload = payload or {
            "name": "Ada Applicant",
            "email": "ada@example.com",
            "phone": "+1 555 0100",
            "skills": ["Python", "SQL"],
            "education": [{"name": "BSc Computer Science"}],
            "experience": [{"name": "Backend Engineer"}, {"name": "Data Analyst"}],
        }
        self.calls: list[bytes] = []

    def parse(self, content: bytes):
        from jobboard.schemas.profile import ParsedResume

        self.calls.append(content)
        return ParsedResume.model_validate(self.payload)


@pytest.fixture()
def settings(tmp_path: Path):
    from jobboard.config import Settings

    return Settings(
        db_url=f"sqlite:///{tmp_path / 'test.db'}",
        environment="test",
        cache_backend="memory",
        db_connect_retries=1,
        db_connect_backoff_seconds=0,
        jwt_secret="test-secret",
        resume_dir=tmp_path / "resumes",
        resume_parser_api_key="test-key",
        allow_admin_signup=False,
    )


@pytest.fixture()
def engine(settings):
    from jobboard.database import create_db_engine, init_database

    engine = create_db_engine(settings)
    init_database(engine, settings)
    yield engine
    engine.dispose()


@pytest.fixture()
def cache():
    from jobboard.cache.memory import MemoryCache

    return MemoryCache()


@pytest.fixture()
def parser() -> FakeResumeParser:
    return FakeResumeParser()


@pytest.fixture()
def services(settings, engine, cache, parser):
    from jobboard.database import create_session_factory
    from jobboard.services import build_services

    return build_services(settings, create_session_factory(engine), cache, parser=parser)


@pytest.fixture()
def make_user(services):
    from jobboard.models.user import UserType
    from jobboard.schemas.user import UserCreate

    counter = {"n": 0}

    def _make(user_type: UserType = UserType.APPLICANT, **overrides: Any):
        counter["n"] += 1
        fields = {
            "name": f"User {counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "password": "SecretPass123",
            "address": "1 Main St",
            "user_type": user_type,
        }
        fields.update(overrides)
        return services.users.create_user(UserCreate(**fields))

    return _make


@pytest.fixture()
def client(settings, parser) -> Any:
    from jobboard.cache.memory import MemoryCache
    from jobboard.main import create_app

    app = create_app(settings, cache=MemoryCache(), parser=parser)
    with TestClient(app) as c:
        yield c


def signup_and_login(client: TestClient, email: str, password: str = "SecretPass123", **extra: Any) -> dict:
    payload = {"name": extra.pop("name", "Tester"), "email": email, "password": password, **extra}
    created = client.post("/auth/signup", json=payload)
    assert created.status_code == 201, created.text
    token = client.post("/auth/login", json={"email": email, "password": password}).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def admin_headers(client: TestClient, email: str = "admin@example.com", password: str = "AdminPass123") -> dict:
    from jobboard.models.user import UserType
    from jobboard.schemas.user import UserCreate

    client.app.state.services.users.create_user(
        UserCreate(name="Admin", email=email, password=password, user_type=UserType.ADMIN)
    )
    token = client.post("/auth/login", json={"email": email, "password": password}).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
