# tests/conftest.py

from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Must be set before tasktimer.core.settings is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-that-is-long-enough-for-hs256")
os.environ.setdefault("DATABASE_PATH", str(Path(tempfile.gettempdir()) / "tasktimer-test.db"))

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tasktimer.db.base import get_db
from tasktimer.db.init_db import init_db
from tasktimer.engine.service import TaskTimerEngine
from tasktimer.main import app

from .fakes import FakeTimeSource, InMemoryRepository, RecordingAlarmSink


@pytest.fixture()
def clock() -> FakeTimeSource:
    return FakeTimeSource()


@pytest.fixture()
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture()
def alarms() -> RecordingAlarmSink:
    return RecordingAlarmSink()


@pytest.fixture()
def engine_settings(tmp_path: Path) -> SimpleNamespace:
    """Settings stand-in carrying only what the engine and client wiring read."""
    return SimpleNamespace(
        tick_interval_seconds=1.0,
        rollover_interval_seconds=60.0,
        resync_interval_seconds=30.0,
        focus_flush_every=10,
        reset_on_uncomplete=True,
        complete_on_exhaust=False,
        local_storage_dir=tmp_path / "local",
    )


@pytest.fixture()
def engine(repo: InMemoryRepository, alarms: RecordingAlarmSink, clock: FakeTimeSource) -> TaskTimerEngine:
    """Engine wired with deterministic fakes and default policies."""
    timer_engine = TaskTimerEngine(repo, alarms, clock)
    timer_engine.load()
    return timer_engine


@pytest.fixture()
def db_session_factory():
    """
    Sessions bound to a private in-memory SQLite database.

    StaticPool keeps a single connection so every session sees the same data.
    """
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=test_engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    yield factory
    test_engine.dispose()


@pytest.fixture()
def db(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session_factory) -> TestClient:
    def override_get_db():
        session = db_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    response = client.post("/api/auth/register", json={"username": "alice", "password": "s3cret"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
