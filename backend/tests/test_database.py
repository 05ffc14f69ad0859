# tests/test_database.py

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import jwt
import pytest

from tasktimer.adapters.sqlalchemy_repository import SqlAlchemyTaskRepository
from tasktimer.core.security import (
    JWT_ALGORITHM,
    AuthError,
    authenticate_token,
    decode_token,
    hash_password,
    issue_token,
    login_user,
    register_user,
    verify_password,
)
from tasktimer.core.settings import get_settings
from tasktimer.db.seed_data import SAMPLE_TASKS, seed_tasks
from tasktimer.models import SubTask


def _record(task_id: str, **overrides) -> dict:
    record = {
        "id": task_id,
        "title": f"Task {task_id}",
        "durationMinutes": 10,
        "category": "personal",
        "scheduledDate": "2024-01-01",
        "remainingMs": 600_000,
        "status": "PAUSED",
        "createdAt": 1,
        "startedAt": None,
        "lastResumedAt": None,
        "exhaustedOn": None,
        "subtasks": [],
    }
    record.update(overrides)
    return record


def test_password_hashing() -> None:
    stored = hash_password("s3cret", rounds=4)

    assert stored.startswith("$2b$04$")
    assert verify_password("s3cret", stored)
    assert not verify_password("wrong", stored)
    assert not verify_password("s3cret", "garbage")


def test_tokens_resolve_until_expiry(db) -> None:
    user, token = register_user(db, "carol", "pw")

    assert decode_token(token) == user.id
    assert authenticate_token(db, token).id == user.id
    assert authenticate_token(db, "unknown") is None

    expired = jwt.encode(
        {"userId": user.id, "exp": datetime.now(timezone.utc) - timedelta(seconds=1)},
        get_settings().jwt_secret,
        algorithm=JWT_ALGORITHM,
    )
    assert authenticate_token(db, expired) is None

    forged = jwt.encode({"userId": user.id}, "some-other-secret-of-sufficient-length", algorithm=JWT_ALGORITHM)
    assert authenticate_token(db, forged) is None

    assert authenticate_token(db, issue_token(user.id)).id == user.id


def test_register_and_login_errors(db) -> None:
    register_user(db, "dave", "pw")

    with pytest.raises(AuthError, match="Username already exists"):
        register_user(db, "dave", "other")

    assert login_user(db, "dave", "pw")[0].username == "dave"
    with pytest.raises(AuthError, match="Invalid credentials"):
        login_user(db, "dave", "nope")


def test_repository_full_replace_semantics(db) -> None:
    user, _ = register_user(db, "erin", "pw")
    repo = SqlAlchemyTaskRepository(db, user.id)

    repo.save_tasks(
        [
            _record("a", createdAt=2, subtasks=[{"id": "s1", "title": "One", "completed": False}]),
            _record("b", createdAt=1, scheduledDate="2024-01-02"),
        ]
    )
    assert [r["id"] for r in repo.load_tasks()] == ["a", "b"]
    assert [r["id"] for r in repo.load_tasks(date(2024, 1, 2))] == ["b"]

    repo.save_tasks(
        [
            _record(
                "a",
                createdAt=2,
                status="RUNNING",
                lastResumedAt=5,
                subtasks=[
                    {"id": "s2", "title": "Two", "completed": True},
                    {"id": "s1", "title": "One", "completed": True},
                ],
            )
        ]
    )

    records = repo.load_tasks()
    assert [r["id"] for r in records] == ["a"]
    assert records[0]["status"] == "RUNNING"
    assert records[0]["lastResumedAt"] == 5
    assert [st["id"] for st in records[0]["subtasks"]] == ["s2", "s1"]
    assert db.query(SubTask).count() == 2


def test_repository_is_scoped_to_user(db) -> None:
    first, _ = register_user(db, "frank", "pw")
    second, _ = register_user(db, "grace", "pw")
    SqlAlchemyTaskRepository(db, first.id).save_tasks([_record("a")])

    other = SqlAlchemyTaskRepository(db, second.id)
    other.save_tasks([_record("b")])

    assert [r["id"] for r in other.load_tasks()] == ["b"]
    assert [r["id"] for r in SqlAlchemyTaskRepository(db, first.id).load_tasks()] == ["a"]


def test_repository_focus_history(db) -> None:
    user, _ = register_user(db, "heidi", "pw")
    repo = SqlAlchemyTaskRepository(db, user.id)

    repo.save_focus_history({"2024-01-01": 10, "2024-01-02": 20})
    repo.set_focus(date(2024, 1, 1), 15)

    assert repo.load_focus_history() == {"2024-01-02": 20, "2024-01-01": 15}
    assert repo.load_focus_history(date(2024, 1, 2)) == {"2024-01-02": 20}


def test_seed_tasks_is_repeatable(db) -> None:
    assert seed_tasks(db) == len(SAMPLE_TASKS)
    assert seed_tasks(db) == len(SAMPLE_TASKS)

    user, _ = login_user(db, "demo", "demo-password")
    repo = SqlAlchemyTaskRepository(db, user.id)
    assert len(repo.load_tasks()) == len(SAMPLE_TASKS)
    assert len(repo.load_focus_history()) == 3
