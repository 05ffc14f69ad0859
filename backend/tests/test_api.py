# tests/test_api.py

from __future__ import annotations

from datetime import date, datetime, timezone

from fastapi import Depends
from sqlalchemy.exc import OperationalError

from tasktimer.adapters.sqlalchemy_repository import SqlAlchemyTaskRepository
from tasktimer.api.deps import get_current_user, get_repository
from tasktimer.db.base import get_db
from tasktimer.main import app


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _create(client, headers, **overrides) -> dict:
    payload = {"title": "Write tests", "durationMinutes": 25, "category": "professional"}
    payload.update(overrides)
    response = client.post("/api/tasks", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client) -> None:
    response = client.get("/api/health/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_register_login_and_duplicate(client) -> None:
    creds = {"username": "bob", "password": "hunter2"}

    registered = client.post("/api/auth/register", json=creds)
    assert registered.status_code == 200
    body = registered.json()
    assert body["success"] is True
    assert body["token"]
    assert body["userId"]

    assert client.post("/api/auth/register", json=creds).status_code == 400
    assert client.post("/api/auth/login", json=creds).json()["userId"] == body["userId"]
    assert client.post("/api/auth/login", json={"username": "bob", "password": "nope"}).status_code == 401
    assert client.post("/api/auth/login", json={"username": "bob"}).status_code == 400


def test_tasks_require_valid_token(client) -> None:
    assert client.get("/api/tasks").status_code == 401
    assert client.get("/api/tasks", headers={"Authorization": "Bearer bogus"}).status_code == 401


def test_create_and_list_tasks(client, auth_headers) -> None:
    created = _create(client, auth_headers, subtasks=[{"title": "Unit"}, {"title": "API"}])

    assert created["status"] == "PAUSED"
    assert created["remainingMs"] == 25 * 60_000
    assert created["scheduledDate"] == _today()
    assert created["completed"] is False
    assert [st["title"] for st in created["subtasks"]] == ["Unit", "API"]

    listed = client.get("/api/tasks", headers=auth_headers).json()
    assert [t["id"] for t in listed] == [created["id"]]

    other_day = client.get("/api/tasks", params={"scheduledDate": "1999-01-01"}, headers=auth_headers)
    assert other_day.json() == []


def test_invalid_payloads_return_400(client, auth_headers) -> None:
    bad_duration = client.post(
        "/api/tasks", json={"title": "X", "durationMinutes": 0, "category": "study"}, headers=auth_headers
    )
    assert bad_duration.status_code == 400

    bad_category = client.post(
        "/api/tasks", json={"title": "X", "durationMinutes": 5, "category": "hobby"}, headers=auth_headers
    )
    assert bad_category.status_code == 400

    duplicate_subtasks = client.post(
        "/api/tasks",
        json={"title": "X", "durationMinutes": 5, "subtasks": [{"title": "a"}, {"title": "A"}]},
        headers=auth_headers,
    )
    assert duplicate_subtasks.status_code == 400


def test_get_update_delete(client, auth_headers) -> None:
    task = _create(client, auth_headers)
    url = f"/api/tasks/{task['id']}"

    assert client.get(url, headers=auth_headers).json()["title"] == "Write tests"

    updated = client.put(
        url, json={"title": "Write more tests", "durationMinutes": 30, "category": "study"}, headers=auth_headers
    )
    assert updated.status_code == 200
    assert updated.json()["remainingMs"] == 30 * 60_000
    assert updated.json()["category"] == "study"

    assert client.delete(url, headers=auth_headers).status_code == 204
    assert client.get(url, headers=auth_headers).status_code == 404
    assert client.delete(url, headers=auth_headers).status_code == 204


def test_missing_task_returns_404(client, auth_headers) -> None:
    assert client.get("/api/tasks/nope", headers=auth_headers).status_code == 404
    assert client.post("/api/tasks/nope/start", headers=auth_headers).status_code == 404
    assert client.put(
        "/api/tasks/nope", json={"title": "X", "durationMinutes": 5}, headers=auth_headers
    ).status_code == 404


def test_start_pause_toggle_single_runner(client, auth_headers) -> None:
    first = _create(client, auth_headers, title="First")
    second = _create(client, auth_headers, title="Second")

    started = client.post(f"/api/tasks/{first['id']}/start", headers=auth_headers).json()
    assert started["status"] == "RUNNING"
    assert started["running"] is True

    client.post(f"/api/tasks/{second['id']}/start", headers=auth_headers)
    statuses = {t["id"]: t["status"] for t in client.get("/api/tasks", headers=auth_headers).json()}
    assert statuses == {first["id"]: "PAUSED", second["id"]: "RUNNING"}

    paused = client.post(f"/api/tasks/{second['id']}/pause", headers=auth_headers).json()
    assert paused["status"] == "PAUSED"

    done = client.post(f"/api/tasks/{second['id']}/toggle", headers=auth_headers).json()
    assert done["status"] == "COMPLETED"
    assert done["completed"] is True

    # completed tasks cannot be edited or started
    edit = client.put(
        f"/api/tasks/{second['id']}", json={"title": "Nope", "durationMinutes": 5}, headers=auth_headers
    )
    assert edit.status_code == 404
    unchanged = client.post(f"/api/tasks/{second['id']}/start", headers=auth_headers).json()
    assert unchanged["status"] == "COMPLETED"


def test_start_rejected_for_future_task(client, auth_headers) -> None:
    task = _create(client, auth_headers, scheduledDate="2999-01-01")

    response = client.post(f"/api/tasks/{task['id']}/start", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "PAUSED"


def test_reorder_route(client, auth_headers) -> None:
    ids = [_create(client, auth_headers, title=title)["id"] for title in ("A", "B", "C")]

    response = client.put("/api/tasks/reorder", json={"taskIds": [ids[0], ids[2], ids[1]]}, headers=auth_headers)

    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == [ids[0], ids[2], ids[1]]
    assert [t["id"] for t in client.get("/api/tasks", headers=auth_headers).json()] == [ids[0], ids[2], ids[1]]


def test_timer_update(client, auth_headers) -> None:
    task = _create(client, auth_headers, durationMinutes=10)

    response = client.put(
        f"/api/tasks/{task['id']}/timer",
        json={"remainingMs": 90_000, "exhaustedOn": None},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["remainingMs"] == 90_000
    assert response.json()["status"] == "PAUSED"

    clamped = client.put(f"/api/tasks/{task['id']}/timer", json={"remainingMs": 10**9}, headers=auth_headers)
    assert clamped.json()["remainingMs"] == 10 * 60_000

    negative = client.put(f"/api/tasks/{task['id']}/timer", json={"remainingMs": -1}, headers=auth_headers)
    assert negative.status_code == 400


def test_subtask_routes_propagate_completion(client, auth_headers) -> None:
    task = _create(client, auth_headers)
    base = f"/api/tasks/{task['id']}/subtasks"

    with_one = client.post(base, json={"title": "Only step"}, headers=auth_headers).json()
    subtask_id = with_one["subtasks"][0]["id"]

    toggled = client.post(f"{base}/{subtask_id}/toggle", headers=auth_headers).json()
    assert toggled["subtasks"][0]["completed"] is True
    assert toggled["status"] == "COMPLETED"

    reopened = client.post(f"/api/tasks/{task['id']}/toggle", headers=auth_headers).json()
    assert reopened["status"] == "PAUSED"

    removed = client.delete(f"{base}/{subtask_id}", headers=auth_headers).json()
    assert removed["subtasks"] == []


def test_tasks_are_private_per_user(client, auth_headers) -> None:
    task = _create(client, auth_headers)
    other = client.post("/api/auth/register", json={"username": "mallory", "password": "pw"}).json()
    other_headers = {"Authorization": f"Bearer {other['token']}"}

    assert client.get("/api/tasks", headers=other_headers).json() == []
    assert client.get(f"/api/tasks/{task['id']}", headers=other_headers).status_code == 404


def test_focus_endpoints(client, auth_headers) -> None:
    today = datetime.now(timezone.utc).date()

    assert client.put("/api/focus", json={"date": today.isoformat(), "seconds": 600}, headers=auth_headers).json() == {
        "success": True
    }
    client.put("/api/focus", json={"date": "2001-02-03", "seconds": 30}, headers=auth_headers)

    history = client.get("/api/focus", headers=auth_headers).json()
    assert history == {today.isoformat(): 600, "2001-02-03": 30}
    assert client.get("/api/focus", params={"date": "2001-02-03"}, headers=auth_headers).json() == {"2001-02-03": 30}

    weekly = client.get("/api/focus/weekly", headers=auth_headers).json()
    assert len(weekly) == 7
    assert weekly[-1] == {"date": today.isoformat(), "seconds": 600}
    assert date.fromisoformat(weekly[0]["date"]) < today

    assert client.put("/api/focus", json={"date": "2024-01-01", "seconds": -5}, headers=auth_headers).status_code == 400


def test_duplicate_subtask_ids_return_400(client, auth_headers) -> None:
    response = client.post(
        "/api/tasks",
        json={
            "title": "Twins",
            "durationMinutes": 5,
            "subtasks": [{"id": "x", "title": "a"}, {"id": "x", "title": "b"}],
        },
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert client.get("/api/tasks", headers=auth_headers).json() == []


class LockedDatabaseRepository(SqlAlchemyTaskRepository):
    """Repository whose commits always fail, like a locked SQLite file."""

    def _commit(self) -> None:
        self.db.rollback()
        raise OperationalError("COMMIT", {}, Exception("database is locked"))


def test_failed_commit_is_not_reported_as_success(client, auth_headers) -> None:
    task = _create(client, auth_headers)

    def locked_repository(user=Depends(get_current_user), db=Depends(get_db)):
        return LockedDatabaseRepository(db, user.id)

    app.dependency_overrides[get_repository] = locked_repository
    try:
        created = client.post(
            "/api/tasks", json={"title": "Lost", "durationMinutes": 5}, headers=auth_headers
        )
        started = client.post(f"/api/tasks/{task['id']}/start", headers=auth_headers)
        deleted = client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)
    finally:
        app.dependency_overrides.pop(get_repository)

    assert created.status_code == 503
    assert started.status_code == 503
    assert deleted.status_code == 503
    listed = client.get("/api/tasks", headers=auth_headers).json()
    assert [(t["id"], t["status"]) for t in listed] == [(task["id"], "PAUSED")]


def test_timer_push_cannot_start_future_task(client, auth_headers) -> None:
    task = _create(client, auth_headers, scheduledDate="2999-01-01")

    response = client.put(f"/api/tasks/{task['id']}/timer", json={"status": "RUNNING"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "PAUSED"
