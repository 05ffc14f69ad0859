"""HTTP client for the task backend and a repository built on it."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

import httpx

from tasktimer.engine.ports import AuthenticationRequired

logger = logging.getLogger(__name__)

TIMER_KEYS = ("remainingMs", "status", "lastResumedAt", "exhaustedOn")


class ApiError(Exception):
    """Non-success response from the backend."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class UnauthorizedError(ApiError, AuthenticationRequired):
    """The cached token was rejected; the user has to log in again."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(401, message)


class TokenStore:
    """Caches the bearer token and user id in a small JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return {}

    @property
    def token(self) -> str | None:
        return self._read().get("token")

    @property
    def user_id(self) -> str | None:
        return self._read().get("userId")

    def store(self, token: str, user_id: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token, "userId": user_id}), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class ApiClient:
    """
    Thin wrapper over the REST API.

    Every request carries the cached bearer token. A 401 clears the cache and
    raises ``UnauthorizedError``; other failures raise ``ApiError``.
    """

    def __init__(
        self,
        base_url: str,
        token_store: TokenStore,
        *,
        http: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.token_store = token_store
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        token = self.token_store.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        response = self._http.request(method, path, json=json_body, params=params, headers=headers)

        if response.status_code == 401:
            logger.warning("Backend rejected credentials, clearing cached token")
            self.token_store.clear()
            raise UnauthorizedError(self._error_message(response, "Unauthorized"))
        if response.is_error:
            raise ApiError(
                response.status_code,
                self._error_message(response, f"HTTP {response.status_code}"),
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return fallback
        if isinstance(body, dict):
            detail = body.get("detail") or body.get("error")
            if isinstance(detail, str):
                return detail
        return fallback

    # Auth

    def register(self, username: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/auth/register", json_body={"username": username, "password": password}
        )
        self.token_store.store(data["token"], data["userId"])
        return data

    def login(self, username: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/auth/login", json_body={"username": username, "password": password}
        )
        self.token_store.store(data["token"], data["userId"])
        return data

    def logout(self) -> None:
        self.token_store.clear()

    # Tasks

    def list_tasks(self, scheduled_date: date | None = None) -> list[dict[str, Any]]:
        params = {"scheduledDate": scheduled_date.isoformat()} if scheduled_date else None
        return self._request("GET", "/tasks", params=params)

    def get_task(self, task_id: str) -> dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}")

    def create_task(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/tasks", json_body=payload)

    def update_task(self, task_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/tasks/{task_id}", json_body=payload)

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def toggle_task(self, task_id: str) -> dict[str, Any]:
        return self._request("POST", f"/tasks/{task_id}/toggle")

    def start_task(self, task_id: str) -> dict[str, Any]:
        return self._request("POST", f"/tasks/{task_id}/start")

    def pause_task(self, task_id: str) -> dict[str, Any]:
        return self._request("POST", f"/tasks/{task_id}/pause")

    def update_timer(self, task_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/tasks/{task_id}/timer", json_body=updates)

    def reorder_tasks(self, task_ids: list[str]) -> list[dict[str, Any]]:
        return self._request("PUT", "/tasks/reorder", json_body={"taskIds": task_ids})

    def add_subtask(self, task_id: str, title: str) -> dict[str, Any]:
        return self._request("POST", f"/tasks/{task_id}/subtasks", json_body={"title": title})

    def toggle_subtask(self, task_id: str, subtask_id: str) -> dict[str, Any]:
        return self._request("POST", f"/tasks/{task_id}/subtasks/{subtask_id}/toggle")

    def delete_subtask(self, task_id: str, subtask_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/tasks/{task_id}/subtasks/{subtask_id}")

    # Focus

    def get_focus(self, day: date | None = None) -> dict[str, int]:
        params = {"date": day.isoformat()} if day else None
        return self._request("GET", "/focus", params=params)

    def update_focus(self, day: date | str, seconds: int) -> None:
        day_value = day.isoformat() if isinstance(day, date) else day
        self._request("PUT", "/focus", json_body={"date": day_value, "seconds": seconds})

    def weekly_focus(self) -> list[dict[str, Any]]:
        return self._request("GET", "/focus/weekly")


def _timer_state(record: dict[str, Any]) -> dict[str, Any]:
    return {key: record.get(key) for key in TIMER_KEYS}


class RemoteTaskRepository:
    """
    Engine repository for a client talking to the backend.

    Loading fetches the server's tasks. Saving pushes only timer state that
    changed since the last load or push; creating, editing and deleting tasks
    go through ``ApiClient`` directly and are followed by a resync.
    """

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self._pushed: dict[str, dict[str, Any]] = {}
        self._pushed_focus: dict[str, int] = {}

    def load_tasks(self) -> list[dict[str, Any]]:
        records = self.client.list_tasks()
        self._pushed = {record["id"]: _timer_state(record) for record in records}
        return records

    def save_tasks(self, tasks: list[dict[str, Any]]) -> None:
        for record in tasks:
            known = self._pushed.get(record["id"])
            if known is None:
                logger.debug(f"Task {record['id']} unknown to server, not pushing timer")
                continue
            state = _timer_state(record)
            if state != known:
                self.client.update_timer(record["id"], state)
                self._pushed[record["id"]] = state

    def load_focus_history(self) -> dict[str, int]:
        history = self.client.get_focus() or {}
        self._pushed_focus = dict(history)
        return history

    def save_focus_history(self, history: dict[str, int]) -> None:
        for day, seconds in history.items():
            if self._pushed_focus.get(day) != seconds:
                self.client.update_focus(day, seconds)
                self._pushed_focus[day] = seconds
