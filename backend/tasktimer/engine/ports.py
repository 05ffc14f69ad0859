"""Boundary contracts the engine depends on."""

from __future__ import annotations

import time
from datetime import date, datetime, timezone
from typing import Any, Protocol


class AuthenticationRequired(Exception):
    """The repository rejected our credentials; retrying will not help."""


class TaskRepository(Protocol):
    """Durable storage for task records and focus history."""

    def load_tasks(self) -> list[dict[str, Any]]: ...

    def save_tasks(self, tasks: list[dict[str, Any]]) -> None: ...

    def load_focus_history(self) -> dict[str, int]: ...

    def save_focus_history(self, history: dict[str, int]) -> None: ...


class AlarmSink(Protocol):
    """Audio cue and OS notification collaborator."""

    def play_alarm(self) -> None: ...

    def schedule_timer_notification(self, title: str, duration_minutes: float) -> None: ...


class TimeSource(Protocol):
    """Wall clock used for ticking and for deciding what "today" is."""

    def now_ms(self) -> int: ...

    def today(self) -> date: ...


class SystemTimeSource:
    """Real wall clock. Calendar days follow UTC."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def today(self) -> date:
        return datetime.now(timezone.utc).date()
