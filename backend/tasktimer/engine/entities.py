"""Domain entities for the focus timer engine."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any

MS_PER_MINUTE = 60_000


class TaskStatus(str, Enum):
    """Task timer status. COMPLETED is terminal except for un-completion."""

    PAUSED = "PAUSED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"


class TaskCategory(str, Enum):
    """Task categories."""

    PERSONAL = "personal"
    PROFESSIONAL = "professional"
    STUDY = "study"


def generate_id() -> str:
    """Return a new unique identifier for tasks and subtasks."""
    return uuid.uuid4().hex


def parse_date(value: date | str | None) -> date | None:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class SubTask:
    """A checklist item owned by a single task."""

    id: str
    title: str
    completed: bool = False

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "completed": self.completed}


@dataclass(frozen=True)
class Task:
    """
    A timed task.

    Instances are immutable; every change produces a new instance through
    ``dataclasses.replace`` so that the store can swap whole snapshots.
    """

    id: str
    title: str
    duration_minutes: int
    category: TaskCategory
    scheduled_date: date
    remaining_ms: int
    status: TaskStatus
    created_at: int
    subtasks: tuple[SubTask, ...] = field(default_factory=tuple)
    started_at: int | None = None
    last_resumed_at: int | None = None
    exhausted_on: date | None = None

    @property
    def total_ms(self) -> int:
        return self.duration_minutes * MS_PER_MINUTE

    @property
    def completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    @property
    def running(self) -> bool:
        return self.status is TaskStatus.RUNNING

    @property
    def exhausted(self) -> bool:
        return self.exhausted_on is not None

    def with_changes(self, **changes: Any) -> "Task":
        """Return a copy with ``changes`` applied and ``remaining_ms`` clamped."""
        task = replace(self, **changes)
        clamped = clamp_remaining(task.remaining_ms, task.total_ms)
        if clamped != task.remaining_ms:
            task = replace(task, remaining_ms=clamped)
        return task

    def to_record(self) -> dict[str, Any]:
        """Serialize to the camelCase storage/wire record."""
        return {
            "id": self.id,
            "title": self.title,
            "durationMinutes": self.duration_minutes,
            "category": self.category.value,
            "scheduledDate": self.scheduled_date.isoformat(),
            "remainingMs": self.remaining_ms,
            "status": self.status.value,
            "createdAt": self.created_at,
            "startedAt": self.started_at,
            "lastResumedAt": self.last_resumed_at,
            "exhaustedOn": self.exhausted_on.isoformat() if self.exhausted_on else None,
            "subtasks": [subtask.to_record() for subtask in self.subtasks],
        }

    @classmethod
    def from_record(cls, record: dict[str, Any], *, today: date, now_ms: int) -> "Task":
        """
        Build a task from a stored record, repairing missing fields.

        Records written by older clients may lack ``scheduledDate``,
        ``category``, ``status`` or ``remainingMs``; sensible defaults are
        filled in and the remaining time is clamped into bounds.
        """
        duration = int(record.get("durationMinutes") or 0)
        total_ms = duration * MS_PER_MINUTE
        remaining = record.get("remainingMs")
        remaining_ms = total_ms if remaining is None else int(remaining)

        status = TaskStatus(record.get("status") or TaskStatus.PAUSED.value)
        category = TaskCategory(record.get("category") or TaskCategory.PERSONAL.value)

        subtasks = tuple(
            SubTask(
                id=item.get("id") or generate_id(),
                title=item.get("title", ""),
                completed=bool(item.get("completed", False)),
            )
            for item in record.get("subtasks") or []
        )

        return cls(
            id=record.get("id") or generate_id(),
            title=record.get("title", ""),
            duration_minutes=duration,
            category=category,
            scheduled_date=parse_date(record.get("scheduledDate")) or today,
            remaining_ms=clamp_remaining(remaining_ms, total_ms),
            status=status,
            created_at=int(record.get("createdAt") or now_ms),
            subtasks=subtasks,
            started_at=record.get("startedAt"),
            last_resumed_at=record.get("lastResumedAt"),
            exhausted_on=parse_date(record.get("exhaustedOn")),
        )


def clamp_remaining(remaining_ms: int, total_ms: int) -> int:
    """Clamp ``remaining_ms`` into ``[0, total_ms]``."""
    return max(0, min(int(remaining_ms), max(total_ms, 0)))


def validate_task_fields(
    title: str | None,
    duration_minutes: Any,
    category: Any,
) -> tuple[str, int, TaskCategory] | None:
    """Return cleaned ``(title, duration, category)`` or ``None`` if invalid."""
    if not title or not str(title).strip():
        return None
    # bool is an int subclass
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        return None
    if duration_minutes <= 0:
        return None
    try:
        category_value = TaskCategory(category)
    except ValueError:
        return None
    return str(title).strip(), duration_minutes, category_value


def has_duplicate_titles(subtasks: tuple[SubTask, ...] | list[SubTask]) -> bool:
    """Subtask titles must be unique among siblings, ignoring case."""
    seen: set[str] = set()
    for subtask in subtasks:
        key = subtask.title.strip().casefold()
        if key in seen:
            return True
        seen.add(key)
    return False
