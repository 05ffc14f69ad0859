"""Per-user task repository backed by the SQLAlchemy models."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy.orm import Session, selectinload

from tasktimer.engine.entities import parse_date
from tasktimer.models.focus import FocusEntry
from tasktimer.models.task import SubTask, Task

logger = logging.getLogger(__name__)


def task_to_record(task: Task) -> dict[str, Any]:
    """Convert an ORM task into the camelCase storage record."""
    return {
        "id": task.id,
        "title": task.title,
        "durationMinutes": task.duration_minutes,
        "category": task.category,
        "scheduledDate": task.scheduled_date.isoformat(),
        "remainingMs": task.remaining_ms,
        "status": task.status,
        "createdAt": task.created_at,
        "startedAt": task.started_at,
        "lastResumedAt": task.last_resumed_at,
        "exhaustedOn": task.exhausted_on.isoformat() if task.exhausted_on else None,
        "subtasks": [
            {"id": st.id, "title": st.title, "completed": st.completed}
            for st in task.subtasks
        ],
    }


class SqlAlchemyTaskRepository:
    """
    Repository for one user's tasks and focus history.

    ``save_tasks`` has full-list semantics: tasks missing from the list are
    deleted together with their subtasks.
    """

    def __init__(self, db: Session, user_id: str) -> None:
        self.db = db
        self.user_id = user_id

    def _query(self):
        return (
            self.db.query(Task)
            .options(selectinload(Task.subtasks))
            .filter(Task.user_id == self.user_id)
        )

    def load_tasks(self, scheduled_date: date | None = None) -> list[dict[str, Any]]:
        query = self._query()
        if scheduled_date:
            query = query.filter(Task.scheduled_date == scheduled_date)
        tasks = query.order_by(Task.created_at.desc()).all()
        return [task_to_record(task) for task in tasks]

    def save_tasks(self, tasks: list[dict[str, Any]]) -> None:
        existing = {task.id: task for task in self._query().all()}
        keep: set[str] = set()

        for record in tasks:
            row = existing.get(record["id"])
            if row is None:
                row = Task(id=record["id"], user_id=self.user_id)
                self.db.add(row)
            self._apply(row, record)
            keep.add(record["id"])

        for task_id, row in existing.items():
            if task_id not in keep:
                self.db.delete(row)

        self._commit()

    def _apply(self, row: Task, record: dict[str, Any]) -> None:
        row.title = record["title"]
        row.duration_minutes = record["durationMinutes"]
        row.category = record["category"]
        row.scheduled_date = parse_date(record["scheduledDate"])
        row.remaining_ms = record["remainingMs"]
        row.status = record["status"]
        row.created_at = record["createdAt"]
        row.started_at = record.get("startedAt")
        row.last_resumed_at = record.get("lastResumedAt")
        row.exhausted_on = parse_date(record.get("exhaustedOn"))

        # Update subtasks in place so unchanged rows keep their identity
        current = {st.id: st for st in row.subtasks}
        subtasks = []
        for position, item in enumerate(record.get("subtasks") or []):
            subtask = current.get(item["id"]) or SubTask(id=item["id"])
            subtask.title = item["title"]
            subtask.completed = bool(item.get("completed"))
            subtask.position = position
            subtasks.append(subtask)
        row.subtasks = subtasks

    def load_focus_history(self, day: date | None = None) -> dict[str, int]:
        query = self.db.query(FocusEntry).filter(FocusEntry.user_id == self.user_id)
        if day:
            query = query.filter(FocusEntry.day == day)
        entries = query.order_by(FocusEntry.day.desc()).all()
        return {entry.day.isoformat(): entry.seconds for entry in entries}

    def save_focus_history(self, history: dict[str, int]) -> None:
        for day, seconds in history.items():
            self._merge_focus(parse_date(day), seconds)
        self._commit()

    def set_focus(self, day: date, seconds: int) -> None:
        """Overwrite one day's focus total."""
        self._merge_focus(day, seconds)
        self._commit()

    def _merge_focus(self, day: date, seconds: int) -> None:
        self.db.merge(FocusEntry(user_id=self.user_id, day=day, seconds=int(seconds)))

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
