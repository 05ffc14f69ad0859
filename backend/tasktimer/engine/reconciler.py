"""Task status state machine and day rollover."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from tasktimer.engine.entities import Task, TaskStatus
from tasktimer.engine.ports import TimeSource
from tasktimer.engine.store import TaskStore
from tasktimer.engine.transitions import (
    can_start,
    mark_completed,
    mark_paused,
    mark_running,
    mark_uncompleted,
    reset_timer,
)

logger = logging.getLogger(__name__)


class StatusReconciler:
    """
    Enforces PAUSED / RUNNING / COMPLETED transitions.

    Starting a task pauses any other runner inside the same store commit, so
    no snapshot ever holds two RUNNING tasks.
    """

    def __init__(
        self,
        store: TaskStore,
        time_source: TimeSource,
        *,
        reset_on_uncomplete: bool = True,
    ) -> None:
        self._store = store
        self._time = time_source
        self.reset_on_uncomplete = reset_on_uncomplete

    def start(self, task_id: str) -> Task | None:
        """Run ``task_id``. Returns the running task, or None when rejected."""
        with self._store.lock:
            return self._start_locked(task_id)

    def _start_locked(self, task_id: str) -> Task | None:
        task = self._store.get(task_id)
        today = self._time.today()
        if task is None or not can_start(task, today):
            logger.debug(f"Start rejected for task {task_id}")
            return None
        if task.running:
            return task

        started = mark_running(task, self._time.now_ms())

        def apply(tasks: tuple[Task, ...]) -> list[Task]:
            out = []
            for current in tasks:
                if current.id == task_id:
                    out.append(started)
                elif current.running:
                    logger.info(f"Pausing task {current.id} to start {task_id}")
                    out.append(mark_paused(current))
                else:
                    out.append(current)
            return out

        self._store.commit(apply)
        logger.info(f"Started task {task_id}")
        return started

    def resume(self, task_id: str) -> Task | None:
        return self.start(task_id)

    def pause(self, task_id: str) -> Task | None:
        """Pause a RUNNING task. Pausing anything else is a no-op."""
        return self._store.mutate(
            task_id, lambda task: mark_paused(task) if task.running else task
        )

    def stop(self, task_id: str) -> Task | None:
        """Pause and refill the countdown."""
        return self._store.mutate(
            task_id, lambda task: None if task.completed else reset_timer(task)
        )

    def toggle_complete(self, task_id: str) -> Task | None:
        """Complete an open task, or reopen a completed one."""

        def change(task: Task) -> Task:
            if task.status is TaskStatus.COMPLETED:
                return mark_uncompleted(task, reset_remaining=self.reset_on_uncomplete)
            return mark_completed(task)

        task = self._store.mutate(task_id, change)
        if task is not None:
            logger.info(f"Task {task_id} is now {task.status.value}")
        return task

    def rollover(self, today: date | None = None) -> list[Task]:
        """
        Move exhausted, unfinished tasks from earlier days forward.

        The new date is the day after exhaustion, but never earlier than
        ``today``. Completed tasks never move.
        """
        today = today or self._time.today()
        moved: list[Task] = []

        def apply(tasks: tuple[Task, ...]) -> list[Task]:
            out = []
            for task in tasks:
                if task.completed or task.exhausted_on is None or task.exhausted_on >= today:
                    out.append(task)
                    continue
                target = max(task.exhausted_on + timedelta(days=1), today)
                rolled = task.with_changes(scheduled_date=target, exhausted_on=None)
                moved.append(rolled)
                out.append(rolled)
            return out

        with self._store.lock:
            if any(
                not task.completed and task.exhausted_on is not None and task.exhausted_on < today
                for task in self._store.tasks
            ):
                self._store.commit(apply)
                logger.info(f"Rolled over {len(moved)} exhausted tasks to {today.isoformat()}")
        return moved
