"""Engine facade wiring the store, ledger, reconciler and timer clock."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from tasktimer.engine.clock import TickResult, TimerClock
from tasktimer.engine.entities import SubTask, Task, generate_id
from tasktimer.engine.ledger import DailyFocus, FocusLedger
from tasktimer.engine.ports import (
    AlarmSink,
    AuthenticationRequired,
    SystemTimeSource,
    TaskRepository,
    TimeSource,
)
from tasktimer.engine.reconciler import StatusReconciler
from tasktimer.engine.store import TaskStore

logger = logging.getLogger(__name__)


class TaskTimerEngine:
    """
    Single entry point for task, timer and focus operations.

    Callers mutate state only through these methods. ``run`` drives the
    periodic tick, rollover sweep and (optionally) server resync on the
    current asyncio loop.
    """

    def __init__(
        self,
        repository: TaskRepository,
        alarms: AlarmSink,
        time_source: TimeSource | None = None,
        *,
        flush_every: int = 10,
        reset_on_uncomplete: bool = True,
        complete_on_exhaust: bool = False,
        fixed_step_ms: int | None = None,
        id_factory: Callable[[], str] = generate_id,
        strict_persistence: bool = False,
    ) -> None:
        self.time = time_source or SystemTimeSource()
        self.alarms = alarms
        self.store = TaskStore(
            repository, self.time, id_factory=id_factory, strict=strict_persistence
        )
        self.ledger = FocusLedger(repository, flush_every=flush_every)
        self.reconciler = StatusReconciler(
            self.store, self.time, reset_on_uncomplete=reset_on_uncomplete
        )
        self.clock = TimerClock(
            self.store,
            self.ledger,
            alarms,
            self.time,
            fixed_step_ms=fixed_step_ms,
            complete_on_exhaust=complete_on_exhaust,
        )

    @classmethod
    def from_settings(
        cls,
        repository: TaskRepository,
        alarms: AlarmSink,
        settings: Any,
        *,
        server_synced: bool = False,
        strict_persistence: bool = False,
        time_source: TimeSource | None = None,
    ) -> "TaskTimerEngine":
        """Build an engine with policy flags taken from ``Settings``."""
        step = int(settings.tick_interval_seconds * 1000) if server_synced else None
        return cls(
            repository,
            alarms,
            time_source,
            flush_every=settings.focus_flush_every,
            reset_on_uncomplete=settings.reset_on_uncomplete,
            complete_on_exhaust=settings.complete_on_exhaust,
            fixed_step_ms=step,
            strict_persistence=strict_persistence,
        )

    def load(self) -> list[Task]:
        """Load tasks and focus history from the repository."""
        self.ledger.load()
        return self.store.load()

    # Reads

    @property
    def tasks(self) -> list[Task]:
        return self.store.tasks

    def get(self, task_id: str) -> Task | None:
        return self.store.get(task_id)

    def today_tasks(self) -> list[Task]:
        return self.store.tasks_for(self.time.today())

    @property
    def focused_today(self) -> int:
        return self.ledger.focused_on(self.time.today())

    def weekly_focus(self) -> list[DailyFocus]:
        return self.ledger.weekly_focus(self.time.today())

    # Store operations

    def create(
        self,
        title: str,
        duration_minutes: int,
        category: str,
        subtasks: Iterable[SubTask | dict[str, Any]] = (),
        scheduled_date: date | str | None = None,
    ) -> Task | None:
        return self.store.create(title, duration_minutes, category, subtasks, scheduled_date)

    def update(
        self,
        task_id: str,
        title: str,
        duration_minutes: int,
        category: str,
        subtasks: Iterable[SubTask | dict[str, Any]] | None = None,
    ) -> Task | None:
        return self.store.update(task_id, title, duration_minutes, category, subtasks)

    def delete(self, task_id: str) -> bool:
        deleted = self.store.delete(task_id)
        if deleted:
            self.clock.forget(task_id)
        return deleted

    def reorder(self, ordered_ids: Iterable[str]) -> list[Task]:
        return self.store.reorder(ordered_ids)

    def add_subtask(self, task_id: str, title: str) -> Task | None:
        return self.store.add_subtask(task_id, title)

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Task | None:
        return self.store.toggle_subtask(task_id, subtask_id)

    def delete_subtask(self, task_id: str, subtask_id: str) -> Task | None:
        return self.store.delete_subtask(task_id, subtask_id)

    # Status transitions

    def start(self, task_id: str) -> Task | None:
        before = self.store.get(task_id)
        task = self.reconciler.start(task_id)
        if task is not None and (before is None or not before.running):
            self._schedule_notification(task)
        return task

    def resume(self, task_id: str) -> Task | None:
        return self.start(task_id)

    def pause(self, task_id: str) -> Task | None:
        return self.reconciler.pause(task_id)

    def stop(self, task_id: str) -> Task | None:
        return self.reconciler.stop(task_id)

    def toggle_complete(self, task_id: str) -> Task | None:
        return self.reconciler.toggle_complete(task_id)

    # Periodic work

    def tick(self) -> TickResult | None:
        return self.clock.tick()

    def rollover(self) -> list[Task]:
        return self.reconciler.rollover()

    def reconcile(self, tasks: Iterable[Task | dict[str, Any]]) -> list[Task]:
        """Overwrite the local prediction with the authoritative task list."""
        return self.store.replace_all(tasks)

    def flush(self) -> None:
        self.ledger.flush()

    async def run(
        self,
        *,
        tick_interval: float = 1.0,
        rollover_interval: float = 60.0,
        resync: Callable[[], Iterable[Task | dict[str, Any]]] | None = None,
        resync_interval: float = 30.0,
    ) -> None:
        """
        Run the tick, rollover and optional resync loops until cancelled.

        Steps run in a worker thread so blocking repository calls do not
        stall the event loop. A failing step is logged and retried on the
        next interval, except ``AuthenticationRequired``, which stops every
        loop and is raised to the caller.

        ``resync`` should return the authoritative task list (for example
        ``RemoteTaskRepository.load_tasks``).
        """
        loops = [
            self._periodic("tick", self.tick, tick_interval),
            self._periodic("rollover", self.rollover, rollover_interval),
        ]
        if resync is not None:
            loops.append(
                self._periodic("resync", lambda: self.reconcile(resync()), resync_interval)
            )

        tasks = [asyncio.create_task(loop) for loop in loops]
        logger.info("Timer engine loops started")
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            try:
                self.flush()
            except AuthenticationRequired:
                logger.warning("Focus history not flushed: credentials rejected")
            logger.info("Timer engine loops stopped")

    async def _periodic(self, name: str, step: Callable[[], Any], interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await asyncio.to_thread(step)
            except AuthenticationRequired:
                logger.error(f"{name} step rejected: credentials no longer valid, stopping")
                raise
            except Exception:
                logger.exception(f"{name} step failed")

    def _schedule_notification(self, task: Task) -> None:
        try:
            self.alarms.schedule_timer_notification(task.title, task.remaining_ms / 60_000)
        except Exception:
            logger.exception(f"Failed to schedule notification for task {task.id}")
