"""In-memory task store with snapshot persistence."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from tasktimer.engine.entities import (
    SubTask,
    Task,
    TaskStatus,
    generate_id,
    has_duplicate_titles,
    parse_date,
    validate_task_fields,
)
from tasktimer.engine.ports import AuthenticationRequired, TaskRepository, TimeSource
from tasktimer.engine.propagation import propagate_subtask_completion
from tasktimer.engine.transitions import can_start, mark_completed, mark_paused, mark_running

logger = logging.getLogger(__name__)

TIMER_FIELDS = ("remaining_ms", "status", "last_resumed_at", "exhausted_on")


class PersistenceError(Exception):
    """The repository refused a snapshot and the store was told not to carry on."""


def _ordered(tasks: Iterable[Task]) -> tuple[Task, ...]:
    """Newest first; ``created_at`` doubles as the manual sort key."""
    return tuple(sorted(tasks, key=lambda task: task.created_at, reverse=True))


class TaskStore:
    """
    Canonical list of tasks.

    Every mutation computes a complete replacement snapshot, hands it to the
    repository, then swaps it in. A failed write is logged and the new
    snapshot is kept anyway: the running timer matters more than the disk.

    With ``strict=True`` a failed write raises ``PersistenceError`` and the
    in-memory view is left as it was. Rejected credentials always propagate.
    """

    def __init__(
        self,
        repository: TaskRepository,
        time_source: TimeSource,
        *,
        id_factory: Callable[[], str] = generate_id,
        strict: bool = False,
    ) -> None:
        self._repository = repository
        self.strict = strict
        self._time = time_source
        self._id_factory = id_factory
        self._tasks: tuple[Task, ...] = ()
        self.lock = threading.RLock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def running_task(self) -> Task | None:
        for task in self._tasks:
            if task.status is TaskStatus.RUNNING:
                return task
        return None

    def tasks_for(self, day: date) -> list[Task]:
        return [task for task in self._tasks if task.scheduled_date == day]

    # ------------------------------------------------------------------
    # Snapshot plumbing
    # ------------------------------------------------------------------

    def load(self) -> list[Task]:
        """Load and normalise tasks, writing back only when records were repaired."""
        records = list(self._repository.load_tasks())
        tasks = self.normalize(records)
        if [task.to_record() for task in tasks] != records:
            self.commit(lambda _: tasks)
        else:
            with self.lock:
                self._tasks = _ordered(tasks)
        logger.info(f"Loaded {len(tasks)} tasks")
        return self.tasks

    def normalize(self, records: Iterable[dict[str, Any]]) -> list[Task]:
        """Repair stored records: ids, defaults, bounds and the single runner."""
        today = self._time.today()
        now_ms = self._time.now_ms()
        seen: set[str] = set()
        tasks: list[Task] = []

        for record in records:
            task = Task.from_record(record, today=today, now_ms=now_ms)
            if task.id in seen:
                task = task.with_changes(id=self._id_factory())
            if len({st.id for st in task.subtasks}) != len(task.subtasks):
                task = task.with_changes(subtasks=self._unique_subtask_ids(task.subtasks))
            seen.add(task.id)
            tasks.append(task)

        runners = [task for task in tasks if task.status is TaskStatus.RUNNING]
        if len(runners) > 1:
            keep = max(runners, key=lambda task: task.last_resumed_at or 0)
            logger.warning(f"Found {len(runners)} running tasks, keeping {keep.id}")
            tasks = [
                mark_paused(task) if task.running and task.id != keep.id else task
                for task in tasks
            ]

        return tasks

    def commit(self, updater: Callable[[tuple[Task, ...]], Iterable[Task]]) -> tuple[Task, ...]:
        """Compute the next snapshot from the current one, persist, swap."""
        with self.lock:
            next_tasks = _ordered(updater(self._tasks))
            self._persist(next_tasks)
            self._tasks = next_tasks
            return next_tasks

    def mutate(self, task_id: str, change: Callable[[Task], Task | None]) -> Task | None:
        """Apply ``change`` to one task. ``None`` from ``change`` means reject."""
        with self.lock:
            current = self.get(task_id)
            if current is None:
                return None
            updated = change(current)
            if updated is None:
                return None
            if updated != current:
                self.commit(lambda tasks: [updated if t.id == task_id else t for t in tasks])
            return updated

    def replace_all(self, tasks: Iterable[Task | dict[str, Any]]) -> list[Task]:
        """Overwrite the local list with an authoritative copy."""
        items = list(tasks)
        records = [item for item in items if isinstance(item, dict)]
        if records:
            normalized = iter(self.normalize(records))
            items = [next(normalized) if isinstance(item, dict) else item for item in items]
        self.commit(lambda _: items)
        return self.tasks

    def _persist(self, tasks: tuple[Task, ...]) -> None:
        try:
            self._repository.save_tasks([task.to_record() for task in tasks])
        except AuthenticationRequired:
            raise
        except Exception as exc:
            logger.exception(f"Failed to persist {len(tasks)} tasks")
            if self.strict:
                raise PersistenceError(str(exc)) from exc

    def _next_sort_key(self) -> int:
        newest = max((task.created_at for task in self._tasks), default=0)
        return max(self._time.now_ms(), newest + 1)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(
        self,
        title: str,
        duration_minutes: int,
        category: str,
        subtasks: Iterable[SubTask | dict[str, Any]] = (),
        scheduled_date: date | str | None = None,
    ) -> Task | None:
        """Create a PAUSED task with a full countdown. Returns None if invalid."""
        cleaned = validate_task_fields(title, duration_minutes, category)
        children = self._build_subtasks(subtasks)
        if cleaned is None or children is None:
            logger.debug(f"Rejected task create: {title!r}")
            return None
        title, duration_minutes, task_category = cleaned

        with self.lock:
            task = Task(
                id=self._id_factory(),
                title=title,
                duration_minutes=duration_minutes,
                category=task_category,
                scheduled_date=parse_date(scheduled_date) or self._time.today(),
                remaining_ms=duration_minutes * 60_000,
                status=TaskStatus.PAUSED,
                created_at=self._next_sort_key(),
                subtasks=children,
            )
            task = propagate_subtask_completion(task)
            self.commit(lambda tasks: [task, *tasks])

        logger.info(f"Created task {task.id} ({task.duration_minutes}m, {task.category.value})")
        return task

    def update(
        self,
        task_id: str,
        title: str,
        duration_minutes: int,
        category: str,
        subtasks: Iterable[SubTask | dict[str, Any]] | None = None,
    ) -> Task | None:
        """Edit a task. No-op on missing, completed or invalid input."""
        cleaned = validate_task_fields(title, duration_minutes, category)
        children = None if subtasks is None else self._build_subtasks(subtasks)
        if cleaned is None or (subtasks is not None and children is None):
            return None
        title, duration_minutes, task_category = cleaned

        def change(task: Task) -> Task | None:
            if task.completed:
                return None
            remaining = task.remaining_ms
            if duration_minutes != task.duration_minutes and remaining == task.total_ms:
                # untouched countdown follows the new duration
                remaining = duration_minutes * 60_000
            updated = task.with_changes(
                title=title,
                duration_minutes=duration_minutes,
                category=task_category,
                remaining_ms=remaining,
                subtasks=task.subtasks if children is None else children,
            )
            return propagate_subtask_completion(updated)

        return self.mutate(task_id, change)

    def delete(self, task_id: str) -> bool:
        """Remove a task and its subtasks. Removing the runner stops the timer."""
        with self.lock:
            if self.get(task_id) is None:
                return False
            self.commit(lambda tasks: [t for t in tasks if t.id != task_id])
        logger.info(f"Deleted task {task_id}")
        return True

    def reorder(self, ordered_ids: Iterable[str]) -> list[Task]:
        """Reassign sort keys so the listed tasks appear in the given order."""
        with self.lock:
            known = {task.id for task in self._tasks}
            ids: list[str] = []
            for task_id in ordered_ids:
                if task_id in known and task_id not in ids:
                    ids.append(task_id)
            if not ids:
                return self.tasks

            base = self._next_sort_key()
            keys = {task_id: base + len(ids) - 1 - index for index, task_id in enumerate(ids)}
            self.commit(
                lambda tasks: [
                    t.with_changes(created_at=keys[t.id]) if t.id in keys else t for t in tasks
                ]
            )
        return self.tasks

    # ------------------------------------------------------------------
    # Subtasks
    # ------------------------------------------------------------------

    def add_subtask(self, task_id: str, title: str) -> Task | None:
        title = (title or "").strip()
        if not title:
            return None

        def change(task: Task) -> Task | None:
            if task.completed:
                return None
            subtasks = (*task.subtasks, SubTask(id=self._id_factory(), title=title))
            if has_duplicate_titles(subtasks):
                return None
            return propagate_subtask_completion(task.with_changes(subtasks=subtasks))

        return self.mutate(task_id, change)

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Task | None:
        def change(task: Task) -> Task | None:
            if task.completed or all(st.id != subtask_id for st in task.subtasks):
                return None
            subtasks = tuple(
                SubTask(id=st.id, title=st.title, completed=not st.completed)
                if st.id == subtask_id
                else st
                for st in task.subtasks
            )
            return propagate_subtask_completion(task.with_changes(subtasks=subtasks))

        return self.mutate(task_id, change)

    def delete_subtask(self, task_id: str, subtask_id: str) -> Task | None:
        def change(task: Task) -> Task | None:
            if task.completed or all(st.id != subtask_id for st in task.subtasks):
                return None
            subtasks = tuple(st for st in task.subtasks if st.id != subtask_id)
            return propagate_subtask_completion(task.with_changes(subtasks=subtasks))

        return self.mutate(task_id, change)

    def _unique_subtask_ids(self, subtasks: tuple[SubTask, ...]) -> tuple[SubTask, ...]:
        seen: set[str] = set()
        out = []
        for subtask in subtasks:
            if subtask.id in seen:
                subtask = SubTask(id=self._id_factory(), title=subtask.title, completed=subtask.completed)
            seen.add(subtask.id)
            out.append(subtask)
        return tuple(out)

    def _build_subtasks(
        self, items: Iterable[SubTask | dict[str, Any]]
    ) -> tuple[SubTask, ...] | None:
        subtasks: list[SubTask] = []
        ids: set[str] = set()
        for item in items:
            if isinstance(item, SubTask):
                subtask = item
            else:
                subtask = SubTask(
                    id=item.get("id") or self._id_factory(),
                    title=item.get("title") or "",
                    completed=bool(item.get("completed", False)),
                )
            if not subtask.title.strip() or subtask.id in ids:
                return None
            ids.add(subtask.id)
            subtasks.append(SubTask(id=subtask.id, title=subtask.title.strip(), completed=subtask.completed))
        if has_duplicate_titles(subtasks):
            return None
        return tuple(subtasks)

    # ------------------------------------------------------------------
    # Timer state written by a client
    # ------------------------------------------------------------------

    def apply_timer_update(self, task_id: str, changes: dict[str, Any]) -> Task | None:
        """
        Store timer fields reported by a client.

        Accepts any of ``remaining_ms``, ``status``, ``last_resumed_at`` and
        ``exhausted_on``. Completed tasks are left alone. A RUNNING status
        pauses whichever other task was running in the same commit.
        """
        fields = {key: value for key, value in changes.items() if key in TIMER_FIELDS}

        with self.lock:
            current = self.get(task_id)
            if current is None or current.completed:
                return None
            if not fields:
                return current

            if "status" in fields:
                fields["status"] = TaskStatus(fields["status"])
            if "exhausted_on" in fields:
                fields["exhausted_on"] = parse_date(fields["exhausted_on"])

            updated = current.with_changes(**fields)
            if updated.status is TaskStatus.COMPLETED:
                updated = mark_completed(updated)
            elif updated.status is TaskStatus.PAUSED:
                updated = updated.with_changes(last_resumed_at=None)
            elif not current.running:
                if not can_start(updated, self._time.today()):
                    logger.debug(f"Rejected RUNNING timer push for task {task_id}")
                    return None
                updated = mark_running(updated, updated.last_resumed_at or self._time.now_ms())

            def apply(tasks: tuple[Task, ...]) -> list[Task]:
                out = []
                for task in tasks:
                    if task.id == task_id:
                        out.append(updated)
                    elif updated.running and task.running:
                        out.append(mark_paused(task))
                    else:
                        out.append(task)
                return out

            self.commit(apply)
            return updated
