"""Pure status transitions for a single task.

Each function returns a new ``Task``; none of them touch other tasks. The
single-runner invariant is enforced by the reconciler, which applies these
across the whole list in one commit.
"""

from __future__ import annotations

from datetime import date

from tasktimer.engine.entities import Task, TaskStatus


def can_start(task: Task, today: date) -> bool:
    """Start guard: scheduled for today, time left, not completed."""
    return (
        task.status is not TaskStatus.COMPLETED
        and task.scheduled_date == today
        and task.remaining_ms > 0
    )


def mark_running(task: Task, now_ms: int) -> Task:
    return task.with_changes(
        status=TaskStatus.RUNNING,
        last_resumed_at=now_ms,
        started_at=task.started_at if task.started_at is not None else now_ms,
    )


def mark_paused(task: Task) -> Task:
    return task.with_changes(status=TaskStatus.PAUSED, last_resumed_at=None)


def mark_exhausted(task: Task, today: date) -> Task:
    """Countdown hit zero before the task was completed."""
    return task.with_changes(
        status=TaskStatus.PAUSED,
        remaining_ms=0,
        last_resumed_at=None,
        exhausted_on=today,
    )


def mark_completed(task: Task) -> Task:
    return task.with_changes(
        status=TaskStatus.COMPLETED,
        remaining_ms=0,
        last_resumed_at=None,
        exhausted_on=None,
    )


def mark_uncompleted(task: Task, *, reset_remaining: bool) -> Task:
    return task.with_changes(
        status=TaskStatus.PAUSED,
        remaining_ms=task.total_ms if reset_remaining else 0,
        last_resumed_at=None,
    )


def reset_timer(task: Task) -> Task:
    """Stop: pause and refill the countdown."""
    return mark_paused(task).with_changes(remaining_ms=task.total_ms)
