"""Subtask completion propagation."""

from __future__ import annotations

import logging

from tasktimer.engine.entities import Task
from tasktimer.engine.transitions import mark_completed

logger = logging.getLogger(__name__)


def propagate_subtask_completion(task: Task) -> Task:
    """
    Complete ``task`` when it has subtasks and every one of them is done.

    Never reverts a completed task: unchecking a subtask leaves the status
    as it is.
    """
    if not task.subtasks or task.completed:
        return task

    if all(subtask.completed for subtask in task.subtasks):
        logger.info(f"All subtasks done, completing task {task.id}")
        return mark_completed(task)

    return task
