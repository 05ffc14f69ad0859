"""Task, subtask and timer endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from tasktimer.api.deps import get_engine
from tasktimer.engine.entities import Task
from tasktimer.engine.service import TaskTimerEngine
from tasktimer.schemas.task import (
    ReorderRequest,
    SubTaskCreate,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
    TimerUpdate,
)

router = APIRouter()


def _require_task(engine: TaskTimerEngine, task_id: str) -> Task:
    task = engine.get(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task with id {task_id} not found",
        )
    return task


def _respond(engine: TaskTimerEngine, task_id: str) -> TaskResponse:
    """Return the task's current state; illegal transitions leave it unchanged."""
    return TaskResponse.from_task(_require_task(engine, task_id))


@router.get("/tasks", response_model=list[TaskResponse])
def list_tasks(
    scheduled_date: date | None = Query(None, alias="scheduledDate"),
    engine: TaskTimerEngine = Depends(get_engine),
) -> list[TaskResponse]:
    """List tasks, newest first, optionally for one day."""
    tasks = engine.store.tasks_for(scheduled_date) if scheduled_date else engine.tasks
    return [TaskResponse.from_task(task) for task in tasks]


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(task_in: TaskCreate, engine: TaskTimerEngine = Depends(get_engine)) -> TaskResponse:
    """Create a new task with a full countdown."""
    task = engine.create(
        task_in.title,
        task_in.duration_minutes,
        task_in.category.value,
        [subtask.model_dump() for subtask in task_in.subtasks],
        task_in.scheduled_date,
    )
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid task: check title, duration and subtask titles",
        )
    return TaskResponse.from_task(task)


# Declared before /tasks/{task_id} so "reorder" is not taken for an id
@router.put("/tasks/reorder", response_model=list[TaskResponse])
def reorder_tasks(
    body: ReorderRequest, engine: TaskTimerEngine = Depends(get_engine)
) -> list[TaskResponse]:
    """Reorder tasks to match ``taskIds``."""
    return [TaskResponse.from_task(task) for task in engine.reorder(body.task_ids)]


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: str, engine: TaskTimerEngine = Depends(get_engine)) -> TaskResponse:
    """Get a specific task by ID."""
    return _respond(engine, task_id)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str, task_in: TaskUpdate, engine: TaskTimerEngine = Depends(get_engine)
) -> TaskResponse:
    """Edit a task. Completed tasks cannot be edited."""
    _require_task(engine, task_id)
    subtasks = None
    if task_in.subtasks is not None:
        subtasks = [subtask.model_dump() for subtask in task_in.subtasks]

    task = engine.update(
        task_id, task_in.title, task_in.duration_minutes, task_in.category.value, subtasks
    )
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task with id {task_id} not found or not editable",
        )
    return TaskResponse.from_task(task)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: str, engine: TaskTimerEngine = Depends(get_engine)) -> Response:
    """Delete a task and its subtasks."""
    engine.delete(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/tasks/{task_id}/start", response_model=TaskResponse)
def start_task(task_id: str, engine: TaskTimerEngine = Depends(get_engine)) -> TaskResponse:
    """Start the timer, pausing any other running task."""
    _require_task(engine, task_id)
    engine.start(task_id)
    return _respond(engine, task_id)


@router.post("/tasks/{task_id}/pause", response_model=TaskResponse)
def pause_task(task_id: str, engine: TaskTimerEngine = Depends(get_engine)) -> TaskResponse:
    _require_task(engine, task_id)
    engine.pause(task_id)
    return _respond(engine, task_id)


@router.post("/tasks/{task_id}/toggle", response_model=TaskResponse)
def toggle_task(task_id: str, engine: TaskTimerEngine = Depends(get_engine)) -> TaskResponse:
    """Mark a task completed, or reopen a completed one."""
    _require_task(engine, task_id)
    engine.toggle_complete(task_id)
    return _respond(engine, task_id)


@router.put("/tasks/{task_id}/timer", response_model=TaskResponse)
def update_task_timer(
    task_id: str, updates: TimerUpdate, engine: TaskTimerEngine = Depends(get_engine)
) -> TaskResponse:
    """Store timer state reported by a client."""
    _require_task(engine, task_id)
    engine.store.apply_timer_update(task_id, updates.model_dump(exclude_unset=True))
    return _respond(engine, task_id)


@router.post("/tasks/{task_id}/subtasks", response_model=TaskResponse)
def add_subtask(
    task_id: str, body: SubTaskCreate, engine: TaskTimerEngine = Depends(get_engine)
) -> TaskResponse:
    _require_task(engine, task_id)
    engine.add_subtask(task_id, body.title)
    return _respond(engine, task_id)


@router.post("/tasks/{task_id}/subtasks/{subtask_id}/toggle", response_model=TaskResponse)
def toggle_subtask(
    task_id: str, subtask_id: str, engine: TaskTimerEngine = Depends(get_engine)
) -> TaskResponse:
    """Toggle a subtask; completing the last open one completes the task."""
    _require_task(engine, task_id)
    engine.toggle_subtask(task_id, subtask_id)
    return _respond(engine, task_id)


@router.delete("/tasks/{task_id}/subtasks/{subtask_id}", response_model=TaskResponse)
def delete_subtask(
    task_id: str, subtask_id: str, engine: TaskTimerEngine = Depends(get_engine)
) -> TaskResponse:
    _require_task(engine, task_id)
    engine.delete_subtask(task_id, subtask_id)
    return _respond(engine, task_id)
