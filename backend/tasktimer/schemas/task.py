"""Pydantic schemas for task, subtask and timer requests."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tasktimer.engine.entities import Task, TaskCategory, TaskStatus


class CamelModel(BaseModel):
    """Base schema speaking the camelCase wire format."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubTaskIn(CamelModel):
    """Subtask as sent by a client; the id is optional for new items."""

    id: str | None = None
    title: str = Field(..., min_length=1, max_length=500)
    completed: bool = False


class SubTaskResponse(CamelModel):
    id: str
    title: str
    completed: bool


class TaskBase(CamelModel):
    """Shared editable task fields."""

    title: str = Field(..., min_length=1, max_length=500)
    duration_minutes: int = Field(..., gt=0)
    category: TaskCategory = TaskCategory.PERSONAL


class TaskCreate(TaskBase):
    """Schema for creating a new task."""

    scheduled_date: date | None = None  # defaults to today
    subtasks: list[SubTaskIn] = Field(default_factory=list)


class TaskUpdate(TaskBase):
    """Schema for editing a task. Omitting subtasks keeps the current ones."""

    subtasks: list[SubTaskIn] | None = None


class SubTaskCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)


class TimerUpdate(CamelModel):
    """Timer state pushed by a client; only the fields sent are applied."""

    remaining_ms: int | None = Field(None, ge=0)
    status: TaskStatus | None = None
    last_resumed_at: int | None = None
    exhausted_on: date | None = None


class ReorderRequest(CamelModel):
    task_ids: list[str]


class TaskResponse(CamelModel):
    """Schema for task responses."""

    id: str
    title: str
    duration_minutes: int
    category: TaskCategory
    scheduled_date: date
    remaining_ms: int
    status: TaskStatus
    created_at: int
    started_at: int | None = None
    last_resumed_at: int | None = None
    exhausted_on: date | None = None
    subtasks: list[SubTaskResponse] = Field(default_factory=list)
    completed: bool
    running: bool

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            duration_minutes=task.duration_minutes,
            category=task.category,
            scheduled_date=task.scheduled_date,
            remaining_ms=task.remaining_ms,
            status=task.status,
            created_at=task.created_at,
            started_at=task.started_at,
            last_resumed_at=task.last_resumed_at,
            exhausted_on=task.exhausted_on,
            subtasks=[
                SubTaskResponse(id=st.id, title=st.title, completed=st.completed)
                for st in task.subtasks
            ],
            completed=task.completed,
            running=task.running,
        )
