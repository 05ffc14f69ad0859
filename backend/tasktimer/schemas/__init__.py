"""Pydantic schemas for request/response validation."""

from tasktimer.schemas.auth import AuthResponse, Credentials
from tasktimer.schemas.focus import DailyFocusResponse, FocusUpdate
from tasktimer.schemas.task import (
    ReorderRequest,
    SubTaskCreate,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
    TimerUpdate,
)

__all__ = [
    "AuthResponse",
    "Credentials",
    "DailyFocusResponse",
    "FocusUpdate",
    "ReorderRequest",
    "SubTaskCreate",
    "TaskCreate",
    "TaskResponse",
    "TaskUpdate",
    "TimerUpdate",
]
