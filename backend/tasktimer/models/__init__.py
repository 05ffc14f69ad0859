"""Database models."""

from tasktimer.models.focus import FocusEntry
from tasktimer.models.task import SubTask, Task
from tasktimer.models.user import User

__all__ = ["Task", "SubTask", "User", "FocusEntry"]
