"""Task timer and status reconciliation engine."""

from tasktimer.engine.clock import TickResult, TimerClock
from tasktimer.engine.entities import SubTask, Task, TaskCategory, TaskStatus, generate_id
from tasktimer.engine.ledger import DailyFocus, FocusLedger
from tasktimer.engine.ports import (
    AlarmSink,
    AuthenticationRequired,
    SystemTimeSource,
    TaskRepository,
    TimeSource,
)
from tasktimer.engine.reconciler import StatusReconciler
from tasktimer.engine.service import TaskTimerEngine
from tasktimer.engine.store import PersistenceError, TaskStore

__all__ = [
    "AlarmSink",
    "AuthenticationRequired",
    "DailyFocus",
    "FocusLedger",
    "PersistenceError",
    "StatusReconciler",
    "SubTask",
    "SystemTimeSource",
    "Task",
    "TaskCategory",
    "TaskRepository",
    "TaskStatus",
    "TaskStore",
    "TaskTimerEngine",
    "TickResult",
    "TimeSource",
    "TimerClock",
    "generate_id",
]
