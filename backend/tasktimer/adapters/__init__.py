"""Storage, alarm and remote adapters for the timer engine."""

from tasktimer.adapters.alarms import LoggingAlarmSink
from tasktimer.adapters.json_repository import JsonFileRepository
from tasktimer.adapters.remote import (
    ApiClient,
    ApiError,
    RemoteTaskRepository,
    TokenStore,
    UnauthorizedError,
)
from tasktimer.adapters.sqlalchemy_repository import SqlAlchemyTaskRepository

__all__ = [
    "ApiClient",
    "ApiError",
    "JsonFileRepository",
    "LoggingAlarmSink",
    "RemoteTaskRepository",
    "SqlAlchemyTaskRepository",
    "TokenStore",
    "UnauthorizedError",
]
