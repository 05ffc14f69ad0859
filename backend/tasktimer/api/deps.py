"""Shared FastAPI dependencies."""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from tasktimer.adapters.alarms import LoggingAlarmSink
from tasktimer.adapters.sqlalchemy_repository import SqlAlchemyTaskRepository
from tasktimer.core.security import authenticate_token
from tasktimer.core.settings import get_settings
from tasktimer.db.base import get_db
from tasktimer.engine.service import TaskTimerEngine
from tasktimer.models.user import User


def get_current_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user or fail with 401."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    user = authenticate_token(db, authorization[len("Bearer "):])
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


def get_repository(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SqlAlchemyTaskRepository:
    return SqlAlchemyTaskRepository(db, user.id)


def get_engine(
    repository: SqlAlchemyTaskRepository = Depends(get_repository),
) -> TaskTimerEngine:
    """
    Engine over the current user's stored tasks, loaded for this request.

    Persistence is strict: a write that did not reach the database fails
    the request with ``PersistenceError``.
    """
    engine = TaskTimerEngine.from_settings(
        repository, LoggingAlarmSink(), get_settings(), strict_persistence=True
    )
    engine.store.load()
    return engine
