"""Focus history endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from tasktimer.adapters.sqlalchemy_repository import SqlAlchemyTaskRepository
from tasktimer.api.deps import get_repository
from tasktimer.engine.ledger import FocusLedger
from tasktimer.engine.ports import SystemTimeSource
from tasktimer.schemas.focus import DailyFocusResponse, FocusUpdate

router = APIRouter()


@router.get("/focus")
def get_focus_history(
    day: date | None = Query(None, alias="date"),
    repository: SqlAlchemyTaskRepository = Depends(get_repository),
) -> dict[str, int]:
    """Map of ``YYYY-MM-DD`` to focus seconds, newest first."""
    return repository.load_focus_history(day)


@router.put("/focus")
def update_focus(
    body: FocusUpdate,
    repository: SqlAlchemyTaskRepository = Depends(get_repository),
) -> dict:
    """Overwrite the focus total for one day."""
    repository.set_focus(body.date, body.seconds)
    return {"success": True}


@router.get("/focus/weekly", response_model=list[DailyFocusResponse])
def get_weekly_focus(
    repository: SqlAlchemyTaskRepository = Depends(get_repository),
) -> list[DailyFocusResponse]:
    """The last seven days including today, oldest first, zero-filled."""
    ledger = FocusLedger(repository)
    ledger.load()
    today = SystemTimeSource().today()
    return [
        DailyFocusResponse(date=entry.date, seconds=entry.seconds)
        for entry in ledger.weekly_focus(today)
    ]
