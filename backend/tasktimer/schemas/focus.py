"""Pydantic schemas for focus history."""

import datetime

from pydantic import Field

from tasktimer.schemas.task import CamelModel


class FocusUpdate(CamelModel):
    """Set the total focus seconds for one day."""

    date: datetime.date
    seconds: int = Field(..., ge=0)


class DailyFocusResponse(CamelModel):
    date: datetime.date
    seconds: int
