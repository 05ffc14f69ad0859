"""Per-day focus time accumulator."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, timedelta

from tasktimer.engine.ports import AuthenticationRequired, TaskRepository

logger = logging.getLogger(__name__)

WEEK_DAYS = 7


@dataclass(frozen=True)
class DailyFocus:
    """Focus seconds for one calendar day."""

    date: date
    seconds: int


class FocusLedger:
    """
    Maps calendar dates to seconds focused.

    Writes are batched: the history is flushed every ``flush_every``
    increments, so a crash loses at most that many ticks.
    """

    def __init__(self, repository: TaskRepository, *, flush_every: int = 10) -> None:
        self._repository = repository
        self._flush_every = max(1, flush_every)
        self._history: dict[str, int] = {}
        self._pending = 0
        self._lock = threading.Lock()

    def load(self) -> dict[str, int]:
        history = self._repository.load_focus_history() or {}
        with self._lock:
            self._history = {str(day): int(seconds) for day, seconds in history.items()}
            self._pending = 0
        return dict(self._history)

    @property
    def history(self) -> dict[str, int]:
        return dict(self._history)

    def focused_on(self, day: date) -> int:
        return self._history.get(day.isoformat(), 0)

    def increment(self, day: date, seconds: int) -> int:
        """Add ``seconds`` to ``day`` and flush when the batch is full."""
        key = day.isoformat()
        with self._lock:
            total = self._history.get(key, 0) + max(0, int(seconds))
            self._history[key] = total
            self._pending += 1
            should_flush = self._pending >= self._flush_every
        if should_flush:
            self.flush()
        return total

    def set(self, day: date, seconds: int) -> None:
        """Overwrite a day's total (server reconciliation)."""
        with self._lock:
            self._history[day.isoformat()] = max(0, int(seconds))

    def flush(self) -> None:
        with self._lock:
            snapshot = dict(self._history)
            self._pending = 0
        try:
            self._repository.save_focus_history(snapshot)
        except AuthenticationRequired:
            raise
        except Exception:
            logger.exception("Failed to persist focus history")

    def weekly_focus(self, today: date) -> list[DailyFocus]:
        """Today and the six days before it, oldest first, zero-filled."""
        return [
            DailyFocus(date=day, seconds=self.focused_on(day))
            for day in (today - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1))
        ]
