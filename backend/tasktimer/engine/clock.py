"""Timer clock: advances the running task once per tick."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tasktimer.engine.entities import Task
from tasktimer.engine.ledger import FocusLedger
from tasktimer.engine.ports import AlarmSink, TimeSource
from tasktimer.engine.store import TaskStore
from tasktimer.engine.transitions import mark_completed, mark_exhausted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickResult:
    """What one tick did to the running task."""

    task_id: str
    elapsed_ms: int
    remaining_ms: int
    half_alarm: bool = False
    finished: bool = False


class TimerClock:
    """
    The only component that decrements a running task's countdown.

    In local mode the elapsed time is measured from ``last_resumed_at``. With
    ``fixed_step_ms`` set the clock just counts down by that amount per tick;
    this is the server-synced mode where the client only predicts and a
    periodic resync overwrites the prediction.

    The half-time alarm is edge-triggered and armed once per countdown: it is
    re-armed only when the task's countdown is back at its full duration.
    """

    def __init__(
        self,
        store: TaskStore,
        ledger: FocusLedger,
        alarms: AlarmSink,
        time_source: TimeSource,
        *,
        fixed_step_ms: int | None = None,
        complete_on_exhaust: bool = False,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._alarms = alarms
        self._time = time_source
        self._fixed_step_ms = fixed_step_ms
        self.complete_on_exhaust = complete_on_exhaust
        self._half_fired: set[str] = set()
        self._focus_carry_ms = 0

    def tick(self) -> TickResult | None:
        """Advance the running task, if any. Returns None when idle."""
        with self._store.lock:
            task = self._store.running_task()
            today = self._time.today()
            if task is None or task.scheduled_date != today:
                return None

            now_ms = self._time.now_ms()
            if self._fixed_step_ms is not None:
                elapsed = self._fixed_step_ms
            else:
                elapsed = max(0, now_ms - (task.last_resumed_at or now_ms))

            previous = task.remaining_ms
            remaining = max(previous - elapsed, 0)
            if previous == task.total_ms:
                self._half_fired.discard(task.id)

            half = (
                task.id not in self._half_fired
                and previous > task.total_ms / 2 >= remaining
            )
            if half:
                self._half_fired.add(task.id)

            if remaining == 0:
                updated = self._finish(task)
            else:
                updated = task.with_changes(remaining_ms=remaining, last_resumed_at=now_ms)

            self._store.commit(lambda tasks: [updated if t.id == task.id else t for t in tasks])
            self._record_focus(elapsed)

        if half:
            logger.info(f"Task {task.id} is halfway done")
            self._ring()
        if remaining == 0:
            logger.info(f"Timer finished for task {task.id}")
            self._ring()

        return TickResult(
            task_id=task.id,
            elapsed_ms=elapsed,
            remaining_ms=remaining,
            half_alarm=half,
            finished=remaining == 0,
        )

    def forget(self, task_id: str) -> None:
        """Drop alarm state for a task that no longer exists."""
        self._half_fired.discard(task_id)

    def _finish(self, task: Task) -> Task:
        self._half_fired.discard(task.id)
        if self.complete_on_exhaust:
            return mark_completed(task)
        return mark_exhausted(task, self._time.today())

    def _record_focus(self, elapsed_ms: int) -> None:
        # carry sub-second remainders so jittery ticks don't lose time
        total_ms = self._focus_carry_ms + elapsed_ms
        seconds, self._focus_carry_ms = divmod(total_ms, 1000)
        self._ledger.increment(self._time.today(), seconds)

    def _ring(self) -> None:
        try:
            self._alarms.play_alarm()
        except Exception:
            logger.exception("Alarm playback failed")
