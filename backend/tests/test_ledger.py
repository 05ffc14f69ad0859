# tests/test_ledger.py

from __future__ import annotations

import logging
from datetime import date

from tasktimer.engine.ledger import DailyFocus, FocusLedger

from .fakes import InMemoryRepository


def test_weekly_focus_is_zero_filled_oldest_first() -> None:
    repo = InMemoryRepository(focus={"2024-01-07": 300, "2024-01-03": 60, "2023-12-25": 999})
    ledger = FocusLedger(repo)
    ledger.load()

    week = ledger.weekly_focus(date(2024, 1, 7))

    assert len(week) == 7
    assert week[0] == DailyFocus(date=date(2024, 1, 1), seconds=0)
    assert week[-1] == DailyFocus(date=date(2024, 1, 7), seconds=300)
    assert [entry.seconds for entry in week] == [0, 0, 60, 0, 0, 0, 300]
    assert [entry.date for entry in week] == sorted(entry.date for entry in week)


def test_increment_accumulates_and_flushes_on_batch() -> None:
    repo = InMemoryRepository()
    ledger = FocusLedger(repo, flush_every=2)
    day = date(2024, 1, 1)

    assert ledger.increment(day, 5) == 5
    assert repo.focus_saves == 0
    assert ledger.increment(day, 7) == 12
    assert repo.focus == {"2024-01-01": 12}


def test_increment_ignores_negative_seconds() -> None:
    ledger = FocusLedger(InMemoryRepository())
    day = date(2024, 1, 1)

    ledger.increment(day, 10)
    ledger.increment(day, -4)

    assert ledger.focused_on(day) == 10


def test_set_overwrites_day_total() -> None:
    repo = InMemoryRepository(focus={"2024-01-01": 100})
    ledger = FocusLedger(repo)
    ledger.load()

    ledger.set(date(2024, 1, 1), 40)
    ledger.flush()

    assert repo.focus == {"2024-01-01": 40}


def test_flush_failure_is_logged(caplog) -> None:
    repo = InMemoryRepository()
    repo.fail_saves = True
    ledger = FocusLedger(repo)
    ledger.increment(date(2024, 1, 1), 3)

    with caplog.at_level(logging.ERROR, logger="tasktimer.engine.ledger"):
        ledger.flush()

    assert "Failed to persist focus history" in caplog.text
    assert ledger.focused_on(date(2024, 1, 1)) == 3


def test_weekly_focus_spans_year_boundary() -> None:
    repo = InMemoryRepository(focus={"2024-01-01": 120})
    ledger = FocusLedger(repo)
    ledger.load()

    week = ledger.weekly_focus(date(2024, 1, 3))

    assert [entry.date for entry in week][0] == date(2023, 12, 28)
    assert [entry.date for entry in week][-1] == date(2024, 1, 3)
    assert [entry.date for entry in week if entry.seconds] == [date(2024, 1, 1)]
