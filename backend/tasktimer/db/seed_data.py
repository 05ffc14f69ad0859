"""Seed the database with a demo user and sample tasks."""

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from tasktimer.adapters.alarms import LoggingAlarmSink
from tasktimer.adapters.sqlalchemy_repository import SqlAlchemyTaskRepository
from tasktimer.core.security import AuthError, login_user, register_user
from tasktimer.db.base import SessionLocal
from tasktimer.engine.service import TaskTimerEngine

logger = logging.getLogger(__name__)

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "demo-password"

SAMPLE_TASKS = [
    # (title, minutes, category, subtasks, days from today)
    ("Morning review", 15, "personal", ["Inbox zero", "Plan the day"], 0),
    ("Write API docs", 50, "professional", ["Auth endpoints", "Timer endpoints"], 0),
    ("Read chapter 4", 30, "study", [], 0),
    ("Refactor timer tests", 45, "professional", [], 1),
    ("Flashcards", 20, "study", ["Deck A", "Deck B", "Deck C"], 1),
    ("Weekly retro notes", 25, "personal", [], 3),
]


def seed_tasks(db: Session | None = None) -> int:
    """Create the demo account if needed and replace its tasks with samples."""
    own_session = db is None
    db = db or SessionLocal()

    try:
        try:
            user, _ = register_user(db, DEMO_USERNAME, DEMO_PASSWORD)
        except AuthError:
            user, _ = login_user(db, DEMO_USERNAME, DEMO_PASSWORD)

        repository = SqlAlchemyTaskRepository(db, user.id)
        engine = TaskTimerEngine(repository, LoggingAlarmSink())
        engine.load()

        # Clear existing tasks
        for task in engine.tasks:
            engine.delete(task.id)

        today = engine.time.today()
        for title, minutes, category, subtasks, offset in SAMPLE_TASKS:
            engine.create(
                title,
                minutes,
                category,
                [{"title": name} for name in subtasks],
                today + timedelta(days=offset),
            )

        # A little history for the weekly report
        for offset, seconds in ((1, 1500), (2, 2700), (4, 900)):
            engine.ledger.set(today - timedelta(days=offset), seconds)
        engine.flush()

        count = len(engine.tasks)
        logger.info(f"✅ Successfully seeded {count} sample tasks for '{DEMO_USERNAME}'")
        return count
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_tasks()
