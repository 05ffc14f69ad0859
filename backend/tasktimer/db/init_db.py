"""Database initialization utilities."""

import logging

from tasktimer.db.base import Base, engine
from tasktimer.models import FocusEntry, SubTask, Task, User  # noqa: F401 - ensures models are registered

logger = logging.getLogger(__name__)


def init_db(bind=None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("✅ Database tables created successfully")


if __name__ == "__main__":
    init_db()
