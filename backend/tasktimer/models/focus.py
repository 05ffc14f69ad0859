"""Per-day focus history model."""

from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tasktimer.db.base import Base


class FocusEntry(Base):
    """Seconds focused by one user on one calendar day."""

    __tablename__ = "focus_history"

    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    day: Mapped[date] = mapped_column("date", Date, primary_key=True)
    seconds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<FocusEntry(user={self.user_id}, date={self.day}, seconds={self.seconds})>"
