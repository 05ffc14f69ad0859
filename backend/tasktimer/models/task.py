"""Task and subtask models for the focus timer."""

from datetime import date

from sqlalchemy import BigInteger, Boolean, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasktimer.db.base import Base
from tasktimer.engine.entities import TaskCategory, TaskStatus


class Task(Base):
    """A timed task owned by a user."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_user_date", "user_id", "scheduled_date"),
        Index("idx_tasks_user_status", "user_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(
        String(20), default=TaskCategory.PERSONAL.value, nullable=False
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    remaining_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=TaskStatus.PAUSED.value, nullable=False
    )

    # Epoch milliseconds; created_at is also the manual sort key
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    started_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_resumed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    exhausted_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    subtasks: Mapped[list["SubTask"]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="SubTask.position",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title='{self.title}', status={self.status})>"


class SubTask(Base):
    """A checklist item; deleted together with its task."""

    __tablename__ = "subtasks"

    task_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    task: Mapped[Task] = relationship(back_populates="subtasks")

    def __repr__(self) -> str:
        return f"<SubTask(id={self.id}, task={self.task_id}, completed={self.completed})>"
