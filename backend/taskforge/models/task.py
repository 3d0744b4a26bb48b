import math
import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskforge.db.base import Base, UTCDateTime, utcnow


class TaskStatus(StrEnum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TaskPriority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            "status IN ('To Do', 'In Progress', 'Done')", name="ck_tasks_status"
        ),
        CheckConstraint(
            "priority IN ('Low', 'Medium', 'High', 'Urgent')", name="ck_tasks_priority"
        ),
        Index("ix_tasks_project_status", "project_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TaskStatus.TODO.value
    )
    priority: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TaskPriority.MEDIUM.value
    )
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, index=True)
    assignee_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id"), nullable=True, index=True
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, onupdate=utcnow)

    assignee: Mapped["User | None"] = relationship(  # noqa: F821
        foreign_keys=[assignee_id], lazy="selectin"
    )
    created_by: Mapped["User"] = relationship(  # noqa: F821
        foreign_keys=[created_by_id], lazy="selectin"
    )

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None:
            return False
        return utcnow() > self.due_date and self.status != TaskStatus.DONE

    @property
    def days_until_due(self) -> int | None:
        if self.due_date is None:
            return None
        remaining = (self.due_date - utcnow()).total_seconds() / 86400
        return math.ceil(remaining)
