import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskforge.db.base import Base, UTCDateTime, utcnow


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    owner: Mapped["User"] = relationship(lazy="selectin")  # noqa: F821
    member_links: Mapped[list["ProjectMember"]] = relationship(
        back_populates="project",
        lazy="selectin",
        order_by="ProjectMember.added_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    task_refs: Mapped[list["ProjectTaskRef"]] = relationship(
        lazy="selectin",
        order_by="ProjectTaskRef.added_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def members(self) -> list["User"]:  # noqa: F821
        return [link.user for link in self.member_links]

    @property
    def member_ids(self) -> list[uuid.UUID]:
        return [link.user_id for link in self.member_links]

    @property
    def task_ids(self) -> list[uuid.UUID]:
        return [ref.task_id for ref in self.task_refs]

    @property
    def member_count(self) -> int:
        return len(self.member_links)

    @property
    def task_count(self) -> int:
        return len(self.task_refs)


class ProjectMember(Base):
    """One row per (project, user); the unique key makes membership a set."""

    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    added_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    project: Mapped["Project"] = relationship(back_populates="member_links")
    user: Mapped["User"] = relationship(lazy="selectin")  # noqa: F821


class ProjectTaskRef(Base):
    __tablename__ = "project_task_refs"
    __table_args__ = (
        UniqueConstraint("project_id", "task_id", name="uq_project_task_refs_project_task"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    task_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    added_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
