import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskforge.db.base import Base, UTCDateTime, utcnow


class InvitationStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"  # terminal, invitee added to the project
    REJECTED = "rejected"  # terminal


PENDING_ONLY = text("status = 'pending'")


class Invitation(Base):
    __tablename__ = "invitations"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')", name="ck_invitations_status"
        ),
        # At most one pending invitation per (project, invitee).
        Index(
            "uq_invitations_pending_project_invitee",
            "project_id",
            "invitee_id",
            unique=True,
            postgresql_where=PENDING_ONLY,
            sqlite_where=PENDING_ONLY,
        ),
        Index("ix_invitations_invitee_status", "invitee_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    inviter_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    invitee_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InvitationStatus.PENDING.value
    )
    message: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, onupdate=utcnow)
    # Fixed at creation; the expiry sweep keys on this column.
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    project: Mapped["Project"] = relationship(lazy="selectin")  # noqa: F821
    inviter: Mapped["User"] = relationship(foreign_keys=[inviter_id], lazy="selectin")  # noqa: F821
    invitee: Mapped["User"] = relationship(foreign_keys=[invitee_id], lazy="selectin")  # noqa: F821

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING

    def is_expired_at(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(utcnow())
