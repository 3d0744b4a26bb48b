"""Invitation ledger: creation, listing, cancellation and the expiry purge.

Resolution (accept/reject) lives in ``taskforge.services.membership``;
this module only provides the guarded status transition it relies on.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.config import settings
from taskforge.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from taskforge.core.identifiers import as_uuid, same_id
from taskforge.db.base import utcnow
from taskforge.models.invitation import Invitation, InvitationStatus
from taskforge.services import identity, projects

logger = logging.getLogger(__name__)

MESSAGE_MAX_LENGTH = 500


def default_message(project_name: str) -> str:
    return f"You've been invited to join {project_name}"


def _clean_message(message: str | None, project_name: str) -> str:
    message = (message or "").strip()
    if len(message) > MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message must be at most {MESSAGE_MAX_LENGTH} characters")
    return message or default_message(project_name)


async def _load(db: AsyncSession, invitation_id: uuid.UUID) -> Invitation | None:
    result = await db.execute(
        select(Invitation)
        .where(Invitation.id == invitation_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_invitation(db: AsyncSession, invitation_id: Any) -> Invitation:
    invitation = await _load(db, as_uuid(invitation_id))
    if invitation is None:
        raise NotFoundError("Invitation not found")
    return invitation


async def _pending_exists(
    db: AsyncSession, project_id: uuid.UUID, invitee_id: uuid.UUID
) -> bool:
    result = await db.execute(
        select(Invitation.id).where(
            Invitation.project_id == project_id,
            Invitation.invitee_id == invitee_id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
    )
    return result.first() is not None


async def create_invitation(
    db: AsyncSession,
    project_id: Any,
    inviter: Any,
    invitee_id: Any,
    message: str | None = None,
) -> Invitation:
    """Invite a user to a project.

    Checks run in a fixed order and the first failure wins: project exists,
    inviter owns it, invitee exists, invitee is not a member, no pending
    invitation for the pair. The last check is backed by a partial unique
    index, so a concurrent duplicate that slips past the pre-check fails
    on insert with the same ConflictError.
    """
    project = await projects.get_project(db, project_id)
    if not projects.is_owner(project, inviter):
        raise PermissionDeniedError("Only the project owner can send invitations")

    invitee = await identity.get_user(db, invitee_id)
    if projects.is_member(project, invitee):
        raise ConflictError("User is already a member of this project")
    if await _pending_exists(db, project.id, invitee.id):
        raise ConflictError("Invitation already sent to this user")

    now = utcnow()
    invitation = Invitation(
        project_id=project.id,
        inviter_id=as_uuid(inviter),
        invitee_id=invitee.id,
        status=InvitationStatus.PENDING.value,
        message=_clean_message(message, project.name),
        created_at=now,
        expires_at=now + timedelta(days=settings.INVITATION_TTL_DAYS),
    )
    try:
        # Savepoint: a lost race undoes only this insert, not the caller's work.
        async with db.begin_nested():
            db.add(invitation)
            await db.flush()
    except IntegrityError as exc:
        raise ConflictError("Invitation already sent to this user") from exc

    logger.info(
        "Invitation %s created: project=%s invitee=%s", invitation.id, project.id, invitee.id
    )
    return await get_invitation(db, invitation.id)


async def list_for_invitee(db: AsyncSession, user: Any) -> list[Invitation]:
    """Pending invitations addressed to ``user``, newest first."""
    result = await db.execute(
        select(Invitation)
        .where(
            Invitation.invitee_id == as_uuid(user),
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .order_by(Invitation.created_at.desc(), Invitation.id)
    )
    return list(result.scalars().all())


async def list_for_project(db: AsyncSession, project_id: Any, requester: Any) -> list[Invitation]:
    """Pending invitations on a project. Owner only."""
    project = await projects.get_project(db, project_id)
    if not projects.is_owner(project, requester):
        raise PermissionDeniedError("Only the project owner can view project invitations")

    result = await db.execute(
        select(Invitation)
        .where(
            Invitation.project_id == project.id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .order_by(Invitation.created_at.desc(), Invitation.id)
    )
    return list(result.scalars().all())


async def transition(
    db: AsyncSession,
    invitation_id: uuid.UUID,
    target: InvitationStatus,
) -> bool:
    """Move a pending invitation to a terminal status.

    The UPDATE is conditional on ``status = 'pending'``; returns False when
    another resolver or a cancellation got there first.
    """
    result = await db.execute(
        update(Invitation)
        .where(
            Invitation.id == invitation_id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .values(status=target.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def cancel_invitation(db: AsyncSession, invitation_id: Any, requester: Any) -> None:
    """Hard-delete a pending invitation. Inviter only."""
    invitation = await get_invitation(db, invitation_id)
    if not same_id(invitation.inviter_id, requester):
        raise PermissionDeniedError("You can only cancel invitations you sent")
    if not invitation.is_pending:
        raise ConflictError("Invitation has already been processed")

    result = await db.execute(
        delete(Invitation)
        .where(
            Invitation.id == invitation.id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Invitation has already been processed")
    db.expunge(invitation)
    logger.info("Invitation %s cancelled by %s", invitation.id, invitation.inviter_id)


async def purge_expired(db: AsyncSession, now: datetime | None = None) -> int:
    """Delete every invitation whose ``expires_at`` has passed."""
    now = now or utcnow()
    result = await db.execute(
        delete(Invitation)
        .where(Invitation.expires_at < now)
        .execution_options(synchronize_session=False)
    )
    purged = result.rowcount or 0
    if purged:
        logger.info("Purged %d expired invitations", purged)
    return purged
