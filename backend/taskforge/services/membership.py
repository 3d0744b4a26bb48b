"""Membership coordinator: the invitation state machine.

    pending --accept--> accepted   (invitee joins the project)
    pending --reject--> rejected
    pending --cancel--> (deleted, see invitations.cancel_invitation)

Accepting is the only operation that writes two aggregates. The guarded
status update and the membership insert run in the caller's transaction,
so they commit or roll back together; ``repair_accepted_memberships``
re-drives any accepted invitation whose invitee is somehow missing from
the project.
"""

import logging
from typing import Any

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.exceptions import (
    ConflictError,
    ExpiredError,
    PermissionDeniedError,
)
from taskforge.core.identifiers import same_id
from taskforge.db.base import utcnow
from taskforge.models.invitation import Invitation, InvitationStatus
from taskforge.models.project import ProjectMember
from taskforge.services import invitations, projects
from taskforge.services.notifications import MEMBERSHIP_CHANGED, ProjectNotifier

logger = logging.getLogger(__name__)


async def _load_for_invitee(db: AsyncSession, invitation_id: Any, requester: Any) -> Invitation:
    invitation = await invitations.get_invitation(db, invitation_id)
    if not same_id(invitation.invitee_id, requester):
        raise PermissionDeniedError("You can only respond to invitations sent to you")
    if not invitation.is_pending:
        raise ConflictError("Invitation has already been processed")
    return invitation


async def accept_invitation(
    db: AsyncSession,
    invitation_id: Any,
    requester: Any,
    notifier: ProjectNotifier,
) -> Invitation:
    invitation = await _load_for_invitee(db, invitation_id, requester)
    if invitation.is_expired_at(utcnow()):
        raise ExpiredError("Invitation has expired")

    if not await invitations.transition(db, invitation.id, InvitationStatus.ACCEPTED):
        raise ConflictError("Invitation has already been processed")
    project = await projects.get_project(db, invitation.project_id)
    await projects.add_member(db, project, invitation.invitee_id)

    logger.info("Invitation %s accepted by %s", invitation.id, invitation.invitee_id)
    notifier.emit(
        invitation.project_id,
        MEMBERSHIP_CHANGED,
        {"action": "added", "userId": invitation.invitee_id, "invitationId": invitation.id},
    )
    return await invitations.get_invitation(db, invitation.id)


async def reject_invitation(
    db: AsyncSession,
    invitation_id: Any,
    requester: Any,
) -> Invitation:
    """Reject a pending invitation. Allowed even after it has expired."""
    invitation = await _load_for_invitee(db, invitation_id, requester)
    if not await invitations.transition(db, invitation.id, InvitationStatus.REJECTED):
        raise ConflictError("Invitation has already been processed")

    logger.info("Invitation %s rejected by %s", invitation.id, invitation.invitee_id)
    return await invitations.get_invitation(db, invitation.id)


async def repair_accepted_memberships(db: AsyncSession) -> int:
    """Add invitees of accepted invitations that are missing from the project."""
    result = await db.execute(
        select(Invitation.project_id, Invitation.invitee_id)
        .outerjoin(
            ProjectMember,
            and_(
                ProjectMember.project_id == Invitation.project_id,
                ProjectMember.user_id == Invitation.invitee_id,
            ),
        )
        .where(
            Invitation.status == InvitationStatus.ACCEPTED.value,
            ProjectMember.id.is_(None),
        )
        .distinct()
    )
    repaired = 0
    for project_id, invitee_id in result.all():
        project = await projects.get_project(db, project_id)
        _, added = await projects.add_member(db, project, invitee_id)
        if added:
            repaired += 1
            logger.warning(
                "Repaired membership: user %s re-added to project %s", invitee_id, project_id
            )
    return repaired
