"""Invitation endpoints for the invitee (list, accept, reject) and inviter (cancel).

Creating and listing a project's invitations lives under
``/projects/{project_id}/invitations``.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.dependencies import get_current_user, get_db, get_notifier
from taskforge.models.user import User
from taskforge.schemas.common import MessageResponse
from taskforge.schemas.invitation import InvitationResponse
from taskforge.services import invitations, membership
from taskforge.services.notifications import ProjectNotifier

router = APIRouter()


@router.get("", response_model=list[InvitationResponse])
async def list_my_invitations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[InvitationResponse]:
    """Pending invitations addressed to the caller, newest first."""
    rows = await invitations.list_for_invitee(db, user)
    return [InvitationResponse.model_validate(i) for i in rows]


@router.put("/{invitation_id}/accept", response_model=InvitationResponse)
async def accept_invitation(
    invitation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: ProjectNotifier = Depends(get_notifier),
) -> InvitationResponse:
    invitation = await membership.accept_invitation(db, invitation_id, user, notifier)
    return InvitationResponse.model_validate(invitation)


@router.put("/{invitation_id}/reject", response_model=InvitationResponse)
async def reject_invitation(
    invitation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> InvitationResponse:
    invitation = await membership.reject_invitation(db, invitation_id, user)
    return InvitationResponse.model_validate(invitation)


@router.delete("/{invitation_id}", response_model=MessageResponse)
async def cancel_invitation(
    invitation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Withdraw a pending invitation. Inviter only."""
    await invitations.cancel_invitation(db, invitation_id, user)
    return MessageResponse(message="Invitation cancelled successfully")
