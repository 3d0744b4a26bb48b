"""Project and membership endpoints."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.dependencies import get_current_user, get_db, get_notifier
from taskforge.core.exceptions import ConflictError, PermissionDeniedError
from taskforge.models.user import User
from taskforge.schemas.invitation import InvitationCreate, InvitationResponse
from taskforge.schemas.project import MemberAdd, ProjectCreate, ProjectResponse
from taskforge.services import identity, invitations, projects
from taskforge.services.notifications import MEMBERSHIP_CHANGED, ProjectNotifier

router = APIRouter()


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    body: ProjectCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    """Create a project. The caller becomes its owner and only member."""
    project = await projects.create_project(db, user, body.name, body.description)
    return ProjectResponse.model_validate(project)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ProjectResponse]:
    """Projects the caller belongs to, most recently updated first."""
    rows = await projects.list_projects_for_member(db, user)
    return [ProjectResponse.model_validate(p) for p in rows]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    project = await projects.get_project(db, project_id)
    if not (projects.is_owner(project, user) or projects.is_member(project, user)):
        raise PermissionDeniedError("Access denied - you are not a member of this project")
    return ProjectResponse.model_validate(project)


@router.post("/{project_id}/members", response_model=ProjectResponse)
async def add_member(
    project_id: uuid.UUID,
    body: MemberAdd,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: ProjectNotifier = Depends(get_notifier),
) -> ProjectResponse:
    """Add a user by username. Owner only."""
    project = await projects.get_project(db, project_id)
    if not projects.is_owner(project, user):
        raise PermissionDeniedError("Only the project owner can add members")

    new_member = await identity.get_user_by_username(db, body.username)
    if projects.is_member(project, new_member):
        raise ConflictError("User is already a member")

    project, added = await projects.add_member(db, project, new_member)
    if added:
        notifier.emit(project.id, MEMBERSHIP_CHANGED, {"action": "added", "userId": new_member.id})
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}/members/{user_id}", response_model=ProjectResponse)
async def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: ProjectNotifier = Depends(get_notifier),
) -> ProjectResponse:
    """Remove a member. Owner only; removing the owner is a silent no-op."""
    project = await projects.get_project(db, project_id)
    if not projects.is_owner(project, user):
        raise PermissionDeniedError("Only the project owner can remove members")

    project, removed = await projects.remove_member(db, project, user_id)
    if removed:
        notifier.emit(project.id, MEMBERSHIP_CHANGED, {"action": "removed", "userId": user_id})
    return ProjectResponse.model_validate(project)


@router.post(
    "/{project_id}/invitations", response_model=InvitationResponse, status_code=201
)
async def send_invitation(
    project_id: uuid.UUID,
    body: InvitationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> InvitationResponse:
    invitation = await invitations.create_invitation(
        db, project_id, user, body.invitee_id, body.message
    )
    return InvitationResponse.model_validate(invitation)


@router.get("/{project_id}/invitations", response_model=list[InvitationResponse])
async def list_project_invitations(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[InvitationResponse]:
    """Pending invitations on the project. Owner only."""
    rows = await invitations.list_for_project(db, project_id, user)
    return [InvitationResponse.model_validate(i) for i in rows]
