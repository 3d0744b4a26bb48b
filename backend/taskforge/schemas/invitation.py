"""Invitation request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from taskforge.schemas.project import ProjectSummary
from taskforge.schemas.user import UserSummary


class InvitationCreate(BaseModel):
    """Request body is `{inviteeId, message?}`; `invitee_id` is accepted too."""

    invitee_id: uuid.UUID = Field(alias="inviteeId")
    message: str | None = None

    model_config = {"populate_by_name": True}


class InvitationResponse(BaseModel):
    id: uuid.UUID
    project: ProjectSummary
    inviter: UserSummary
    invitee: UserSummary
    status: str
    message: str | None = None
    is_expired: bool
    created_at: datetime
    updated_at: datetime | None = None
    expires_at: datetime

    model_config = {"from_attributes": True}
