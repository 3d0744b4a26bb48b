"""Project request/response schemas.

Length limits on ``name``/``description`` are enforced by the project
registry (400 on violation), not here.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel

from taskforge.schemas.user import UserSummary


class ProjectCreate(BaseModel):
    name: str
    description: str | None = None


class MemberAdd(BaseModel):
    username: str


class ProjectSummary(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None

    model_config = {"from_attributes": True}


class ProjectResponse(ProjectSummary):
    owner: UserSummary
    members: list[UserSummary]
    task_ids: list[uuid.UUID]
    member_count: int
    task_count: int
    created_at: datetime
    updated_at: datetime
