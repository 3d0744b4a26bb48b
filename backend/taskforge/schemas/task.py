"""Task and analytics schemas."""

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, field_validator

from taskforge.models.task import TaskPriority, TaskStatus
from taskforge.schemas.user import UserSummary


class TaskCreate(BaseModel):
    title: str
    description: str | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assignee_id: uuid.UUID | None = None

    @field_validator("due_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class TaskUpdate(BaseModel):
    """Partial update: only fields present in the request body are applied."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assignee_id: uuid.UUID | None = None

    @field_validator("due_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class TaskResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str
    status: str
    priority: str
    due_date: datetime | None = None
    assignee: UserSummary | None = None
    created_by: UserSummary
    is_overdue: bool
    days_until_due: int | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProjectAnalytics(BaseModel):
    completion_rate: float
    tasks_by_priority: dict[str, int]
    tasks_by_status: dict[str, int]
    overdue_tasks: int
    recent_tasks: int
    total_tasks: int
