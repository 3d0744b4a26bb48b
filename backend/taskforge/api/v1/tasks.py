"""Task sub-resource and analytics endpoints under /projects/{project_id}."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.dependencies import get_current_user, get_db, get_notifier
from taskforge.models.user import User
from taskforge.schemas.common import MessageResponse
from taskforge.schemas.task import ProjectAnalytics, TaskCreate, TaskResponse, TaskUpdate
from taskforge.services import tasks
from taskforge.services.notifications import ProjectNotifier

router = APIRouter()


@router.get("/{project_id}/tasks", response_model=list[TaskResponse])
async def list_tasks(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[TaskResponse]:
    rows = await tasks.list_tasks(db, project_id, user)
    return [TaskResponse.model_validate(t) for t in rows]


@router.post("/{project_id}/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    project_id: uuid.UUID,
    body: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: ProjectNotifier = Depends(get_notifier),
) -> TaskResponse:
    task = await tasks.create_task(db, project_id, user, body, notifier)
    return TaskResponse.model_validate(task)


@router.get("/{project_id}/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    task = await tasks.get_task(db, project_id, task_id, user)
    return TaskResponse.model_validate(task)


@router.put("/{project_id}/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: ProjectNotifier = Depends(get_notifier),
) -> TaskResponse:
    task = await tasks.update_task(db, project_id, task_id, user, body, notifier)
    return TaskResponse.model_validate(task)


@router.delete("/{project_id}/tasks/{task_id}", response_model=MessageResponse)
async def delete_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: ProjectNotifier = Depends(get_notifier),
) -> MessageResponse:
    await tasks.delete_task(db, project_id, task_id, user, notifier)
    return MessageResponse(message="Task deleted successfully")


@router.get("/{project_id}/analytics", response_model=ProjectAnalytics)
async def get_analytics(
    project_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProjectAnalytics:
    """Completion rate, status/priority breakdown, overdue and recent counts."""
    return ProjectAnalytics(**await tasks.project_analytics(db, project_id, user))
