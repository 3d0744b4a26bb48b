"""Project task board: task CRUD and per-project analytics.

Every operation requires the requester to be a project member. Task
references on the project are kept in step through the project registry.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from taskforge.core.identifiers import as_uuid, same_id
from taskforge.db.base import utcnow
from taskforge.models.project import Project
from taskforge.models.task import Task, TaskPriority, TaskStatus
from taskforge.schemas.task import TaskCreate, TaskUpdate
from taskforge.services import identity, projects
from taskforge.services.notifications import (
    TASK_CREATED,
    TASK_DELETED,
    TASK_UPDATED,
    ProjectNotifier,
)

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
RECENT_WINDOW = timedelta(days=30)


async def _member_project(db: AsyncSession, project_id: Any, requester: Any) -> Project:
    project = await projects.get_project(db, project_id)
    if not projects.is_member(project, requester):
        raise PermissionDeniedError("Access denied - you are not a member of this project")
    return project


def _clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Task title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Task title must be at most {TITLE_MAX_LENGTH} characters")
    return title


def _clean_description(description: str | None) -> str:
    description = (description or "").strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Task description must be at most {DESCRIPTION_MAX_LENGTH} characters"
        )
    return description


async def _check_assignee(db: AsyncSession, project: Project, assignee_id: Any) -> uuid.UUID:
    if await identity.find_user(db, assignee_id) is None:
        raise ValidationError("Assigned user not found")
    if not projects.is_member(project, assignee_id):
        raise ValidationError("Assigned user is not a project member")
    return as_uuid(assignee_id)


async def _load_task(db: AsyncSession, project: Project, task_id: Any) -> Task:
    result = await db.execute(
        select(Task)
        .where(Task.id == as_uuid(task_id))
        .execution_options(populate_existing=True)
    )
    task = result.scalar_one_or_none()
    if task is None:
        raise NotFoundError("Task not found")
    if not same_id(task.project_id, project.id):
        raise ValidationError("Task does not belong to this project")
    return task


async def list_tasks(db: AsyncSession, project_id: Any, requester: Any) -> list[Task]:
    project = await _member_project(db, project_id, requester)
    result = await db.execute(
        select(Task)
        .where(Task.project_id == project.id)
        .order_by(Task.created_at.desc(), Task.id)
    )
    return list(result.scalars().all())


async def get_task(db: AsyncSession, project_id: Any, task_id: Any, requester: Any) -> Task:
    project = await _member_project(db, project_id, requester)
    return await _load_task(db, project, task_id)


async def create_task(
    db: AsyncSession,
    project_id: Any,
    requester: Any,
    body: TaskCreate,
    notifier: ProjectNotifier,
) -> Task:
    project = await _member_project(db, project_id, requester)

    task = Task(
        project_id=project.id,
        title=_clean_title(body.title),
        description=_clean_description(body.description),
        priority=(body.priority or TaskPriority.MEDIUM).value,
        status=TaskStatus.TODO.value,
        due_date=body.due_date,
        assignee_id=(
            await _check_assignee(db, project, body.assignee_id)
            if body.assignee_id is not None
            else None
        ),
        created_by_id=as_uuid(requester),
    )
    db.add(task)
    await db.flush()
    await projects.add_task_ref(db, project, task.id)

    task = await _load_task(db, project, task.id)
    logger.info("Task %s created in project %s", task.id, project.id)
    notifier.emit(project.id, TASK_CREATED, _event_payload(task))
    return task


async def update_task(
    db: AsyncSession,
    project_id: Any,
    task_id: Any,
    requester: Any,
    body: TaskUpdate,
    notifier: ProjectNotifier,
) -> Task:
    project = await _member_project(db, project_id, requester)
    task = await _load_task(db, project, task_id)

    changes = body.model_dump(exclude_unset=True)
    if "title" in changes:
        task.title = _clean_title(changes["title"])
    if "description" in changes:
        task.description = _clean_description(changes["description"])
    if "status" in changes:
        if changes["status"] is None:
            raise ValidationError("Task status cannot be empty")
        task.status = TaskStatus(changes["status"]).value
    if "priority" in changes:
        if changes["priority"] is None:
            raise ValidationError("Task priority cannot be empty")
        task.priority = TaskPriority(changes["priority"]).value
    if "due_date" in changes:
        task.due_date = changes["due_date"]
    if "assignee_id" in changes:
        assignee_id = changes["assignee_id"]
        task.assignee_id = (
            await _check_assignee(db, project, assignee_id) if assignee_id is not None else None
        )

    await db.flush()
    task = await _load_task(db, project, task.id)
    notifier.emit(project.id, TASK_UPDATED, _event_payload(task))
    return task


async def delete_task(
    db: AsyncSession,
    project_id: Any,
    task_id: Any,
    requester: Any,
    notifier: ProjectNotifier,
) -> None:
    project = await _member_project(db, project_id, requester)
    task = await _load_task(db, project, task_id)

    await projects.remove_task_ref(db, project, task.id)
    await db.delete(task)
    await db.flush()

    logger.info("Task %s deleted from project %s", task.id, project.id)
    notifier.emit(project.id, TASK_DELETED, {"taskId": task.id, "projectId": project.id})


async def project_analytics(db: AsyncSession, project_id: Any, requester: Any) -> dict:
    project = await _member_project(db, project_id, requester)
    result = await db.execute(select(Task).where(Task.project_id == project.id))
    tasks = list(result.scalars().all())

    total = len(tasks)
    completed = sum(1 for t in tasks if t.status == TaskStatus.DONE)
    completion_rate = (completed / total) * 100 if total else 0.0
    recent_cutoff = utcnow() - RECENT_WINDOW

    return {
        "completion_rate": round(completion_rate, 2),
        "tasks_by_priority": {
            p.value: sum(1 for t in tasks if t.priority == p) for p in TaskPriority
        },
        "tasks_by_status": {s.value: sum(1 for t in tasks if t.status == s) for s in TaskStatus},
        "overdue_tasks": sum(1 for t in tasks if t.is_overdue),
        "recent_tasks": sum(1 for t in tasks if t.created_at >= recent_cutoff),
        "total_tasks": total,
    }


def _event_payload(task: Task) -> dict:
    return {
        "id": task.id,
        "projectId": task.project_id,
        "title": task.title,
        "status": task.status,
        "priority": task.priority,
        "dueDate": task.due_date,
        "assigneeId": task.assignee_id,
        "createdById": task.created_by_id,
    }
