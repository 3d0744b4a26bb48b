"""Project registry: project records, the membership set and task references.

Membership and task references live in their own tables keyed by
``(project_id, user_id)`` / ``(project_id, task_id)``. Adds are single
``INSERT ... ON CONFLICT DO NOTHING`` statements and removals single
``DELETE`` statements, so concurrent mutations of one project never lose
an update. Every mutation ends in ``_persist``, which bumps ``updated_at``,
reloads the aggregate and checks that the owner is still a member.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.core.exceptions import InvariantViolation, NotFoundError, ValidationError
from taskforge.core.identifiers import as_uuid, canonical_id, same_id
from taskforge.db.base import utcnow
from taskforge.models.project import Project, ProjectMember, ProjectTaskRef

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Project name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Project name must be at most {NAME_MAX_LENGTH} characters")
    return name


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    description = description.strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Project description must be at most {DESCRIPTION_MAX_LENGTH} characters"
        )
    return description


async def _insert_ignore(db: AsyncSession, model: type, conflict_on: list[str], **values) -> bool:
    """Atomic set-add. Returns True when a row was actually inserted."""
    dialect = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Unsupported database dialect for set operations: {dialect}")
    stmt = (
        insert(model.__table__)
        .values(**values)
        .on_conflict_do_nothing(index_elements=conflict_on)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


def _check_invariants(project: Project) -> None:
    if not any(same_id(member_id, project.owner_id) for member_id in project.member_ids):
        raise InvariantViolation(f"Owner of project {project.id} is not a member")


async def _load(db: AsyncSession, project_id: uuid.UUID) -> Project | None:
    result = await db.execute(
        select(Project)
        .where(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _persist(db: AsyncSession, project: Project) -> Project:
    """Single exit point for every mutation; the owner must remain a member."""
    project.updated_at = utcnow()
    await db.flush()
    refreshed = await _load(db, project.id)
    if refreshed is None:
        raise NotFoundError("Project not found")
    _check_invariants(refreshed)
    return refreshed


def is_member(project: Project, user: Any) -> bool:
    return any(same_id(member_id, user) for member_id in project.member_ids)


def is_owner(project: Project, user: Any) -> bool:
    return same_id(project.owner_id, user)


async def get_project(db: AsyncSession, project_id: Any) -> Project:
    project = await _load(db, as_uuid(project_id))
    if project is None:
        raise NotFoundError("Project not found")
    return project


async def list_projects_for_member(db: AsyncSession, user: Any) -> list[Project]:
    """Projects the user belongs to, most recently updated first."""
    result = await db.execute(
        select(Project)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .where(ProjectMember.user_id == as_uuid(user))
        .order_by(Project.updated_at.desc(), Project.id)
    )
    return list(result.scalars().all())


async def create_project(
    db: AsyncSession,
    owner: Any,
    name: str | None,
    description: str | None = None,
) -> Project:
    owner_id = as_uuid(owner)
    project = Project(
        name=_clean_name(name),
        description=_clean_description(description),
        owner_id=owner_id,
    )
    db.add(project)
    await db.flush()
    db.add(ProjectMember(project_id=project.id, user_id=owner_id))

    project = await _persist(db, project)
    logger.info("Project %s created by %s", project.id, owner_id)
    return project


async def add_member(db: AsyncSession, project: Project, user: Any) -> tuple[Project, bool]:
    """Idempotent add. Authorization is the caller's responsibility."""
    added = await _insert_ignore(
        db,
        ProjectMember,
        ["project_id", "user_id"],
        project_id=project.id,
        user_id=as_uuid(user),
        added_at=utcnow(),
    )
    project = await _persist(db, project)
    if added:
        logger.info("User %s joined project %s", canonical_id(user), project.id)
    return project, added


async def remove_member(db: AsyncSession, project: Project, user: Any) -> tuple[Project, bool]:
    """Remove a member. Removing the owner is refused silently."""
    if is_owner(project, user):
        logger.info("Refused to remove owner %s from project %s", project.owner_id, project.id)
        return project, False

    result = await db.execute(
        delete(ProjectMember).where(
            ProjectMember.project_id == project.id,
            ProjectMember.user_id == as_uuid(user),
        )
    )
    removed = result.rowcount > 0
    project = await _persist(db, project)
    if removed:
        logger.info("User %s removed from project %s", canonical_id(user), project.id)
    return project, removed


async def add_task_ref(db: AsyncSession, project: Project, task_id: Any) -> Project:
    await _insert_ignore(
        db,
        ProjectTaskRef,
        ["project_id", "task_id"],
        project_id=project.id,
        task_id=as_uuid(task_id),
        added_at=utcnow(),
    )
    return await _persist(db, project)


async def remove_task_ref(db: AsyncSession, project: Project, task_id: Any) -> Project:
    """No-op when the task id is not referenced."""
    await db.execute(
        delete(ProjectTaskRef).where(
            ProjectTaskRef.project_id == project.id,
            ProjectTaskRef.task_id == as_uuid(task_id),
        )
    )
    return await _persist(db, project)
