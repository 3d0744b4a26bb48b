"""Create users, projects, membership, tasks and invitations tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        sa.UUID(),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.text("now()"),
    )


def upgrade() -> None:
    # --- users (identity directory) ---
    op.create_table(
        "users",
        _id_column(),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        _timestamp("created_at"),
        _timestamp("updated_at", nullable=True),
    )
    op.create_index("ix_users_subject", "users", ["subject"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # --- projects ---
    op.create_table(
        "projects",
        _id_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("owner_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"])

    # --- project_members (membership set) ---
    op.create_table(
        "project_members",
        _id_column(),
        sa.Column(
            "project_id",
            sa.UUID(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        _timestamp("added_at"),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
    )
    op.create_index("ix_project_members_user_id", "project_members", ["user_id"])

    # --- tasks ---
    op.create_table(
        "tasks",
        _id_column(),
        sa.Column(
            "project_id",
            sa.UUID(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.String(1000), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="To Do"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="Medium"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assignee_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_by_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at", nullable=True),
        sa.CheckConstraint(
            "status IN ('To Do', 'In Progress', 'Done')", name="ck_tasks_status"
        ),
        sa.CheckConstraint(
            "priority IN ('Low', 'Medium', 'High', 'Urgent')", name="ck_tasks_priority"
        ),
    )
    op.create_index("ix_tasks_project_status", "tasks", ["project_id", "status"])
    op.create_index("ix_tasks_assignee_id", "tasks", ["assignee_id"])
    op.create_index("ix_tasks_due_date", "tasks", ["due_date"])

    # --- project_task_refs (task-reference set) ---
    op.create_table(
        "project_task_refs",
        _id_column(),
        sa.Column(
            "project_id",
            sa.UUID(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "task_id",
            sa.UUID(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _timestamp("added_at"),
        sa.UniqueConstraint("project_id", "task_id", name="uq_project_task_refs_project_task"),
    )
    op.create_index("ix_project_task_refs_task_id", "project_task_refs", ["task_id"])

    # --- invitations ---
    op.create_table(
        "invitations",
        _id_column(),
        sa.Column(
            "project_id",
            sa.UUID(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("inviter_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("invitee_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("message", sa.String(500), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at", nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')", name="ck_invitations_status"
        ),
    )
    # At most one pending invitation per (project, invitee), enforced by storage.
    op.create_index(
        "uq_invitations_pending_project_invitee",
        "invitations",
        ["project_id", "invitee_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )
    op.create_index("ix_invitations_invitee_status", "invitations", ["invitee_id", "status"])
    # The expiry sweep deletes by expires_at.
    op.create_index("ix_invitations_expires_at", "invitations", ["expires_at"])


def downgrade() -> None:
    # Drop tables in reverse dependency order
    op.drop_table("invitations")
    op.drop_table("project_task_refs")
    op.drop_table("tasks")
    op.drop_table("project_members")
    op.drop_table("projects")
    op.drop_table("users")
