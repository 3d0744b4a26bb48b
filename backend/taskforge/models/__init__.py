from taskforge.models.invitation import Invitation, InvitationStatus
from taskforge.models.project import Project, ProjectMember, ProjectTaskRef
from taskforge.models.task import Task, TaskPriority, TaskStatus
from taskforge.models.user import User

__all__ = [
    "Invitation",
    "InvitationStatus",
    "Project",
    "ProjectMember",
    "ProjectTaskRef",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "User",
]
