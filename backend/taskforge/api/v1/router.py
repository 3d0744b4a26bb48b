"""Aggregate all v1 sub-routers."""

from fastapi import APIRouter

from taskforge.api.v1.health import router as health_router
from taskforge.api.v1.invitations import router as invitations_router
from taskforge.api.v1.projects import router as projects_router
from taskforge.api.v1.tasks import router as tasks_router
from taskforge.api.v1.users import router as users_router

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, tags=["health"])
api_v1_router.include_router(users_router, prefix="/users", tags=["users"])
api_v1_router.include_router(projects_router, prefix="/projects", tags=["projects"])
api_v1_router.include_router(tasks_router, prefix="/projects", tags=["tasks"])
api_v1_router.include_router(invitations_router, prefix="/invitations", tags=["invitations"])
