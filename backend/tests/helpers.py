"""Shared helpers for API tests."""

import uuid

from httpx import AsyncClient

from taskforge.core.security import create_mock_access_token


def auth_headers(sub: str, username: str | None = None) -> dict:
    """Return Authorization headers with a mock JWT."""
    token = create_mock_access_token(
        sub=sub,
        username=username or sub,
        email=f"{sub}@example.com",
        name=(username or sub).title(),
    )
    return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, prefix: str = "user") -> tuple[dict, str]:
    """Provision a user through GET /users/me; returns (headers, user_id)."""
    unique = f"{prefix}-{uuid.uuid4().hex[:8]}"
    headers = auth_headers(sub=unique, username=unique)
    resp = await client.get("/api/v1/users/me", headers=headers)
    assert resp.status_code == 200, resp.text
    return headers, resp.json()["id"]


async def create_project(client: AsyncClient, headers: dict, name: str = "Apollo") -> dict:
    resp = await client.post(
        "/api/v1/projects",
        json={"name": name, "description": "Launch planning"},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def invite(
    client: AsyncClient, headers: dict, project_id: str, invitee_id: str, **extra
) -> dict:
    resp = await client.post(
        f"/api/v1/projects/{project_id}/invitations",
        json={"inviteeId": invitee_id, **extra},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
