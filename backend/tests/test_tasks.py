"""Task board and analytics endpoint tests."""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient

from tests.helpers import auth_headers, create_project, register


@pytest.fixture
async def board(client: AsyncClient) -> dict:
    """A project owned by O with a second member M."""
    owner, owner_id = await register(client, "owner")
    member_headers = auth_headers(sub="member-sub", username="member")
    member = await client.get("/api/v1/users/me", headers=member_headers)
    project = await create_project(client, owner)
    resp = await client.post(
        f"/api/v1/projects/{project['id']}/members",
        json={"username": "member"},
        headers=owner,
    )
    assert resp.status_code == 200
    return {
        "owner": owner,
        "owner_id": owner_id,
        "member": member_headers,
        "member_id": member.json()["id"],
        "project_id": project["id"],
        "base": f"/api/v1/projects/{project['id']}/tasks",
    }


async def _create_task(client: AsyncClient, board: dict, **fields) -> dict:
    body = {"title": "Write docs", **fields}
    resp = await client.post(board["base"], json=body, headers=board["owner"])
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_task(client: AsyncClient, board: dict, events):
    events.clear()
    data = await _create_task(client, board, description="All of them")

    assert data["title"] == "Write docs"
    assert data["description"] == "All of them"
    assert data["status"] == "To Do"
    assert data["priority"] == "Medium"
    assert data["created_by"]["id"] == board["owner_id"]
    assert data["assignee"] is None
    assert data["is_overdue"] is False

    project = await client.get(f"/api/v1/projects/{board['project_id']}", headers=board["owner"])
    assert project.json()["task_ids"] == [data["id"]]
    assert events.names() == ["taskCreated"]
    assert events[0][2]["id"] == data["id"]


@pytest.mark.asyncio
async def test_create_task_with_assignee(client: AsyncClient, board: dict):
    data = await _create_task(client, board, assignee_id=board["member_id"], priority="High")
    assert data["assignee"]["id"] == board["member_id"]
    assert data["priority"] == "High"


@pytest.mark.asyncio
async def test_create_task_assignee_must_be_member(client: AsyncClient, board: dict):
    _, outsider_id = await register(client, "outsider")
    resp = await client.post(
        board["base"],
        json={"title": "Nope", "assignee_id": outsider_id},
        headers=board["owner"],
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_task_blank_title(client: AsyncClient, board: dict):
    resp = await client.post(board["base"], json={"title": "  "}, headers=board["owner"])
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_non_member_cannot_see_tasks(client: AsyncClient, board: dict):
    outsider, _ = await register(client, "outsider")
    resp = await client.get(board["base"], headers=outsider)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_member_lists_tasks(client: AsyncClient, board: dict):
    task = await _create_task(client, board)
    resp = await client.get(board["base"], headers=board["member"])
    assert resp.status_code == 200
    assert [t["id"] for t in resp.json()] == [task["id"]]


@pytest.mark.asyncio
async def test_update_task_partial(client: AsyncClient, board: dict, events):
    task = await _create_task(client, board, priority="Low")
    events.clear()

    resp = await client.put(
        f"{board['base']}/{task['id']}",
        json={"status": "In Progress"},
        headers=board["member"],
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "In Progress"
    assert data["priority"] == "Low"
    assert data["title"] == "Write docs"
    assert events.names() == ["taskUpdated"]


@pytest.mark.asyncio
async def test_update_task_clear_assignee(client: AsyncClient, board: dict):
    task = await _create_task(client, board, assignee_id=board["member_id"])
    resp = await client.put(
        f"{board['base']}/{task['id']}", json={"assignee_id": None}, headers=board["owner"]
    )
    assert resp.status_code == 200
    assert resp.json()["assignee"] is None


@pytest.mark.asyncio
async def test_update_task_invalid_status(client: AsyncClient, board: dict):
    task = await _create_task(client, board)
    resp = await client.put(
        f"{board['base']}/{task['id']}", json={"status": "Blocked"}, headers=board["owner"]
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_task_from_other_project(client: AsyncClient, board: dict):
    task = await _create_task(client, board)
    other = await create_project(client, board["owner"], name="Other")

    resp = await client.get(
        f"/api/v1/projects/{other['id']}/tasks/{task['id']}", headers=board["owner"]
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_delete_task(client: AsyncClient, board: dict, events):
    task = await _create_task(client, board)
    events.clear()

    resp = await client.delete(f"{board['base']}/{task['id']}", headers=board["owner"])
    assert resp.status_code == 200
    assert resp.json()["message"] == "Task deleted successfully"

    resp = await client.get(f"{board['base']}/{task['id']}", headers=board["owner"])
    assert resp.status_code == 404

    project = await client.get(f"/api/v1/projects/{board['project_id']}", headers=board["owner"])
    assert project.json()["task_ids"] == []
    assert events.names() == ["taskDeleted"]


@pytest.mark.asyncio
async def test_overdue_task(client: AsyncClient, board: dict):
    past = (datetime.now(UTC) - timedelta(days=2)).isoformat()
    data = await _create_task(client, board, due_date=past)
    assert data["is_overdue"] is True
    assert data["days_until_due"] < 0


@pytest.mark.asyncio
async def test_analytics(client: AsyncClient, board: dict):
    past = (datetime.now(UTC) - timedelta(days=1)).isoformat()
    done = await _create_task(client, board, title="Done one", priority="High")
    await _create_task(client, board, title="Late one", due_date=past, priority="Urgent")
    await _create_task(client, board, title="Plain one")
    await _create_task(client, board, title="Fourth one", priority="Low")
    await client.put(
        f"{board['base']}/{done['id']}", json={"status": "Done"}, headers=board["owner"]
    )

    resp = await client.get(
        f"/api/v1/projects/{board['project_id']}/analytics", headers=board["member"]
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_tasks"] == 4
    assert data["completion_rate"] == 25.0
    assert data["tasks_by_status"] == {"To Do": 3, "In Progress": 0, "Done": 1}
    assert data["tasks_by_priority"] == {"Low": 1, "Medium": 1, "High": 1, "Urgent": 1}
    assert data["overdue_tasks"] == 1
    assert data["recent_tasks"] == 4


@pytest.mark.asyncio
async def test_analytics_empty_project(client: AsyncClient, board: dict):
    resp = await client.get(
        f"/api/v1/projects/{board['project_id']}/analytics", headers=board["owner"]
    )
    assert resp.status_code == 200
    assert resp.json()["completion_rate"] == 0.0
    assert resp.json()["total_tasks"] == 0
