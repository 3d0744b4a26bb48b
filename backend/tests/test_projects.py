"""Project and membership endpoint tests."""

import pytest
from httpx import AsyncClient

from tests.helpers import auth_headers, create_project, register


@pytest.mark.asyncio
async def test_create_project(client: AsyncClient):
    headers, user_id = await register(client, "creator")

    data = await create_project(client, headers)
    assert data["name"] == "Apollo"
    assert data["description"] == "Launch planning"
    assert data["owner"]["id"] == user_id
    assert [m["id"] for m in data["members"]] == [user_id]
    assert data["member_count"] == 1
    assert data["task_ids"] == []
    assert data["task_count"] == 0


@pytest.mark.asyncio
async def test_create_project_trims_name(client: AsyncClient):
    headers, _ = await register(client, "creator")
    data = await create_project(client, headers, name="  Spaced  ")
    assert data["name"] == "Spaced"


@pytest.mark.asyncio
async def test_create_project_blank_name(client: AsyncClient):
    headers, _ = await register(client, "creator")
    resp = await client.post("/api/v1/projects", json={"name": "   "}, headers=headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_project_name_too_long(client: AsyncClient):
    headers, _ = await register(client, "creator")
    resp = await client.post("/api/v1/projects", json={"name": "x" * 101}, headers=headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_project_requires_auth(client: AsyncClient):
    resp = await client.post("/api/v1/projects", json={"name": "Nope"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    resp = await client.get("/api/v1/projects", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_list_projects_only_where_member(client: AsyncClient):
    alice, _ = await register(client, "alice")
    bob, _ = await register(client, "bob")

    mine = await create_project(client, alice, name="Mine")
    await create_project(client, bob, name="Theirs")

    resp = await client.get("/api/v1/projects", headers=alice)
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == [mine["id"]]


@pytest.mark.asyncio
async def test_get_project_non_member_forbidden(client: AsyncClient):
    alice, _ = await register(client, "alice")
    bob, _ = await register(client, "bob")
    project = await create_project(client, alice)

    resp = await client.get(f"/api/v1/projects/{project['id']}", headers=bob)
    assert resp.status_code == 403
    assert resp.json()["title"] == "Forbidden"


@pytest.mark.asyncio
async def test_get_unknown_project(client: AsyncClient):
    alice, _ = await register(client, "alice")
    resp = await client.get(
        "/api/v1/projects/00000000-0000-0000-0000-000000000009", headers=alice
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_add_member_by_username(client: AsyncClient, events):
    owner, owner_id = await register(client, "owner")
    bob_headers = auth_headers(sub="bob-sub", username="bob")
    bob_id = (await client.get("/api/v1/users/me", headers=bob_headers)).json()["id"]
    project = await create_project(client, owner)

    resp = await client.post(
        f"/api/v1/projects/{project['id']}/members",
        json={"username": "bob"},
        headers=owner,
    )
    assert resp.status_code == 200
    assert {m["id"] for m in resp.json()["members"]} == {owner_id, bob_id}
    assert events.names() == ["membershipChanged"]


@pytest.mark.asyncio
async def test_add_member_twice_conflicts(client: AsyncClient):
    owner, _ = await register(client, "owner")
    bob = "bob-fixed"
    await client.get("/api/v1/users/me", headers=auth_headers(sub=bob, username=bob))
    project = await create_project(client, owner)

    first = await client.post(
        f"/api/v1/projects/{project['id']}/members", json={"username": bob}, headers=owner
    )
    assert first.status_code == 200

    second = await client.post(
        f"/api/v1/projects/{project['id']}/members", json={"username": bob}, headers=owner
    )
    assert second.status_code == 409
    assert second.json()["detail"] == "User is already a member"


@pytest.mark.asyncio
async def test_add_unknown_member(client: AsyncClient):
    owner, _ = await register(client, "owner")
    project = await create_project(client, owner)

    resp = await client.post(
        f"/api/v1/projects/{project['id']}/members",
        json={"username": "nobody-here"},
        headers=owner,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_add_member_by_non_owner_forbidden(client: AsyncClient):
    owner, _ = await register(client, "owner")
    stranger, _ = await register(client, "stranger")
    project = await create_project(client, owner)

    resp = await client.post(
        f"/api/v1/projects/{project['id']}/members",
        json={"username": "whoever"},
        headers=stranger,
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_remove_member(client: AsyncClient, events):
    owner, owner_id = await register(client, "owner")
    carol = "carol-fixed"
    carol_resp = await client.get(
        "/api/v1/users/me", headers=auth_headers(sub=carol, username=carol)
    )
    carol_id = carol_resp.json()["id"]
    project = await create_project(client, owner)
    await client.post(
        f"/api/v1/projects/{project['id']}/members", json={"username": carol}, headers=owner
    )

    resp = await client.delete(
        f"/api/v1/projects/{project['id']}/members/{carol_id}", headers=owner
    )
    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()["members"]] == [owner_id]
    assert events.names() == ["membershipChanged", "membershipChanged"]
    assert events[-1][2] == {"action": "removed", "userId": carol_id}


@pytest.mark.asyncio
async def test_remove_owner_is_noop(client: AsyncClient, events):
    owner, owner_id = await register(client, "owner")
    project = await create_project(client, owner)

    resp = await client.delete(
        f"/api/v1/projects/{project['id']}/members/{owner_id}", headers=owner
    )
    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()["members"]] == [owner_id]
    assert events.names() == []
