"""Tests for work site administration."""

import pytest
from httpx import AsyncClient

from conftest import auth_headers, create_site


@pytest.mark.asyncio
async def test_create_work_site(async_client: AsyncClient, manager):
    resp = await async_client.post(
        "/api/v1/work-sites",
        json={"name": "  North Yard ", "address": "7 Quarry Lane", "description": "Gate B"},
        headers=auth_headers(manager),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "North Yard"
    assert data["is_active"] is True
    assert len(data["check_in_token"]) == 36


@pytest.mark.asyncio
async def test_create_work_site_validation(async_client: AsyncClient, manager):
    resp = await async_client.post(
        "/api/v1/work-sites", json={"name": "   ", "address": "x"}, headers=auth_headers(manager)
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_search_and_filter(async_client: AsyncClient, session_factory, manager):
    await create_site(session_factory, "Head Office")
    await create_site(session_factory, "Warehouse")
    await create_site(session_factory, "Old Depot", is_active=False)
    headers = auth_headers(manager)

    everything = (await async_client.get("/api/v1/work-sites", headers=headers)).json()
    assert everything["total"] == 3

    found = (await async_client.get("/api/v1/work-sites", params={"search": "ware"}, headers=headers)).json()
    assert [s["name"] for s in found["items"]] == ["Warehouse"]

    by_address = (
        await async_client.get("/api/v1/work-sites", params={"search": "Depot Street"}, headers=headers)
    ).json()
    assert [s["name"] for s in by_address["items"]] == ["Old Depot"]

    active = (await async_client.get("/api/v1/work-sites", params={"is_active": "true"}, headers=headers)).json()
    assert active["total"] == 2

    page = (
        await async_client.get("/api/v1/work-sites", params={"skip": 1, "limit": 1}, headers=headers)
    ).json()
    assert page["total"] == 3
    assert len(page["items"]) == 1


@pytest.mark.asyncio
async def test_search_escapes_wildcards(async_client: AsyncClient, session_factory, manager):
    await create_site(session_factory, "Head Office")
    resp = await async_client.get(
        "/api/v1/work-sites", params={"search": "%"}, headers=auth_headers(manager)
    )
    assert resp.json()["total"] == 0


@pytest.mark.asyncio
async def test_get_and_update(async_client: AsyncClient, manager, site):
    headers = auth_headers(manager)
    got = await async_client.get(f"/api/v1/work-sites/{site.id}", headers=headers)
    assert got.json()["check_in_token"] == site.check_in_token

    updated = await async_client.put(
        f"/api/v1/work-sites/{site.id}",
        json={"address": "99 New Road", "description": None},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["address"] == "99 New Road"
    assert updated.json()["name"] == "Head Office"

    missing = await async_client.get("/api/v1/work-sites/999", headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_toggle_status_blocks_check_in(async_client: AsyncClient, manager, employee_x, site):
    toggled = await async_client.patch(
        f"/api/v1/work-sites/{site.id}/toggle-status", headers=auth_headers(manager)
    )
    assert toggled.json()["is_active"] is False

    resp = await async_client.post(
        "/api/v1/attendance/check-in",
        json={"token": site.check_in_token},
        headers=auth_headers(employee_x),
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_site"


@pytest.mark.asyncio
async def test_regenerate_token(async_client: AsyncClient, manager, employee_x, site):
    resp = await async_client.post(
        f"/api/v1/work-sites/{site.id}/regenerate-token", headers=auth_headers(manager)
    )
    new_token = resp.json()["check_in_token"]
    assert new_token != site.check_in_token

    old = await async_client.post(
        "/api/v1/attendance/check-in",
        json={"token": site.check_in_token},
        headers=auth_headers(employee_x),
    )
    assert old.status_code == 400

    new = await async_client.post(
        "/api/v1/attendance/check-in", json={"token": new_token}, headers=auth_headers(employee_x)
    )
    assert new.status_code == 201


@pytest.mark.asyncio
async def test_delete_unused_work_site(async_client: AsyncClient, manager, site):
    resp = await async_client.delete(f"/api/v1/work-sites/{site.id}", headers=auth_headers(manager))
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Work site 'Head Office' deleted"}

    gone = await async_client.get(f"/api/v1/work-sites/{site.id}", headers=auth_headers(manager))
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_delete_work_site_with_history_deactivates(
    async_client: AsyncClient, manager, employee_x, site
):
    await async_client.post(
        "/api/v1/attendance/check-in",
        json={"token": site.check_in_token},
        headers=auth_headers(employee_x),
    )
    resp = await async_client.delete(f"/api/v1/work-sites/{site.id}", headers=auth_headers(manager))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Work site 'Head Office' deactivated"

    kept = await async_client.get(f"/api/v1/work-sites/{site.id}", headers=auth_headers(manager))
    assert kept.status_code == 200
    assert kept.json()["is_active"] is False


@pytest.mark.asyncio
async def test_delete_unknown_work_site(async_client: AsyncClient, manager):
    resp = await async_client.delete("/api/v1/work-sites/999", headers=auth_headers(manager))
    assert resp.status_code == 404
