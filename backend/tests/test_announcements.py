"""
Integration tests for announcements.
"""

from datetime import datetime, timedelta, timezone

import pytest

from backend.app.models.announcement import Announcement


@pytest.fixture
async def announcements(db_session):
    base = datetime(2025, 6, 1, tzinfo=timezone.utc)
    rows = [
        Announcement(
            title=f"Notice {i}",
            description=f"Details {i}",
            created_at=base + timedelta(hours=i),
            updated_at=base + timedelta(hours=i),
        )
        for i in range(12)
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


# TEST 1: Public reads

@pytest.mark.asyncio
async def test_list_newest_first_with_limit(client, announcements):
    response = await client.get("/v1/announcements", params={"limit": 2})
    assert response.status_code == 200
    body = response.json()
    assert [a["title"] for a in body["data"]] == ["Notice 11", "Notice 10"]
    assert body["meta"] == {"count": 2, "limit": 2}


@pytest.mark.asyncio
async def test_list_without_limit_returns_all(client, announcements):
    response = await client.get("/v1/announcements")
    assert len(response.json()["data"]) == 12


@pytest.mark.asyncio
async def test_limit_bounds(client):
    assert (await client.get("/v1/announcements", params={"limit": 0})).status_code == 422
    assert (await client.get("/v1/announcements", params={"limit": 101})).status_code == 422


@pytest.mark.asyncio
async def test_latest_returns_ten(client, announcements):
    response = await client.get("/v1/announcements/latest")
    body = response.json()
    assert len(body["data"]) == 10
    assert body["data"][0]["title"] == "Notice 11"


@pytest.mark.asyncio
async def test_detail_and_404(client, announcements):
    response = await client.get(f"/v1/announcements/{announcements[0].id}")
    assert response.json()["data"]["title"] == "Notice 0"

    response = await client.get("/v1/announcements/9999")
    assert response.status_code == 404
    assert response.json()["message"] == "Announcement not found"


# TEST 2: Admin CRUD

@pytest.mark.asyncio
async def test_admin_crud_cycle(client, admin_headers, mailer):
    await client.post(
        "/v1/newsletter/subscribe",
        json={"first_name": "Ana", "last_name": "Cruz", "email": "ana@mhrhci.ph"},
    )
    mailer.sent.clear()

    created = await client.post(
        "/v1/admin/announcements",
        json={"title": "Holiday schedule", "description": "Closed on Dec 25"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    announcement_id = created.json()["data"]["id"]
    assert mailer.subjects() == ["New Announcement: Holiday schedule"]

    updated = await client.put(
        f"/v1/admin/announcements/{announcement_id}",
        json={"title": "Holiday schedule (updated)", "description": None},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["title"] == "Holiday schedule (updated)"

    deleted = await client.delete(f"/v1/admin/announcements/{announcement_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert (await client.get(f"/v1/announcements/{announcement_id}")).status_code == 404


@pytest.mark.asyncio
async def test_staff_cannot_create_announcements(client, staff_headers):
    response = await client.post("/v1/admin/announcements", json={"title": "Nope"}, headers=staff_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_title_is_required(client, admin_headers):
    response = await client.post("/v1/admin/announcements", json={"description": "No title"}, headers=admin_headers)
    assert response.status_code == 422
    assert "title" in response.json()["errors"]
