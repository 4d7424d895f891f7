"""
Tests for admin user management and statistics.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from eventhub.models import EventStatus


@pytest.mark.asyncio
async def test_list_users(client: AsyncClient, admin_headers, organizer, participant, participant2):
    response = await client.get("/api/v1/admin/users", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total_count"] == 4

    response = await client.get("/api/v1/admin/users", params={"role": "participant"}, headers=admin_headers)
    assert {u["id"] for u in response.json()["items"]} == {participant.id, participant2.id}

    response = await client.get("/api/v1/admin/users", params={"search": "olga"}, headers=admin_headers)
    assert [u["id"] for u in response.json()["items"]] == [organizer.id]


@pytest.mark.asyncio
async def test_admin_routes_reject_other_roles(client: AsyncClient, organizer_headers, participant_headers):
    for headers in (organizer_headers, participant_headers):
        assert (await client.get("/api/v1/admin/users", headers=headers)).status_code == 403
        assert (await client.get("/api/v1/admin/dashboard-stats", headers=headers)).status_code == 403


@pytest.mark.asyncio
async def test_change_role(client: AsyncClient, admin_headers, participant):
    response = await client.patch(
        f"/api/v1/admin/users/{participant.id}/role", json={"role": "organizer"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["role"] == "organizer"


@pytest.mark.asyncio
async def test_admin_cannot_demote_self(client: AsyncClient, admin, admin_headers):
    response = await client.patch(
        f"/api/v1/admin/users/{admin.id}/role", json={"role": "participant"}, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_change_role_unknown_user(client: AsyncClient, admin_headers):
    response = await client.patch("/api/v1/admin/users/999/role", json={"role": "organizer"}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_user(client: AsyncClient, admin, admin_headers, participant):
    response = await client.delete(f"/api/v1/admin/users/{participant.id}", headers=admin_headers)
    assert response.status_code == 200

    listed = (await client.get("/api/v1/admin/users", headers=admin_headers)).json()
    assert participant.id not in {u["id"] for u in listed["items"]}

    response = await client.delete(f"/api/v1/admin/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_dashboard_stats(client: AsyncClient, event_factory, admin_headers, participant_headers, category):
    published = await event_factory()
    await event_factory(status=EventStatus.DRAFT)
    past = datetime.now(timezone.utc) - timedelta(days=2)
    await event_factory(start_date=past, end_date=past + timedelta(hours=1))
    await client.post(f"/api/v1/events/{published.id}/register", headers=participant_headers)

    response = await client.get("/api/v1/admin/dashboard-stats", headers=admin_headers)
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_users"] == 3
    assert stats["users_by_role"] == {"admin": 1, "organizer": 1, "participant": 1}
    assert stats["total_events"] == 3
    assert stats["events_by_status"]["published"] == 1
    assert stats["events_by_status"]["finished"] == 1
    assert stats["events_by_status"]["draft"] == 1
    assert stats["locations_by_status"] == {"pending": 0, "approved": 1, "rejected": 0}
    assert stats["total_categories"] == 1
    assert stats["total_tickets"] == 1


@pytest.mark.asyncio
async def test_event_activity_by_month_and_day(client: AsyncClient, event_factory, admin_headers):
    def at(month, day):
        start = datetime(2030, month, day, 18, 0, tzinfo=timezone.utc)
        return {"start_date": start, "end_date": start + timedelta(hours=2)}

    await event_factory(**at(3, 5))
    await event_factory(**at(3, 5))
    await event_factory(**at(3, 20))
    await event_factory(**at(7, 1), status=EventStatus.PENDING_APPROVAL)
    await event_factory(**at(7, 2), status=EventStatus.DRAFT)

    response = await client.get("/api/v1/admin/event-activity-stats", params={"year": 2030}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == [{"period": 3, "events": 3}, {"period": 7, "events": 1}]

    response = await client.get(
        "/api/v1/admin/event-activity-stats", params={"year": 2030, "month": 3}, headers=admin_headers
    )
    assert response.json() == [{"period": 5, "events": 2}, {"period": 20, "events": 1}]


@pytest.mark.asyncio
async def test_event_activity_rejects_bad_month(client: AsyncClient, admin_headers):
    response = await client.get(
        "/api/v1/admin/event-activity-stats", params={"year": 2030, "month": 13}, headers=admin_headers
    )
    assert response.status_code == 400
