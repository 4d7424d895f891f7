"""
Tests for the ticket engine: numbering, collision retries, listing and
counter reconciliation.
"""

import re

import pytest
from httpx import AsyncClient

from eventhub.core.exceptions import InternalError
from eventhub.models import Event, TicketStatus
from eventhub.services import registration_service, ticket_service
from eventhub.services.qr_service import render_scannable
from tests.conftest import actor_for

TICKET_NUMBER = re.compile(r"^TKT-\d{5}-\d{5}-[0-9A-F]{4}$")


def test_ticket_number_format():
    number = ticket_service.generate_ticket_number(42, 7)
    assert TICKET_NUMBER.match(number)
    assert number.startswith("TKT-00042-00007-")


def test_ticket_number_uses_id_tails():
    number = ticket_service.generate_ticket_number(1234567, 99)
    assert number.startswith("TKT-34567-00099-")


def test_ticket_numbers_differ():
    numbers = {ticket_service.generate_ticket_number(1, 1, suffix_bytes=8) for _ in range(50)}
    assert len(numbers) == 50


def test_scannable_code_is_deterministic_png():
    first = render_scannable("TKT-00001-00002-ABCD")
    assert first.startswith(b"\x89PNG")
    assert render_scannable("TKT-00001-00002-ABCD") == first


@pytest.mark.asyncio
async def test_issued_ticket_fields(event_factory, session_factory, participant):
    event = await event_factory()

    async with session_factory() as session:
        ticket = await ticket_service.issue_ticket(session, actor_for(participant), event.id)
        await session.commit()

    assert TICKET_NUMBER.match(ticket.ticket_number)
    assert ticket.qr_code_data == ticket.ticket_number
    assert ticket.status == TicketStatus.VALID
    assert ticket.purchase_date is not None


@pytest.mark.asyncio
async def test_ticket_number_collision_is_retried(
    event_factory, session_factory, participant, participant2, monkeypatch
):
    event = await event_factory()
    numbers = iter(["TKT-00001-00001-AAAA", "TKT-00001-00001-AAAA", "TKT-00001-00002-BBBB"])
    monkeypatch.setattr(ticket_service, "generate_ticket_number", lambda event_id, user_id: next(numbers))

    async with session_factory() as session:
        first = await ticket_service.issue_ticket(session, actor_for(participant), event.id)
        await session.commit()
    async with session_factory() as session:
        second = await ticket_service.issue_ticket(session, actor_for(participant2), event.id)
        await session.commit()

    assert first.ticket_number == "TKT-00001-00001-AAAA"
    assert second.ticket_number == "TKT-00001-00002-BBBB"

    async with session_factory() as session:
        stored = await session.get(Event, event.id)
        assert stored.participant_count == 2


@pytest.mark.asyncio
async def test_ticket_number_retries_are_bounded(
    event_factory, session_factory, participant, participant2, monkeypatch
):
    event = await event_factory()
    monkeypatch.setattr(ticket_service, "generate_ticket_number", lambda event_id, user_id: "TKT-00001-00001-AAAA")

    async with session_factory() as session:
        await ticket_service.issue_ticket(session, actor_for(participant), event.id)
        await session.commit()

    async with session_factory() as session:
        with pytest.raises(InternalError):
            await ticket_service.issue_ticket(session, actor_for(participant2), event.id)
        await session.rollback()

    async with session_factory() as session:
        stored = await session.get(Event, event.id)
        # Every failed attempt gave its seat back
        assert stored.participant_count == 1
        assert await ticket_service.count_active_tickets(session, event.id) == 1


@pytest.mark.asyncio
async def test_my_tickets_newest_first(client: AsyncClient, event_factory, participant_headers):
    first = await event_factory(name="First")
    second = await event_factory(name="Second")

    await client.post(f"/api/v1/events/{first.id}/register", headers=participant_headers)
    await client.post(f"/api/v1/events/{second.id}/register", headers=participant_headers)
    await client.delete(f"/api/v1/events/{first.id}/register", headers=participant_headers)

    response = await client.get("/api/v1/tickets/my-tickets", headers=participant_headers)
    assert response.status_code == 200
    tickets = response.json()
    assert [t["event"]["name"] for t in tickets] == ["Second", "First"]
    assert [t["status"] for t in tickets] == ["valid", "cancelled"]
    assert tickets[0]["event"]["location"]["name"] == "Town Hall"


@pytest.mark.asyncio
async def test_my_tickets_requires_auth(client: AsyncClient):
    response = await client.get("/api/v1/tickets/my-tickets")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_reconcile_fixes_drift(client: AsyncClient, event_factory, participant_headers, admin_headers, db_session):
    event = await event_factory()
    await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)

    event.participant_count = 5
    await db_session.commit()

    response = await client.post(f"/api/v1/events/{event.id}/reconcile", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"event_id": event.id, "participant_count": 1, "corrected": True}

    response = await client.post(f"/api/v1/events/{event.id}/reconcile", headers=admin_headers)
    assert response.json()["corrected"] is False


@pytest.mark.asyncio
async def test_reconcile_admin_only(client: AsyncClient, event_factory, organizer_headers):
    event = await event_factory()

    response = await client.post(f"/api/v1/events/{event.id}/reconcile", headers=organizer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reconcile_missing_event(client: AsyncClient, admin_headers):
    response = await client.post("/api/v1/events/9999/reconcile", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_ticket_counts_by_event(event_factory, session_factory, participant, participant2):
    first = await event_factory()
    second = await event_factory()
    empty = await event_factory()

    async with session_factory() as session:
        for actor in (actor_for(participant), actor_for(participant2)):
            await registration_service.register_free(session, actor, first.id)
            await session.commit()
        await registration_service.register_free(session, actor_for(participant), second.id)
        await session.commit()

        counts = await ticket_service.ticket_counts_by_event(session, [first.id, second.id, empty.id])
        assert await ticket_service.ticket_counts_by_event(session, []) == {}

    assert counts == {first.id: 2, second.id: 1}
