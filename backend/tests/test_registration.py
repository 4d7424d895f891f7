"""
Tests for registration: free and paid paths, unregister, and the capacity and
one-ticket-per-user guarantees under concurrent requests.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from eventhub.core.exceptions import AppError, CapacityExceeded, DuplicateRegistration
from eventhub.models import Event, EventStatus, Ticket, TicketStatus, UserRole
from eventhub.services import registration_service
from eventhub.services.ticket_service import count_active_tickets
from tests.conftest import _create_user, actor_for


@pytest.mark.asyncio
async def test_register_free_event(client: AsyncClient, event_factory, participant, participant_headers, notifier):
    event = await event_factory(name="Book Club")

    response = await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    assert response.status_code == 201
    ticket = response.json()["ticket"]
    assert ticket["status"] == "valid"
    assert ticket["user_id"] == participant.id
    assert ticket["qr_code_data"] == ticket["ticket_number"]
    assert Decimal(ticket["price_at_purchase"]) == Decimal("0")

    detail = (await client.get(f"/api/v1/events/{event.id}")).json()
    assert detail["participant_count"] == 1

    # Confirmation goes out after the response with the scannable code attached
    assert len(notifier.sent) == 1
    message = notifier.sent[0]
    assert message["to"] == participant.email
    assert message["subject"] == "Your ticket for Book Club"
    assert ticket["ticket_number"] in message["html"]
    attachment = message["attachments"][0]
    assert attachment.filename == f"{ticket['ticket_number']}.png"
    assert attachment.content.startswith(b"\x89PNG")


@pytest.mark.asyncio
async def test_capacity_is_enforced(client: AsyncClient, event_factory, participant_headers, participant2_headers):
    event = await event_factory(max_participants=1)

    first = await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    assert first.status_code == 201

    second = await client.post(f"/api/v1/events/{event.id}/register", headers=participant2_headers)
    assert second.status_code == 400
    assert second.json()["message"] == "This event is full"

    detail = (await client.get(f"/api/v1/events/{event.id}")).json()
    assert detail["participant_count"] == 1


@pytest.mark.asyncio
async def test_duplicate_registration(client: AsyncClient, event_factory, participant_headers, db_session):
    event = await event_factory()

    await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    response = await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "You are already registered for this event"

    assert await count_active_tickets(db_session, event.id) == 1
    await db_session.refresh(event)
    assert event.participant_count == 1


@pytest.mark.asyncio
async def test_free_path_refuses_priced_event(client: AsyncClient, event_factory, participant_headers):
    event = await event_factory(price=Decimal("25.00"))

    response = await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    assert response.status_code == 400
    assert "requires payment" in response.json()["message"]


@pytest.mark.asyncio
async def test_simulated_payment(client: AsyncClient, event_factory, participant_headers, notifier):
    event = await event_factory(price=Decimal("25.00"))

    response = await client.post(f"/api/v1/events/{event.id}/simulate-payment", headers=participant_headers)
    assert response.status_code == 201
    assert Decimal(response.json()["ticket"]["price_at_purchase"]) == Decimal("25.00")
    assert len(notifier.sent) == 1
    assert "25.00" in notifier.sent[0]["html"]


@pytest.mark.asyncio
async def test_paid_path_refuses_free_event(client: AsyncClient, event_factory, participant_headers):
    event = await event_factory()

    response = await client.post(f"/api/v1/events/{event.id}/simulate-payment", headers=participant_headers)
    assert response.status_code == 400
    assert "free" in response.json()["message"]


@pytest.mark.asyncio
async def test_price_snapshot_survives_price_change(client: AsyncClient, event_factory, participant_headers, organizer_headers):
    event = await event_factory(price=Decimal("10.00"))
    await client.post(f"/api/v1/events/{event.id}/simulate-payment", headers=participant_headers)

    await client.put(f"/api/v1/events/{event.id}", json={"price": "99.00"}, headers=organizer_headers)

    tickets = (await client.get("/api/v1/tickets/my-tickets", headers=participant_headers)).json()
    assert Decimal(tickets[0]["price_at_purchase"]) == Decimal("10.00")


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [EventStatus.DRAFT, EventStatus.PENDING_APPROVAL])
async def test_cannot_register_for_unpublished_event(client: AsyncClient, event_factory, participant_headers, status):
    event = await event_factory(status=status)

    response = await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    # Not visible to the participant, so it does not exist for them
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cannot_register_for_cancelled_event(client: AsyncClient, event_factory, db_session, participant_headers):
    event = await event_factory(status=EventStatus.CANCELLED)

    response = await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    assert response.status_code == 404
    assert await count_active_tickets(db_session, event.id) == 0


@pytest.mark.asyncio
async def test_cannot_register_after_event_ended(client: AsyncClient, event_factory, participant_headers):
    past = datetime.now(timezone.utc) - timedelta(days=1)
    event = await event_factory(start_date=past - timedelta(hours=2), end_date=past)

    response = await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_event_in_progress_accepts_registration(client: AsyncClient, event_factory, participant_headers):
    now = datetime.now(timezone.utc)
    event = await event_factory(start_date=now - timedelta(hours=1), end_date=now + timedelta(hours=2))

    response = await client.post(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_only_participants_register(client: AsyncClient, event_factory, other_organizer_headers, admin_headers):
    event = await event_factory()

    for headers in (other_organizer_headers, admin_headers):
        response = await client.post(f"/api/v1/events/{event.id}/register", headers=headers)
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_organizer_cannot_register_for_own_event(event_factory, session_factory, organizer):
    """Role aside, the ticket engine itself refuses the event's organizer."""
    event = await event_factory()

    async with session_factory() as session:
        with pytest.raises(AppError) as exc_info:
            await registration_service.register_free(session, actor_for(organizer), event.id)
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_unregister_and_register_again(client: AsyncClient, event_factory, participant_headers, db_session):
    event = await event_factory(max_participants=1)
    url = f"/api/v1/events/{event.id}/register"

    first = (await client.post(url, headers=participant_headers)).json()["ticket"]

    response = await client.delete(url, headers=participant_headers)
    assert response.status_code == 200
    assert response.json()["ticket"]["status"] == "cancelled"
    assert (await client.get(f"/api/v1/events/{event.id}")).json()["participant_count"] == 0

    response = await client.post(url, headers=participant_headers)
    assert response.status_code == 201
    second = response.json()["ticket"]
    assert second["ticket_number"] != first["ticket_number"]

    # Cancelled ticket stays as history
    tickets = (await db_session.execute(select(Ticket).where(Ticket.event_id == event.id))).scalars().all()
    assert len(tickets) == 2


@pytest.mark.asyncio
async def test_unregister_without_ticket(client: AsyncClient, event_factory, participant_headers):
    event = await event_factory()

    response = await client.delete(f"/api/v1/events/{event.id}/register", headers=participant_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "You are not registered for this event"


@pytest.mark.asyncio
async def test_is_registered(event_factory, session_factory, participant):
    event = await event_factory()
    actor = actor_for(participant)

    async with session_factory() as session:
        assert await registration_service.is_registered(session, actor, event.id) is False
        await registration_service.register_free(session, actor, event.id)
        await session.commit()
        assert await registration_service.is_registered(session, actor, event.id) is True
        assert await registration_service.is_registered(session, None, event.id) is False


@pytest.mark.asyncio
async def test_concurrent_registrations_never_oversell(event_factory, session_factory, db_session):
    """Ten participants race for three seats; exactly three tickets exist afterwards."""
    event = await event_factory(max_participants=3)
    users = [
        await _create_user(db_session, f"racer{i}@example.com", UserRole.PARTICIPANT)
        for i in range(10)
    ]

    async def attempt(user):
        async with session_factory() as session:
            try:
                await registration_service.register_free(session, actor_for(user), event.id)
                await session.commit()
                return "ok"
            except CapacityExceeded:
                await session.rollback()
                return "full"

    results = await asyncio.gather(*(attempt(u) for u in users))
    assert results.count("ok") == 3
    assert results.count("full") == 7

    async with session_factory() as session:
        stored = await session.get(Event, event.id)
        assert stored.participant_count == 3
        assert await count_active_tickets(session, event.id) == 3


@pytest.mark.asyncio
async def test_concurrent_double_click_issues_one_ticket(event_factory, session_factory, participant):
    """The same user submits twice at once; one ticket, one seat."""
    event = await event_factory()
    actor = actor_for(participant)

    async def attempt():
        async with session_factory() as session:
            try:
                ticket, _ = await registration_service.register_free(session, actor, event.id)
                await session.commit()
                return ticket.status
            except DuplicateRegistration:
                await session.rollback()
                return None

    results = await asyncio.gather(attempt(), attempt())
    assert results.count(TicketStatus.VALID) == 1
    assert results.count(None) == 1

    async with session_factory() as session:
        stored = await session.get(Event, event.id)
        assert stored.participant_count == 1
        assert await count_active_tickets(session, event.id) == 1

