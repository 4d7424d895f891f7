"""
Tests for the public contact form.
"""

import pytest
from httpx import AsyncClient

from eventhub.core.config import get_settings

MESSAGE = {
    "name": "Nina <i>Guest</i>",
    "email": "nina@example.com",
    "subject": "Venue question",
    "message": "Is the hall accessible?\nThanks",
}


@pytest.mark.asyncio
async def test_contact_message_forwarded(client: AsyncClient, notifier):
    response = await client.post("/api/v1/contact/", json=MESSAGE)
    assert response.status_code == 200
    assert response.json()["message"] == "Your message has been sent"

    sent = notifier.sent[0]
    assert sent["to"] == "team@eventhub.test"
    assert sent["subject"] == "New contact message: Venue question"
    assert "nina@example.com" in sent["html"]
    assert "accessible?<br>Thanks" in sent["html"]
    assert "<i>Guest</i>" not in sent["html"]


@pytest.mark.asyncio
async def test_contact_requires_every_field(client: AsyncClient, notifier):
    for field in MESSAGE:
        body = {k: v for k, v in MESSAGE.items() if k != field}
        response = await client.post("/api/v1/contact/", json=body)
        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    response = await client.post("/api/v1/contact/", json=dict(MESSAGE, subject="   "))
    assert response.status_code == 400
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_contact_send_failure_is_reported(client: AsyncClient, notifier, monkeypatch):
    async def refuse(to, subject, html_body, attachments=()):
        return False

    monkeypatch.setattr(notifier, "send", refuse)
    response = await client.post("/api/v1/contact/", json=MESSAGE)
    assert response.status_code == 500
    assert "could not be sent" in response.json()["message"]


@pytest.mark.asyncio
async def test_contact_without_recipient(client: AsyncClient, notifier, monkeypatch):
    monkeypatch.setattr(get_settings(), "CONTACT_EMAIL", "")
    monkeypatch.setattr(get_settings(), "EMAIL_USER", "")

    response = await client.post("/api/v1/contact/", json=MESSAGE)
    assert response.status_code == 500
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_contact_falls_back_to_mail_account(client: AsyncClient, notifier, monkeypatch):
    monkeypatch.setattr(get_settings(), "CONTACT_EMAIL", "")
    monkeypatch.setattr(get_settings(), "EMAIL_USER", "inbox@eventhub.test")

    response = await client.post("/api/v1/contact/", json=MESSAGE)
    assert response.status_code == 200
    assert notifier.sent[0]["to"] == "inbox@eventhub.test"
