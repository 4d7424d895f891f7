"""
Tests for the site settings singleton and the service endpoints.
"""

import pytest
from httpx import AsyncClient

from eventhub.models.setting import DEFAULTS


@pytest.mark.asyncio
async def test_settings_created_with_defaults(client: AsyncClient):
    response = await client.get("/api/v1/settings/")
    assert response.status_code == 200
    data = response.json()
    assert data["carousel_app_name_text"] == DEFAULTS["carousel_app_name_text"]
    assert data["values"] == []

    # Second read returns the same row
    assert (await client.get("/api/v1/settings/")).json() == data


@pytest.mark.asyncio
async def test_update_settings_admin_only(client: AsyncClient, admin_headers, organizer_headers):
    body = {
        "about_text": "We run events.",
        "values": [{"title": "Community", "description": "People first", "icon": "users"}],
    }

    response = await client.put("/api/v1/settings/", json=body, headers=organizer_headers)
    assert response.status_code == 403

    response = await client.put("/api/v1/settings/", json=body, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["about_text"] == "We run events."
    assert data["values"][0]["title"] == "Community"
    # Untouched fields keep their value
    assert data["main_logo"] == DEFAULTS["main_logo"]


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["x-request-id"]

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "registration_latency_seconds" in response.text
