"""
Tests for authentication endpoints.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import PASSWORD


@pytest.mark.asyncio
async def test_register_participant(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "first_name": "Nina",
            "last_name": "Novak",
            "email": "Nina@Example.com",
            "password": "securepass123",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "nina@example.com"
    assert data["role"] == "participant"
    assert data["is_active"] is True
    assert "hashed_password" not in data


@pytest.mark.asyncio
async def test_register_organizer(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "first_name": "Omar",
            "last_name": "Okafor",
            "email": "omar@example.com",
            "password": "securepass123",
            "role": "organizer",
        },
    )
    assert response.status_code == 201
    assert response.json()["role"] == "organizer"


@pytest.mark.asyncio
async def test_register_cannot_self_assign_admin(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "first_name": "Eve",
            "last_name": "Evans",
            "email": "eve@example.com",
            "password": "securepass123",
            "role": "admin",
        },
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, participant):
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "first_name": "Other",
            "last_name": "Person",
            "email": participant.email.upper(),
            "password": "securepass123",
        },
    )
    assert response.status_code == 400
    assert "already exists" in response.json()["message"]


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, organizer):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": organizer.email, "password": PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["role"] == "organizer"
    assert data["access_token"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, participant):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": participant.email, "password": "wrongpassword"},
    )
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_login_inactive_account(client: AsyncClient, db_session, participant):
    participant.is_active = False
    await db_session.commit()

    response = await client.post(
        "/api/v1/auth/login",
        json={"email": participant.email, "password": PASSWORD},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_token_from_login_authenticates(client: AsyncClient, participant):
    login = await client.post(
        "/api/v1/auth/login",
        json={"email": participant.email, "password": PASSWORD},
    )
    token = login.json()["access_token"]

    response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["id"] == participant.id


@pytest.mark.asyncio
async def test_protected_route_without_token(client: AsyncClient):
    response = await client.get("/api/v1/users/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_with_garbage_token(client: AsyncClient):
    response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"
