"""Tests for authentication endpoints and token handling."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from httpx import AsyncClient

from gallery_api.config import settings
from gallery_api.utils.auth import (
    MIN_PASSWORD_LENGTH,
    hash_password,
    verify_admin_credentials,
    verify_password,
)
from gallery_api.utils.jwt_auth import create_access_token, verify_token


def test_password_hash_roundtrip():
    hashed = hash_password("hunter22", rounds=4)

    assert hashed.startswith("$2")
    assert verify_password("hunter22", hashed) is True
    assert verify_password("hunter23", hashed) is False


def test_verify_password_with_malformed_hash():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_verify_admin_credentials_requires_configured_hash(monkeypatch, admin_password: str):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", "")

    with pytest.raises(ValueError):
        verify_admin_credentials("admin", admin_password)


def test_verify_admin_credentials(admin_password: str):
    assert verify_admin_credentials("admin", admin_password) is True
    assert verify_admin_credentials("admin", "wrong") is False
    assert verify_admin_credentials("someone", admin_password) is False


def test_verify_token_identity():
    token = create_access_token({"sub": "admin", "role": "admin"})

    identity = verify_token(token)

    assert identity.username == "admin"
    assert identity.role == "admin"
    assert identity.expires_at is not None


def test_verify_token_rejects_expired():
    token = create_access_token({"sub": "admin", "role": "admin"}, expires_delta=timedelta(seconds=-5))

    with pytest.raises(HTTPException) as exc_info:
        verify_token(token)

    assert exc_info.value.status_code == 401


def test_verify_token_rejects_non_admin_role():
    token = create_access_token({"sub": "visitor", "role": "viewer"})

    with pytest.raises(HTTPException) as exc_info:
        verify_token(token)

    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, admin_password: str):
    response = await client.post(
        "/api/auth/login", json={"username": "admin", "password": admin_password}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["user"] == {"username": "admin", "role": "admin"}
    assert verify_token(data["token"]).username == "admin"
    assert settings.AUTH_COOKIE_NAME in response.cookies


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient):
    response = await client.post("/api/auth/login", json={"username": "admin", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_not_configured(client: AsyncClient, monkeypatch, admin_password: str):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", "")

    response = await client.post(
        "/api/auth/login", json={"username": "admin", "password": admin_password}
    )

    assert response.status_code == 500


@pytest.mark.asyncio
async def test_verify_with_header(client: AsyncClient, admin_headers: dict):
    response = await client.get("/api/auth/verify", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["user"]["username"] == "admin"


@pytest.mark.asyncio
async def test_verify_with_cookie_from_login(client: AsyncClient, admin_password: str):
    response = await client.post(
        "/api/auth/login", json={"username": "admin", "password": admin_password}
    )
    token = response.cookies[settings.AUTH_COOKIE_NAME]

    response = await client.get("/api/auth/verify", cookies={settings.AUTH_COOKIE_NAME: token})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_verify_without_token(client: AsyncClient):
    response = await client.get("/api/auth/verify")

    assert response.status_code == 401
    assert response.json()["error"] == "Missing token"


@pytest.mark.asyncio
async def test_non_admin_token_forbidden(client: AsyncClient):
    token = create_access_token({"sub": "visitor", "role": "viewer"})

    response = await client.post(
        "/api/admin/paintings/reorder",
        json={"order": [{"id": 1, "order": 1}]},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_logout(client: AsyncClient, admin_headers: dict):
    response = await client.post("/api/auth/logout", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True


@pytest.mark.asyncio
async def test_change_password_returns_new_hash(
    client: AsyncClient, admin_headers: dict, admin_password: str
):
    response = await client.post(
        "/api/auth/change-password",
        json={"currentPassword": admin_password, "newPassword": "brand-new-pass"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    new_hash = response.json()["newPasswordHash"]
    assert verify_password("brand-new-pass", new_hash) is True
    # Configuration is not rewritten
    assert verify_password(admin_password, settings.ADMIN_PASSWORD_HASH) is True


@pytest.mark.asyncio
async def test_change_password_wrong_current(client: AsyncClient, admin_headers: dict):
    response = await client.post(
        "/api/auth/change-password",
        json={"currentPassword": "not-it", "newPassword": "brand-new-pass"},
        headers=admin_headers,
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_change_password_too_short(
    client: AsyncClient, admin_headers: dict, admin_password: str
):
    response = await client.post(
        "/api/auth/change-password",
        json={"currentPassword": admin_password, "newPassword": "abc"},
        headers=admin_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.json() == {"status": "healthy"}

    response = await client.get("/health/db")
    assert response.json()["database"] == "connected"

    response = await client.get("/health/storage")
    assert response.json()["backend"] == "local"


@pytest.mark.asyncio
async def test_change_password_length_matches_hash_script(
    client: AsyncClient, admin_headers: dict, admin_password: str
):
    short = "x" * (MIN_PASSWORD_LENGTH - 1)
    response = await client.post(
        "/api/auth/change-password",
        json={"currentPassword": admin_password, "newPassword": short},
        headers=admin_headers,
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/auth/change-password",
        json={"currentPassword": admin_password, "newPassword": "x" * MIN_PASSWORD_LENGTH},
        headers=admin_headers,
    )
    assert response.status_code == 200
