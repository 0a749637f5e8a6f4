"""Integration tests for authentication API."""

import pytest
from httpx import AsyncClient

API = "/api/v1"


@pytest.mark.asyncio
class TestRegistration:

    async def test_register_success(self, client: AsyncClient):
        response = await client.post(
            f"{API}/auth/register",
            json={
                "username": "maria",
                "email": "maria@acme-consulting.com",
                "password": "SecurePass123",
                "role": "Knowledge Champion",
                "region": "EMEA",
                "skills": ["pricing"],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "Knowledge Champion"
        assert data["user"]["skills"] == ["pricing"]
        assert "password_hash" not in data["user"]

    async def test_register_duplicate_email(self, client: AsyncClient, register):
        first = await register()

        response = await client.post(
            f"{API}/auth/register",
            json={"username": "someone_else", "email": first["email"], "password": "SecurePass123"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "User with this email or username already exists"

    async def test_register_invalid_role(self, client: AsyncClient):
        response = await client.post(
            f"{API}/auth/register",
            json={
                "username": "rogue",
                "email": "rogue@acme-consulting.com",
                "password": "SecurePass123",
                "role": "Emperor",
            },
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid role"

    async def test_register_weak_password(self, client: AsyncClient):
        response = await client.post(
            f"{API}/auth/register",
            json={"username": "weak", "email": "weak@acme-consulting.com", "password": "password"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Validation error"


@pytest.mark.asyncio
class TestLogin:

    async def test_login_success(self, client: AsyncClient, register):
        user = await register()

        response = await client.post(
            f"{API}/auth/login",
            json={"email": user["email"], "password": user["password"]},
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["id"]

    async def test_login_wrong_password(self, client: AsyncClient, register):
        user = await register()

        response = await client.post(
            f"{API}/auth/login",
            json={"email": user["email"], "password": "WrongPassword1"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": "nobody@acme-consulting.com", "password": "SecurePass123"},
        )
        assert response.status_code == 401


@pytest.mark.asyncio
class TestTokens:

    async def test_get_current_user(self, client: AsyncClient, register):
        user = await register("Project Manager")

        response = await client.get(f"{API}/auth/me", headers=user["headers"])

        assert response.status_code == 200
        assert response.json()["role"] == "Project Manager"

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get(f"{API}/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Not authenticated"

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get(
            f"{API}/auth/me", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    async def test_refresh_rotates_token(self, client: AsyncClient, register):
        user = await register()

        first = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": user["refresh_token"]}
        )
        assert first.status_code == 200
        assert first.json()["refresh_token"] != user["refresh_token"]

        reused = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": user["refresh_token"]}
        )
        assert reused.status_code == 401
        assert reused.json()["message"] == "Invalid or expired refresh token"

    async def test_logout_revokes_refresh_tokens(self, client: AsyncClient, register):
        user = await register()

        response = await client.post(f"{API}/auth/logout", headers=user["headers"])
        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"

        refresh = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": user["refresh_token"]}
        )
        assert refresh.status_code == 401

    async def test_logout_single_token(self, client: AsyncClient, register):
        user = await register()
        login = await client.post(
            f"{API}/auth/login",
            json={"email": user["email"], "password": user["password"]},
        )
        other_refresh = login.json()["refresh_token"]

        await client.post(
            f"{API}/auth/logout",
            json={"refresh_token": user["refresh_token"]},
            headers=user["headers"],
        )

        revoked = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": user["refresh_token"]}
        )
        kept = await client.post(f"{API}/auth/refresh", json={"refresh_token": other_refresh})
        assert revoked.status_code == 401
        assert kept.status_code == 200
