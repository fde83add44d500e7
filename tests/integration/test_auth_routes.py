"""
Integration tests for authentication endpoints.

Tests cover:
- Login with valid and invalid credentials
- Token refresh and rotation
- Current-user profile
- Envelope shape of failures
"""

import pytest
from httpx import AsyncClient

from tests.conftest import ADMIN_USERNAME, API, USER_PASSWORD, login


class TestLogin:
    """Test POST /auth/login."""

    @pytest.mark.asyncio
    async def test_login_success(self, async_client: AsyncClient, test_user):
        response = await async_client.post(
            f"{API}/auth/login",
            json={"username": "testuser", "password": USER_PASSWORD},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["code"] == 200
        assert body["msg"] == "success"
        data = body["data"]
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] > 0

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, async_client: AsyncClient, test_user):
        """Failures travel in the envelope with transport status 200."""
        response = await async_client.post(
            f"{API}/auth/login",
            json={"username": "testuser", "password": "WrongPass123!"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "code": 401,
            "msg": "Invalid username or password",
            "data": None,
        }

    @pytest.mark.asyncio
    async def test_login_unknown_user_is_indistinguishable(self, async_client: AsyncClient):
        response = await async_client.post(
            f"{API}/auth/login",
            json={"username": "nobody", "password": USER_PASSWORD},
        )

        body = response.json()
        assert body["code"] == 401
        assert body["msg"] == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_login_missing_password(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/auth/login", json={"username": "testuser"})

        body = response.json()
        assert body["code"] == 400
        assert body["msg"] == "Password is required"
        assert body["data"] is None

    @pytest.mark.asyncio
    async def test_login_invalid_json(self, async_client: AsyncClient):
        response = await async_client.post(
            f"{API}/auth/login",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        body = response.json()
        assert body["code"] == 400
        assert body["msg"].startswith("Invalid JSON body")


class TestRefresh:
    """Test POST /auth/refresh."""

    @pytest.mark.asyncio
    async def test_refresh_success(self, async_client: AsyncClient, user_token):
        response = await async_client.post(
            f"{API}/auth/refresh",
            json={"refresh_token": user_token["refresh_token"]},
        )

        body = response.json()
        assert body["code"] == 200
        assert body["data"]["access_token"]
        assert body["data"]["refresh_token"]

        me = await async_client.get(
            f"{API}/auth/me",
            headers={"Authorization": f"Bearer {body['data']['access_token']}"},
        )
        assert me.json()["data"]["username"] == "testuser"

    @pytest.mark.asyncio
    async def test_refresh_with_access_token_rejected(
        self, async_client: AsyncClient, user_token
    ):
        response = await async_client.post(
            f"{API}/auth/refresh",
            json={"refresh_token": user_token["access_token"]},
        )

        assert response.json()["code"] == 401

    @pytest.mark.asyncio
    async def test_refresh_with_garbage(self, async_client: AsyncClient):
        response = await async_client.post(
            f"{API}/auth/refresh",
            json={"refresh_token": "not-a-token"},
        )

        assert response.json()["code"] == 401

    @pytest.mark.asyncio
    async def test_refresh_missing_token(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/auth/refresh", json={})

        body = response.json()
        assert body["code"] == 400
        assert body["msg"] == "Refresh token is required"

    @pytest.mark.asyncio
    async def test_refresh_after_user_deleted(
        self, async_client: AsyncClient, admin_headers, test_user
    ):
        tokens = await login(async_client, "testuser", USER_PASSWORD)
        deleted = await async_client.delete(
            f"{API}/users/{test_user.id}", headers=admin_headers
        )
        assert deleted.json()["code"] == 200

        response = await async_client.post(
            f"{API}/auth/refresh",
            json={"refresh_token": tokens["refresh_token"]},
        )

        assert response.json()["code"] == 401


class TestMe:
    """Test GET /auth/me."""

    @pytest.mark.asyncio
    async def test_me_without_roles(self, async_client: AsyncClient, auth_headers):
        """Any authenticated caller may read its own profile."""
        response = await async_client.get(f"{API}/auth/me", headers=auth_headers)

        body = response.json()
        assert body["code"] == 200
        data = body["data"]
        assert data["username"] == "testuser"
        assert data["roles"] == []
        assert data["permissions"] == []
        assert "password_hash" not in data

    @pytest.mark.asyncio
    async def test_me_as_admin(self, async_client: AsyncClient, admin_headers, catalog):
        response = await async_client.get(f"{API}/auth/me", headers=admin_headers)

        data = response.json()["data"]
        assert data["username"] == ADMIN_USERNAME
        assert [r["name"] for r in data["roles"]] == ["root"]
        assert {p["name"] for p in data["permissions"]} == set(catalog.names)

    @pytest.mark.asyncio
    async def test_me_without_token(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/auth/me")

        assert response.status_code == 200
        assert response.json() == {
            "code": 401,
            "msg": "Missing authentication credentials",
            "data": None,
        }
