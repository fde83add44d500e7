"""
Integration tests for permission management endpoints.

Tests cover:
- Creating api and action permissions
- Metadata requirements for api permissions
- Read, list, update and delete
"""

import uuid

import pytest
from httpx import AsyncClient

from tests.conftest import API


class TestCreatePermission:
    """Test POST /permissions."""

    @pytest.mark.asyncio
    async def test_create_api_permission(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{API}/permissions",
            json={
                "name": "report:export",
                "type": "api",
                "metadata": {"method": "GET", "path": "/api/v1/reports/{id}/export"},
            },
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["name"] == "report:export"
        assert data["type"] == "api"
        assert data["metadata"] == {"method": "GET", "path": "/api/v1/reports/{id}/export"}

    @pytest.mark.asyncio
    async def test_create_action_permission(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{API}/permissions",
            json={"name": "button:export", "type": "action", "metadata": {"code": "export"}},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["type"] == "action"
        assert data["metadata"] == {"code": "export"}

    @pytest.mark.asyncio
    async def test_api_permission_requires_route(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{API}/permissions",
            json={"name": "report:export", "type": "api", "metadata": {"method": "GET"}},
            headers=admin_headers,
        )

        assert response.json() == {
            "code": 400,
            "msg": "API permissions require metadata.method and metadata.path",
            "data": None,
        }

    @pytest.mark.asyncio
    async def test_api_permission_without_metadata(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{API}/permissions",
            json={"name": "report:export", "type": "api"},
            headers=admin_headers,
        )

        assert response.json()["code"] == 400

    @pytest.mark.asyncio
    async def test_invalid_method(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{API}/permissions",
            json={
                "name": "report:export",
                "type": "api",
                "metadata": {"method": "FETCH", "path": "/reports"},
            },
            headers=admin_headers,
        )

        body = response.json()
        assert body["code"] == 400
        assert body["msg"].startswith("Method must be one of [GET, POST")

    @pytest.mark.asyncio
    async def test_invalid_path(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{API}/permissions",
            json={
                "name": "report:export",
                "type": "api",
                "metadata": {"method": "GET", "path": "reports"},
            },
            headers=admin_headers,
        )

        body = response.json()
        assert body["code"] == 400
        assert body["msg"] == "Path must be an absolute route pattern such as /api/v1/users/{id}"

    @pytest.mark.asyncio
    async def test_duplicate_name(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{API}/permissions",
            json={
                "name": "user:create",
                "type": "api",
                "metadata": {"method": "POST", "path": "/elsewhere"},
            },
            headers=admin_headers,
        )

        assert response.json() == {
            "code": 409,
            "msg": "Permission with this name already exists",
            "data": None,
        }


class TestReadPermissions:
    """Test GET /permissions and GET /permissions/{id}."""

    @pytest.mark.asyncio
    async def test_list_catalog(self, async_client: AsyncClient, admin_headers, catalog):
        response = await async_client.get(
            f"{API}/permissions", params={"page_size": 100}, headers=admin_headers
        )

        data = response.json()["data"]
        assert data["meta"]["total"] == len(catalog)
        assert {p["name"] for p in data["items"]} == set(catalog.names)

    @pytest.mark.asyncio
    async def test_list_by_type(
        self, async_client: AsyncClient, admin_headers, make_permission
    ):
        await make_permission("button:export", type="action")

        response = await async_client.get(
            f"{API}/permissions", params={"type": "action"}, headers=admin_headers
        )

        items = response.json()["data"]["items"]
        assert [p["name"] for p in items] == ["button:export"]

    @pytest.mark.asyncio
    async def test_list_name_filter_is_literal(
        self, async_client: AsyncClient, admin_headers, make_permission
    ):
        await make_permission("report_export", type="action")
        await make_permission("reportxexport", type="action")

        response = await async_client.get(
            f"{API}/permissions", params={"name": "t_e"}, headers=admin_headers
        )

        items = response.json()["data"]["items"]
        assert [p["name"] for p in items] == ["report_export"]

    @pytest.mark.asyncio
    async def test_get_permission(self, async_client: AsyncClient, admin_headers, make_permission):
        permission = await make_permission("doc:read", "GET", "/docs")

        response = await async_client.get(
            f"{API}/permissions/{permission.id}", headers=admin_headers
        )

        data = response.json()["data"]
        assert data["name"] == "doc:read"
        assert data["metadata"] == {"method": "GET", "path": "/docs"}

    @pytest.mark.asyncio
    async def test_get_unknown_permission(self, async_client: AsyncClient, admin_headers):
        response = await async_client.get(
            f"{API}/permissions/{uuid.uuid4()}", headers=admin_headers
        )

        assert response.json()["code"] == 404


class TestUpdateDeletePermissions:
    """Test PUT and DELETE on /permissions/{id}."""

    @pytest.mark.asyncio
    async def test_update_route(self, async_client: AsyncClient, admin_headers, make_permission):
        permission = await make_permission("doc:read", "GET", "/docs")

        response = await async_client.put(
            f"{API}/permissions/{permission.id}",
            json={"metadata": {"method": "get", "path": "/documents"}},
            headers=admin_headers,
        )

        body = response.json()
        assert body["code"] == 400
        assert body["msg"].startswith("Method must be one of")

        response = await async_client.put(
            f"{API}/permissions/{permission.id}",
            json={"name": "documents:read", "metadata": {"method": "GET", "path": "/documents"}},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["name"] == "documents:read"
        assert data["metadata"] == {"method": "GET", "path": "/documents"}

    @pytest.mark.asyncio
    async def test_change_type_to_api_requires_route(
        self, async_client: AsyncClient, admin_headers, make_permission
    ):
        permission = await make_permission("button:export", type="action")

        response = await async_client.put(
            f"{API}/permissions/{permission.id}",
            json={"type": "api"},
            headers=admin_headers,
        )

        assert response.json()["code"] == 400

    @pytest.mark.asyncio
    async def test_delete_permission_removes_grants(
        self, async_client: AsyncClient, admin_headers, make_role, make_permission
    ):
        role = await make_role("editor")
        permission = await make_permission("doc:read", "GET", "/docs")
        await async_client.post(
            f"{API}/roles/{role.id}/permissions",
            json={"permission_ids": [str(permission.id)]},
            headers=admin_headers,
        )

        response = await async_client.delete(
            f"{API}/permissions/{permission.id}", headers=admin_headers
        )
        assert response.json()["data"] == {"deleted": 1}

        granted = await async_client.get(
            f"{API}/roles/{role.id}/permissions", headers=admin_headers
        )
        assert granted.json()["data"] == []
