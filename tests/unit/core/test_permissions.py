"""
Unit tests for the permission catalog.
"""

import pytest

from warden.core.permissions import (
    PermissionCatalog,
    PermissionDefinition,
    build_permission_catalog,
)
from warden.main import app
from warden.services.authorization_service import match_path


@pytest.fixture
def catalog() -> PermissionCatalog:
    return build_permission_catalog("/api/v1")


class TestPermissionCatalog:
    """Test catalog construction and lookup."""

    def test_names_are_unique(self, catalog: PermissionCatalog):
        assert len(set(catalog.names)) == len(catalog)

    def test_every_entry_is_an_api_permission(self, catalog: PermissionCatalog):
        for definition in catalog:
            assert definition.type == "api"
            assert definition.metadata == {
                "method": definition.method,
                "path": definition.path,
            }

    def test_paths_carry_the_prefix(self, catalog: PermissionCatalog):
        assert all(d.path.startswith("/api/v1/") for d in catalog)

    def test_lookup_by_name(self, catalog: PermissionCatalog):
        definition = catalog.get("role:assign_permission")
        assert definition is not None
        assert definition.method == "POST"
        assert definition.path == "/api/v1/roles/{id}/permissions"
        assert "role:assign_permission" in catalog
        assert catalog.get("missing") is None

    def test_duplicate_names_rejected(self):
        definition = PermissionDefinition("user:list", "List users", "GET", "/users")
        with pytest.raises(ValueError):
            PermissionCatalog([definition, definition])

    def test_prefix_trailing_slash_ignored(self):
        catalog = build_permission_catalog("/api/v1/")
        assert catalog.get("user:list").path == "/api/v1/users"

    def test_definitions_are_immutable(self, catalog: PermissionCatalog):
        definition = catalog.get("user:list")
        with pytest.raises(AttributeError):
            definition.path = "/elsewhere"

    def test_catalog_covers_every_protected_route(self, catalog: PermissionCatalog):
        """Test that each mounted CRUD route has exactly one catalog entry."""
        protected = [
            (method.upper(), path)
            for path, operations in app.openapi()["paths"].items()
            if path.startswith("/api/v1/") and not path.startswith("/api/v1/auth")
            for method in operations
        ]
        assert protected
        for method, path in protected:
            matches = [
                d.name
                for d in catalog
                if d.method == method and match_path(d.path, path)
            ]
            assert len(matches) == 1, (method, path, matches)
