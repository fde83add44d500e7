"""
Service layer for business logic.

This package provides service classes that implement business logic,
coordinate between repositories, and handle transaction management.
"""

from warden.services.auth_service import AuthService
from warden.services.authorization_service import AuthorizationService
from warden.services.bootstrap_service import BootstrapReport, BootstrapService
from warden.services.permission_service import PermissionService
from warden.services.role_service import RoleService
from warden.services.user_service import UserService

__all__ = [
    "AuthService",
    "AuthorizationService",
    "BootstrapReport",
    "BootstrapService",
    "PermissionService",
    "RoleService",
    "UserService",
]
