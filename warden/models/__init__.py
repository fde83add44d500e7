"""
Database models for Warden.

This module exports all SQLAlchemy models and the declarative base.
Import models from this module to ensure proper initialization.
"""

from warden.models.base import Base
from warden.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin
from warden.models.permission import (
    PERMISSION_TYPE_ACTION,
    PERMISSION_TYPE_API,
    Permission,
)
from warden.models.role import Role, RolePermission, UserRole
from warden.models.user import User

__all__ = [
    # Base
    "Base",
    # Mixins
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # RBAC models
    "User",
    "Role",
    "Permission",
    "UserRole",
    "RolePermission",
    "PERMISSION_TYPE_API",
    "PERMISSION_TYPE_ACTION",
]
