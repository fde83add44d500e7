"""
Repository layer for Warden.

Repositories own all SQL; services own all policy.
"""

from warden.repositories.base import BaseRepository
from warden.repositories.permission_repository import PermissionRepository
from warden.repositories.role_repository import RoleRepository
from warden.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "PermissionRepository",
    "RoleRepository",
    "UserRepository",
]
