"""
API routes for Warden.

This package contains all API endpoint definitions organized by feature.
"""

from warden.api.routes import auth, health, permissions, roles, users

__all__ = ["auth", "health", "permissions", "roles", "users"]
