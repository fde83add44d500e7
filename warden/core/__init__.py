"""
Core module for Warden.

Exports the main configuration component.
"""

from warden.core.config import settings

__all__ = [
    # Config
    "settings",
]
