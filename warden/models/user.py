"""
User model.

Users hold roles through the ``user_roles`` join table (see models.role);
the effective permission set of a user is never stored, it is derived from
those roles on every authorization check.
"""

from typing import Any, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from warden.models.base import Base
from warden.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    User model for authentication and profile management.

    Attributes:
        id: UUID primary key
        username: Unique login name
        phone: Unique phone number (optional)
        password_hash: Argon2id hashed password
        profile: Opaque structured blob owned by clients
        created_at: When the account was created
        updated_at: When the account was last updated

    Deleting a user removes its role assignments (ON DELETE CASCADE on
    user_roles).
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        unique=True,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    profile: Mapped[Optional[dict[str, Any]]] = mapped_column(
        nullable=True,
    )

    def __repr__(self) -> str:
        """String representation of User."""
        return f"User(id={self.id}, username={self.username})"
