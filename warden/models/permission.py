"""
Permission model.

A permission is a named capability. Permissions of type ``api`` carry the
route they unlock in their metadata as ``{"method": ..., "path": ...}``;
permissions of type ``action`` carry an opaque ``{"code": ...}``.
"""

from typing import Any

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from warden.models.base import Base
from warden.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin

PERMISSION_TYPE_API = "api"
PERMISSION_TYPE_ACTION = "action"


class Permission(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Permission model.

    Attributes:
        id: UUID primary key
        name: Unique permission key (e.g., "user:create")
        type: Permission kind ("api", "action", ...)
        meta: Kind-specific metadata, stored in the ``metadata`` column
    """

    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        index=True,
    )

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PERMISSION_TYPE_API,
        index=True,
    )

    # "metadata" is reserved on declarative classes, hence the attribute name
    meta: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        nullable=False,
        default=dict,
    )

    @property
    def route(self) -> tuple[str, str] | None:
        """(method, path) for api permissions with complete metadata, else None."""
        if self.type != PERMISSION_TYPE_API:
            return None
        method = (self.meta or {}).get("method")
        path = (self.meta or {}).get("path")
        if not method or not path:
            return None
        return method, path

    def __repr__(self) -> str:
        """String representation of Permission."""
        return f"Permission(id={self.id}, name={self.name}, type={self.type})"
