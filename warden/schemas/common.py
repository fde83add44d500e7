"""
Common Pydantic schemas for API request/response handling.

This module provides:
- The response envelope
- Pagination and sorting query parameters
- Paginated list and delete result containers
- Shared id-path and batch-delete requests

Request models keep their fields loosely typed and optional: binding only
converts types, and the declarative ``rules`` decide what is required.
"""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, Field

from warden.core.validation import (
    Rule,
    Rules,
    each,
    min_items,
    number_range,
    one_of,
    required,
    uuid_format,
)

# Type variable for generic paginated responses
DataT = TypeVar("DataT")


class Envelope(BaseModel):
    """
    Uniform response wrapper for success and failure alike.

    Attributes:
        code: 200 on success, failure category otherwise
        msg: "success" or a human-readable error message
        data: Payload on success, null on failure
    """

    code: int = Field(description="200 on success, failure category otherwise")
    msg: str = Field(description="Human-readable outcome")
    data: Any = Field(default=None, description="Payload, null on failure")


class PaginationQuery(BaseModel):
    """
    Query parameters for paginated list endpoints.

    Attributes:
        page: Page number (1-indexed)
        page_size: Number of items per page (max 100)
        order_by: Column to sort by
        order: Sort direction ("asc" or "desc")
    """

    page: int = 1
    page_size: int = 10
    order_by: str = "created_at"
    order: str = "desc"

    rules: ClassVar[Rules] = {
        "page": Rule("Page", number_range(min=1)),
        "page_size": Rule("Page size", number_range(min=1, max=100)),
        "order": Rule("Order", one_of("asc", "desc")),
    }


class PaginationMeta(BaseModel):
    """
    Metadata for paginated responses.

    Attributes:
        total: Total number of items across all pages
        page: Current page number
        page_size: Number of items per page
        total_pages: Total number of pages
    """

    total: int = Field(description="Total number of items")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Number of items per page")
    total_pages: int = Field(description="Total number of pages")

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "PaginationMeta":
        total_pages = (total + page_size - 1) // page_size if total > 0 else 0
        return cls(total=total, page=page, page_size=page_size, total_pages=total_pages)


class PaginatedResponse(BaseModel, Generic[DataT]):
    """
    Generic paginated response wrapper.

    Type Parameters:
        DataT: Type of items in the items list
    """

    items: list[DataT]
    meta: PaginationMeta


class IdPath(BaseModel):
    """Path parameters of routes addressing a single entity by id."""

    id: str | None = None

    rules: ClassVar[Rules] = {
        "id": Rule("ID", required(), uuid_format()),
    }


class BatchDeleteRequest(BaseModel):
    """Body of batch-delete endpoints."""

    ids: list[str] | None = None

    rules: ClassVar[Rules] = {
        "ids": Rule(
            "IDs",
            required(),
            min_items(1),
            each(uuid_format()),
            message="IDs must be a non-empty list of valid UUIDs",
        ),
    }


class DeleteResult(BaseModel):
    """Number of entities removed by a delete operation."""

    deleted: int
