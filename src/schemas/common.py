"""
Pagination schemas shared by the list endpoints.

Routes take ``PaginationParams`` as query parameters, services return a
``SearchResult`` (one page plus the total), and routes answer with a
``PaginatedResponse``.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


@dataclass
class SearchResult(Generic[DataT]):
    """One page of ORM objects and the number of rows matching the filters."""

    items: list[DataT]
    total: int


class PaginationParams(BaseModel):
    """1-indexed page number and page size (at most 100)."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        """
        SQL OFFSET for this page.

        Example:
            >>> PaginationParams(page=3, page_size=20).offset
            40
        """
        return (self.page - 1) * self.page_size


class PaginationMeta(BaseModel):
    total: int = Field(description="Items matching the filters")
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, total: int, pagination: PaginationParams) -> "PaginationMeta":
        """Metadata for ``pagination`` given ``total`` matching items (0 pages when empty)."""
        return cls(
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=-(-total // pagination.page_size),
        )


class PaginatedResponse(BaseModel, Generic[DataT]):
    """List response body: ``{"data": [...], "meta": {...}}``."""

    data: list[DataT]
    meta: PaginationMeta
