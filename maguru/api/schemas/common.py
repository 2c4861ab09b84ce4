from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from maguru.domain.pagination import Pagination

T = TypeVar("T")


class APIModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ErrorDetail(APIModel):
    field: str
    message: str


class Envelope(APIModel, Generic[T]):
    """Standard response wrapper shared by every endpoint."""

    success: bool = True
    data: T | None = None
    error: str | None = None
    details: list[ErrorDetail] | None = None


class PaginationOut(APIModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_domain(cls, pagination: Pagination) -> PaginationOut:
        return cls(
            page=pagination.page,
            limit=pagination.limit,
            total=pagination.total,
            total_pages=pagination.total_pages,
        )
