"""Shared response envelope and base model.

Every endpoint answers ``{"success": true, "data": ...}`` with camelCase keys,
matching the web client's expectations.
"""

from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases, populated by field name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(CamelModel):
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> Pagination:
        return cls(
            total_items=total,
            total_pages=math.ceil(total / limit) if limit else 0,
            current_page=page,
            items_per_page=limit,
        )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T | None = None
    message: str | None = None


class PaginatedResponse(ApiResponse[T], Generic[T]):
    pagination: Pagination
