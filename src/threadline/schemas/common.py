"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from threadline.core.errors import ValidationError
from threadline.core.settings import settings

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for response models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Page(ApiModel, Generic[T]):
    """One page of results plus the navigation metadata clients need."""

    data: list[T]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class MessageResponse(ApiModel):
    message: str


def normalize_pagination(page: int, limit: int) -> tuple[int, int, int]:
    """Validate pagination input and return ``(page, limit, skip)``.

    Raises:
        ValidationError: If ``page`` is below 1 or ``limit`` is outside
            ``1..MAX_PAGE_SIZE``.
    """
    if page < 1:
        raise ValidationError("Page must be greater than or equal to 1")
    if limit < 1 or limit > settings.max_page_size:
        raise ValidationError(f"Limit must be between 1 and {settings.max_page_size}")
    return page, limit, (page - 1) * limit


def build_page(items: Sequence[T], total: int, page: int, limit: int) -> Page[T]:
    """Wrap ``items`` with totals computed from ``total`` and ``limit``."""
    total_pages = math.ceil(total / limit) if limit else 0
    return Page[T](
        data=list(items),
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )
