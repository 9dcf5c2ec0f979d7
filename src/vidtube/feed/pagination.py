"""Offset pagination for feed queries.

Page numbers are 1-based. Both `page` and `page_size` are clamped to at least
1 and `page_size` is capped at the configured maximum, so a caller can never
ask for an unbounded page.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import Row, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.config import get_settings
from vidtube.responses import CamelModel

ItemT = TypeVar("ItemT")


@dataclass(frozen=True)
class PageRequest:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def page_request(page: int | None, page_size: int | None, *, max_page_size: int | None = None) -> PageRequest:
    """Normalize raw query values into a bounded PageRequest."""
    settings = get_settings()
    ceiling = max_page_size if max_page_size is not None else settings.max_page_size
    page = max(1, 1 if page is None else page)
    page_size = max(1, settings.default_page_size if page_size is None else page_size)
    return PageRequest(page=page, page_size=min(page_size, ceiling))


class Page(CamelModel, Generic[ItemT]):
    """One page of results plus navigation metadata."""

    items: list[ItemT]
    total_items: int
    total_pages: int
    page: int
    page_size: int
    has_next_page: bool
    has_previous_page: bool
    next_page: int | None = None
    previous_page: int | None = None

    @classmethod
    def build(cls, items: list[Any], total_items: int, request: PageRequest) -> Page[Any]:
        total_pages = max(1, math.ceil(total_items / request.page_size))
        has_next = request.page < total_pages
        has_previous = request.page > 1
        return cls(
            items=items,
            total_items=total_items,
            total_pages=total_pages,
            page=request.page,
            page_size=request.page_size,
            has_next_page=has_next,
            has_previous_page=has_previous,
            next_page=request.page + 1 if has_next else None,
            previous_page=request.page - 1 if has_previous else None,
        )


async def fetch_page(
    db: AsyncSession,
    stmt: Select[Any],
    request: PageRequest,
) -> tuple[list[Row[Any]], int]:
    """Run the count and the windowed query for an ordered statement."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()
    if total == 0 or request.offset >= total:
        return [], total
    result = await db.execute(stmt.offset(request.offset).limit(request.page_size))
    return list(result.all()), total
