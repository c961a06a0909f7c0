"""Offset/limit pagination shared by every listing endpoint."""

import math
from typing import Optional

from fastapi import Query

from pixelshelf.schemas.common import Pagination

MAX_PAGE_SIZE = 100


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def paginate(page: int, limit: int, total: int, pages: Optional[int] = None) -> Pagination:
    return Pagination(
        page=page,
        limit=limit,
        total_count=total,
        total_pages=total_pages(total, limit) if pages is None else pages,
    )


class PageParams:
    """Query dependency for ``page``/``limit`` with a per-endpoint default limit."""

    def __init__(self, default_limit: int = 10):
        self.default_limit = default_limit

    def __call__(
        self,
        page: int = Query(1, ge=1),
        limit: Optional[int] = Query(None, ge=1, le=MAX_PAGE_SIZE),
    ) -> "Page":
        return Page(page=page, limit=limit or self.default_limit)


class Page:
    __slots__ = ("page", "limit")

    def __init__(self, page: int, limit: int):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return page_offset(self.page, self.limit)

    def pagination(self, total: int) -> Pagination:
        return paginate(self.page, self.limit, total)
