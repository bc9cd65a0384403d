"""
Pagination

paginate() does not clamp the page number. Asking for a page past the end
gives an empty page; keeping the page in range is the caller's job, and
callers go back to page 1 whenever the query or the page size changes.
"""

import math
from typing import Sequence, TypeVar

from perdcomp.models.order import Page


T = TypeVar("T")

PAGE_SIZE_OPTIONS = (10, 20, 30, 50, 100)


def total_pages(length: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return math.ceil(length / page_size)


def paginate(items: Sequence[T], page: int, page_size: int) -> Page:
    """Slice one 1-based page out of a sequence."""
    pages = total_pages(len(items), page_size)
    start = max(0, (page - 1) * page_size)
    end = max(0, page * page_size)
    return Page(
        items=list(items[start:end]),
        total_pages=pages,
        page=page,
        page_size=page_size,
    )


def clamp_page(page: int, pages: int) -> int:
    """Bring a page number back inside 1..pages (1 when there are no pages)."""
    return min(max(1, page), max(1, pages))
