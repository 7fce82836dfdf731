"""
Fixed-size pagination over an ordered event collection.

paginate() is pure; Pager keeps the current page index and size for one view
and never modifies the collection it pages over.
"""
from __future__ import annotations

import math
from typing import Sequence

from .const import DEFAULT_PAGE_SIZE, PAGE_SIZES
from .models import Page


def paginate(items: Sequence, page_index: int, page_size: int) -> Page:
    """Return the 1-based page_index of items; out-of-range pages are empty."""
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    total_pages = math.ceil(len(items) / page_size)
    start = (page_index - 1) * page_size
    page_items = list(items[start:start + page_size]) if page_index >= 1 else []
    return Page(
        items=page_items,
        page_index=page_index,
        page_size=page_size,
        total_pages=total_pages,
    )


class Pager:
    """Navigation state over a collection; next/prev clamp instead of raising."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size not in PAGE_SIZES:
            raise ValueError(f"Unsupported page size {page_size}, expected one of {PAGE_SIZES}")
        self._items: Sequence = ()
        self.page_index = 1
        self.page_size = page_size

    @property
    def total_pages(self) -> int:
        return math.ceil(len(self._items) / self.page_size)

    @property
    def page(self) -> Page:
        return paginate(self._items, self.page_index, self.page_size)

    def set_items(self, items: Sequence) -> None:
        """Swap in a freshly loaded collection, keeping the page if it still exists."""
        self._items = items
        self.page_index = max(1, min(self.page_index, self.total_pages))

    def next_page(self) -> int:
        if self.page_index < self.total_pages:
            self.page_index += 1
        return self.page_index

    def prev_page(self) -> int:
        if self.page_index > 1:
            self.page_index -= 1
        return self.page_index

    def set_page_size(self, page_size: int) -> None:
        """Change the page size and go back to the first page."""
        if page_size not in PAGE_SIZES:
            raise ValueError(f"Unsupported page size {page_size}, expected one of {PAGE_SIZES}")
        self.page_size = page_size
        self.page_index = 1
