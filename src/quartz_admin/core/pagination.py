"""In-memory pagination of already-filtered result sets."""

from __future__ import annotations

import math
from typing import Any


def total_pages(total_items: int, size: int) -> int:
    return math.ceil(total_items / size) if size > 0 else 0


def paginate(items: list[Any], page: int, size: int) -> dict[str, Any]:
    """Slice ``items`` into one page; out-of-range pages are clamped.

    Pages are 0-based. The full result set has already been fetched, so this
    only decides which slice to return.
    """
    if size < 1:
        raise ValueError("Page size must be at least 1")

    total = len(items)
    pages = total_pages(total, size)
    page = max(0, min(page, pages - 1 if pages > 0 else 0))
    start = page * size

    return {
        "content": items[start : start + size],
        "totalItems": total,
        "totalPages": pages,
        "currentPage": page,
        "pageSize": size,
    }
