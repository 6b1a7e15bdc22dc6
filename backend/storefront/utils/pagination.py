"""
Pagination Utility Module

Provides standardized pagination helpers for list endpoints backed by
Mongo collections.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection

from storefront.core.database import NO_ID

MAX_PAGE_SIZE = 100


def clamp_page(page: int, page_size: int) -> Tuple[int, int]:
    """Ensure valid page and page_size"""
    page = max(1, page)
    page_size = max(1, min(MAX_PAGE_SIZE, page_size))
    return page, page_size


async def paginate(
    collection: AsyncIOMotorCollection,
    query: Dict[str, Any],
    page: int = 1,
    page_size: int = 10,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
    projection: Optional[Dict[str, int]] = None,
) -> dict:
    """
    Apply pagination to a collection query.

    Args:
        collection: Collection to read from
        query: Mongo filter document
        page: Page number (1-indexed)
        page_size: Items per page (capped at 100)
        sort: Sort specification, list of (field, direction)
        projection: Fields to return, defaults to everything but _id

    Returns:
        Dictionary with items, total, page, pageSize, totalPages, hasNext, hasPrevious
    """
    page, page_size = clamp_page(page, page_size)
    offset = (page - 1) * page_size

    total = await collection.count_documents(query)

    items = await collection.find(
        query,
        projection or NO_ID,
        sort=list(sort) if sort else None,
        skip=offset,
        limit=page_size,
    ).to_list(None)

    return create_paginated_response(items, total, page, page_size)


def create_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    page_size: int
) -> dict:
    """Create a paginated response dictionary."""
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    return {
        "items": items,
        "total": total,
        "page": page,
        "pageSize": page_size,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrevious": page > 1
    }
