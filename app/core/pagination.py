"""
Pagination utilities for reusable pagination across all services.

Provides helper functions to paginate SQLAlchemy queries and format responses.
"""

from typing import Generic, Tuple, List, Any, TypeVar
from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.selectable import Select

MAX_PAGE_SIZE = 100

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Response model for build_paginated_response()"""

    items: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool


class PageParams(BaseModel):
    """Query parameters shared by every paginated list endpoint"""

    page: int = 1
    limit: int = 10
    search: str | None = None


def page_params(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    search: str | None = Query(None, max_length=100, description="Optional search term"),
) -> PageParams:
    """FastAPI dependency building PageParams from the query string."""
    return PageParams(page=page, limit=limit, search=search.strip() if search else None)


async def paginate_query(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: int = 25,
) -> Tuple[List[Any], int]:
    """
    Apply offset-based pagination to a SQLAlchemy query.

    IMPORTANT: Query should already have its WHERE clauses and an ORDER BY
    with a unique tie-breaker, otherwise rows can shift between pages.

    Args:
        db: Async SQLAlchemy session
        query: Base query with filters and ordering already applied
        page: Page number (1-indexed, default 1)
        page_size: Items per page (default 25)

    Returns:
        Tuple of (paginated_items, total_count)
    """
    # Count total records BEFORE pagination, preserving WHERE clauses and joins
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * page_size
    result = await db.execute(query.offset(offset).limit(page_size))
    items = list(result.scalars().all())

    return items, total


def build_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    page_size: int,
) -> dict:
    """
    Build a standardized paginated response dictionary.

    Returns:
        Dict with keys: items, total, page, page_size, total_pages, has_more
    """
    total_pages = (total + page_size - 1) // page_size if total > 0 else 0
    has_more = page < total_pages

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_more": has_more,
    }
