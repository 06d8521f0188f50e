"""Offset pagination for SQLAlchemy list queries."""

from typing import Optional

from sqlalchemy.sql import Select

from crm_api.config import settings


def is_paginated(page: Optional[int], per_page: Optional[int]) -> bool:
    """Lists are only paginated when the client asks for a page or a page size."""
    return page is not None or per_page is not None


def apply_offset_pagination(
    query: Select,
    page: Optional[int],
    per_page: Optional[int],
) -> Select:
    """Apply page/perPage to a query.

    Args:
        query: The SQLAlchemy Select query
        page: 1-based page number (defaults to 1)
        per_page: Page size (defaults to DEFAULT_PER_PAGE, capped at MAX_PER_PAGE)

    Returns:
        The query unchanged when neither argument is given, otherwise
        limited to the requested page.
    """
    if not is_paginated(page, per_page):
        return query

    page = page or 1
    limit = min(per_page or settings.DEFAULT_PER_PAGE, settings.MAX_PER_PAGE)
    offset = (page - 1) * limit
    return query.offset(offset).limit(limit)
