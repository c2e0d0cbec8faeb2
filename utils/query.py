"""Shared SQL query builder utilities for the bucket-item list endpoints.

Provides WHERE clause and LIMIT/OFFSET construction used by the SQLite
bucket-item repository (``GET /bucketItems`` and ``GET /bucketItems/search``).
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any


@dataclass(frozen=True)
class BucketItemFilter:
    """Filter parameters accepted by the bucket-item list endpoints.

    ``page_offset`` is a zero-based page index and only applies together
    with ``page_size``.
    """

    bucket_id: int | None = None
    date_start: date | None = None
    date_end: date | None = None
    name_part: str | None = None
    page_size: int | None = None
    page_offset: int = 0


def date_bounds(date_start: date | None, date_end: date | None) -> tuple[str | None, str | None]:
    """Return ISO string bounds ``[start, end)`` covering whole days.

    The end bound is the day after ``date_end`` so items stamped any time on
    ``date_end`` are included.  A ``date_end`` of ``date.max`` has no upper bound.
    """
    lower = date_start.isoformat() if date_start else None
    upper = (date_end + timedelta(days=1)).isoformat() if date_end and date_end < date.max else None
    return lower, upper


def build_where_clause(filters: BucketItemFilter) -> tuple[str, list[Any]]:
    """Build a SQL WHERE clause from bucket-item filter parameters.

    Args:
        filters: The parsed query-string filters.

    Returns:
        Tuple of (where_clause_string, params_list). The where_clause_string
        starts with "WHERE " if any conditions exist, or is "" if none.
    """
    conditions: list[str] = []
    params: list[Any] = []

    if filters.bucket_id is not None:
        conditions.append("bucketID = ?")
        params.append(filters.bucket_id)

    lower, upper = date_bounds(filters.date_start, filters.date_end)
    if lower is not None:
        conditions.append('"transaction" >= ?')
        params.append(lower)
    if upper is not None:
        conditions.append('"transaction" < ?')
        params.append(upper)

    if filters.name_part:
        conditions.append("instr(lower(name), ?) > 0")
        params.append(filters.name_part.lower())

    where = "WHERE " + " AND ".join(conditions) if conditions else ""
    return where, params


def build_page_clause(page_size: int | None, page_offset: int = 0) -> tuple[str, list[Any]]:
    """Build a LIMIT/OFFSET clause for a zero-based page index.

    Returns:
        ("", []) when no page size is given, otherwise
        ("LIMIT ? OFFSET ?", [page_size, page_offset * page_size]).
    """
    if page_size is None:
        return "", []
    return "LIMIT ? OFFSET ?", [page_size, max(page_offset, 0) * page_size]
