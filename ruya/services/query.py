"""
Query service: turns an admin list request into a store query and the
paginated response envelope.

Public API
----------
list_dreams(db, query)               -> DreamPage
list_public_dreams(db, page, limit)  -> DreamPage
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from ruya.core.errors import DreamValidationError
from ruya.models.dream import Dream, DreamStatus
from ruya.services.store import (
    DreamFilter,
    DreamSort,
    StatusCounts,
    count_by_status,
    query_dreams,
)

MAX_LIMIT = 100
DEFAULT_LIMIT = 10
# Keeps OFFSET + LIMIT inside a signed 64-bit database integer.
MAX_OFFSET = 2 ** 62

# API sort keys -> Dream attributes. "date" is the legacy alias used by the
# admin dashboard.
SORT_FIELDS = {
    "submittedAt": "submitted_at",
    "date": "submitted_at",
    "interpretedAt": "interpreted_at",
    "updatedAt": "updated_at",
    "name": "name",
    "status": "status",
    "gender": "gender",
    "maritalStatus": "marital_status",
}


@dataclass
class DreamQuery:
    page: int = 1
    limit: int = DEFAULT_LIMIT
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = "submittedAt"
    sort_order: str = "desc"
    include_stats: bool = False


@dataclass
class Pagination:
    current: int
    total: int
    count: int
    per_page: int


@dataclass
class DreamPage:
    records: list[Dream]
    pagination: Pagination
    stats: Optional[StatusCounts] = field(default=None)


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_LIMIT))


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> DreamSort:
    key = sort_by or "submittedAt"
    if key not in SORT_FIELDS:
        raise DreamValidationError([
            f"sortBy must be one of: {', '.join(sorted(SORT_FIELDS))}"
        ])
    order = (sort_order or "desc").lower()
    if order not in ("asc", "desc"):
        raise DreamValidationError(["sortOrder must be either asc or desc"])
    return DreamSort(field=SORT_FIELDS[key], descending=order == "desc")


def _paginate(
    db: Session,
    filters: DreamFilter,
    sort: DreamSort,
    page: int,
    limit: int,
) -> tuple[list[Dream], Pagination]:
    page = max(1, page)
    limit = clamp_limit(limit)
    skip = min((page - 1) * limit, MAX_OFFSET)
    records, total = query_dreams(db, filters=filters, sort=sort, skip=skip, limit=limit)
    return records, Pagination(
        current=page,
        total=math.ceil(total / limit),
        count=total,
        per_page=limit,
    )


def list_dreams(db: Session, query: DreamQuery) -> DreamPage:
    """
    Filter, sort and paginate the dream collection.

    Out-of-range pages and searches with no hits return an empty page, not
    an error. Stats, when requested, cover the whole collection.
    """
    sort = resolve_sort(query.sort_by, query.sort_order)
    search = query.search.strip() if query.search else None
    filters = DreamFilter(
        gender=query.gender,
        marital_status=query.marital_status,
        status=query.status,
        search=search or None,
    )
    records, pagination = _paginate(db, filters, sort, query.page, query.limit)
    stats = count_by_status(db) if query.include_stats else None
    return DreamPage(records=records, pagination=pagination, stats=stats)


def list_public_dreams(db: Session, page: int = 1, limit: int = DEFAULT_LIMIT) -> DreamPage:
    """Interpreted dreams the admin chose to publish, newest interpretation first."""
    filters = DreamFilter(status=DreamStatus.interpreted.value, is_public=True)
    sort = DreamSort(field="interpreted_at", descending=True)
    records, pagination = _paginate(db, filters, sort, page, limit)
    return DreamPage(records=records, pagination=pagination)
