"""
Dreams router.

POST   /dreams                     - public submission (rate-limited)
GET    /dreams/public              - published interpretations
GET    /dreams                     - admin list (filter / search / sort / paginate)
GET    /dreams/{id}                - admin fetch
PUT    /dreams/{id}, PUT /dreams   - admin interpret
DELETE /dreams/{id}, DELETE /dreams?id=
POST   /dreams/{id}/archive
POST   /dreams/{id}/toggle-public
POST   /dreams/{id}/tags
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ruya.core.errors import DreamNotFoundError, DreamValidationError
from ruya.core.logging import get_logger
from ruya.core.security import AdminGateRoute, client_address, require_admin
from ruya.db.base import get_db
from ruya.models.dream import Dream, DreamStatus, Gender, MaritalStatus
from ruya.schemas.common import ApiResponse, PaginationMeta
from ruya.schemas.dream import (
    DreamListData,
    DreamResponse,
    DreamSubmitRequest,
    InterpretRequest,
    PublicDreamListData,
    PublicDreamResponse,
    StatsResponse,
    TagsRequest,
)
from ruya.services.interpretation import (
    add_tags,
    archive_dream,
    interpret_dream,
    toggle_public,
)
from ruya.services.moderation import ContentPolicy
from ruya.services.query import DreamQuery, Pagination, list_dreams, list_public_dreams
from ruya.services.rate_limit import FixedWindowRateLimiter
from ruya.services.store import _ev, delete_dream, get_dream, jload_tags
from ruya.services.submission import (
    Submission,
    default_policy,
    submission_limiter,
    submit_dream,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/dreams", tags=["dreams"], route_class=AdminGateRoute)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_submission_limiter() -> FixedWindowRateLimiter:
    return submission_limiter


def get_content_policy() -> ContentPolicy:
    return default_policy()


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _public_fields(d: Dream) -> dict:
    return dict(
        id=d.id,
        name=d.name,
        gender=_ev(d.gender),
        marital_status=_ev(d.marital_status),
        dream=d.dream,
        submitted_at=_iso(d.submitted_at) or "",
        interpretation=d.interpretation,
        interpreted_at=_iso(d.interpreted_at),
        interpreted_by=d.interpreted_by,
        status=_ev(d.status),
        tags=jload_tags(d.tags),
        is_public=bool(d.is_public),
    )


def dream_to_response(d: Dream) -> DreamResponse:
    return DreamResponse(**_public_fields(d), ip_address=d.ip_address)


def dream_to_public_response(d: Dream) -> PublicDreamResponse:
    return PublicDreamResponse(**_public_fields(d))


def _pagination(p: Pagination) -> PaginationMeta:
    return PaginationMeta(current=p.current, total=p.total, count=p.count, per_page=p.per_page)


def _one(d: Dream) -> ApiResponse[DreamResponse]:
    return ApiResponse[DreamResponse](data=dream_to_response(d))


# ---------------------------------------------------------------------------
# POST /dreams - public
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ApiResponse[DreamResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a dream for interpretation",
    responses={
        400: {"description": "One or more fields are invalid (all violations listed)."},
        429: {"description": "Too many submissions from this address."},
    },
)
def submit(
    payload: DreamSubmitRequest,
    request: Request,
    db: Session = Depends(get_db),
    limiter: FixedWindowRateLimiter = Depends(get_submission_limiter),
    policy: ContentPolicy = Depends(get_content_policy),
):
    """
    Store a new dream with status `pending`. Name and dream text are trimmed.
    Each client address may have 10 submissions accepted per minute.
    """
    dream = submit_dream(
        db,
        Submission(
            name=payload.name,
            gender=payload.gender,
            marital_status=payload.marital_status,
            dream=payload.dream,
        ),
        client_address=client_address(request),
        limiter=limiter,
        policy=policy,
    )
    return _one(dream)


# ---------------------------------------------------------------------------
# GET /dreams/public - public
# ---------------------------------------------------------------------------

@router.get(
    "/public",
    response_model=ApiResponse[PublicDreamListData],
    response_model_exclude_none=True,
    summary="List published interpretations (newest first)",
)
def public_dreams(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, description="Page size, capped at 100."),
    db: Session = Depends(get_db),
):
    result = list_public_dreams(db, page=page, limit=limit)
    return ApiResponse[PublicDreamListData](
        data=PublicDreamListData(
            records=[dream_to_public_response(d) for d in result.records],
        ),
        pagination=_pagination(result.pagination),
    )


# ---------------------------------------------------------------------------
# GET /dreams - admin
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=ApiResponse[DreamListData],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="List dreams with filters, search, sorting and pagination",
    responses={401: {"description": "Missing or wrong admin token."}},
)
def list_all(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, description="Page size, capped at 100."),
    gender: Optional[Gender] = Query(default=None),
    marital_status: Optional[MaritalStatus] = Query(default=None, alias="maritalStatus"),
    dream_status: Optional[DreamStatus] = Query(default=None, alias="status"),
    search: Optional[str] = Query(
        default=None,
        description="Case-insensitive match on name, dream text or interpretation.",
    ),
    sort_by: str = Query(
        default="submittedAt",
        alias="sortBy",
        description='Field to sort by; "date" is accepted for submittedAt.',
    ),
    sort_order: str = Query(default="desc", alias="sortOrder", pattern="^(asc|desc)$"),
    include_stats: bool = Query(default=False, alias="includeStats"),
    db: Session = Depends(get_db),
):
    """
    Filters combine with AND; `search` matches any of the three text fields.
    Pages past the end are empty, not errors. `includeStats=true` adds status
    counts over the whole collection.
    """
    result = list_dreams(db, DreamQuery(
        page=page,
        limit=limit,
        gender=_ev(gender) if gender else None,
        marital_status=_ev(marital_status) if marital_status else None,
        status=_ev(dream_status) if dream_status else None,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        include_stats=include_stats,
    ))
    stats = None
    if result.stats is not None:
        stats = StatsResponse(**vars(result.stats))
    return ApiResponse[DreamListData](
        data=DreamListData(
            records=[dream_to_response(d) for d in result.records],
            stats=stats,
        ),
        pagination=_pagination(result.pagination),
    )


# ---------------------------------------------------------------------------
# PUT /dreams - admin, id in body
# ---------------------------------------------------------------------------

@router.put(
    "",
    response_model=ApiResponse[DreamResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Interpret a dream (id in body)",
)
def interpret_by_body(payload: InterpretRequest, db: Session = Depends(get_db)):
    if not payload.id:
        raise DreamValidationError(["Dream ID and interpretation are required"])
    return _interpret(payload.id, payload, db)


# ---------------------------------------------------------------------------
# DELETE /dreams?id= - admin
# ---------------------------------------------------------------------------

@router.delete(
    "",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Delete a dream (id as query parameter)",
)
def delete_by_query(
    dream_id: Optional[str] = Query(default=None, alias="id"),
    db: Session = Depends(get_db),
):
    if not dream_id:
        raise DreamValidationError(["Dream ID is required"])
    return _delete(dream_id, db)


# ---------------------------------------------------------------------------
# /dreams/{dream_id} - admin
# ---------------------------------------------------------------------------

@router.get(
    "/{dream_id}",
    response_model=ApiResponse[DreamResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Retrieve a single dream",
    responses={404: {"description": "No dream with this id (or the id is malformed)."}},
)
def get_one(dream_id: str, db: Session = Depends(get_db)):
    return _one(get_dream(db, dream_id))


@router.put(
    "/{dream_id}",
    response_model=ApiResponse[DreamResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Interpret a dream",
    responses={
        400: {"description": "Interpretation missing or shorter than 10 characters."},
        404: {"description": "Dream not found."},
    },
)
def interpret_by_path(dream_id: str, payload: InterpretRequest, db: Session = Depends(get_db)):
    """
    Set interpretation, interpreter, tags and visibility; status becomes
    `interpreted`. Calling again overwrites the previous interpretation.
    """
    return _interpret(dream_id, payload, db)


@router.delete(
    "/{dream_id}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Delete a dream",
)
def delete_by_path(dream_id: str, db: Session = Depends(get_db)):
    return _delete(dream_id, db)


@router.post(
    "/{dream_id}/archive",
    response_model=ApiResponse[DreamResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Archive a dream",
)
def archive(dream_id: str, db: Session = Depends(get_db)):
    return _one(archive_dream(db, dream_id))


@router.post(
    "/{dream_id}/toggle-public",
    response_model=ApiResponse[DreamResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Flip public visibility",
)
def flip_public(dream_id: str, db: Session = Depends(get_db)):
    return _one(toggle_public(db, dream_id))


@router.post(
    "/{dream_id}/tags",
    response_model=ApiResponse[DreamResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Add tags (union with existing tags)",
)
def tag(dream_id: str, payload: TagsRequest, db: Session = Depends(get_db)):
    return _one(add_tags(db, dream_id, payload.tags))


# ---------------------------------------------------------------------------
# Shared handlers
# ---------------------------------------------------------------------------

def _interpret(dream_id: str, payload: InterpretRequest, db: Session) -> ApiResponse[DreamResponse]:
    dream = interpret_dream(
        db,
        dream_id,
        interpretation=payload.interpretation,
        interpreted_by=payload.interpreted_by,
        tags=payload.tags,
        is_public=payload.is_public,
    )
    return _one(dream)


def _delete(dream_id: str, db: Session) -> ApiResponse[None]:
    if not delete_dream(db, dream_id):
        raise DreamNotFoundError(dream_id=dream_id)
    logger.info("dream_deleted", dream_id=dream_id)
    return ApiResponse[None]()
