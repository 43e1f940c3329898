"""
Stats router.

GET /stats - dream counts per status across the whole collection
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ruya.core.security import AdminGateRoute, require_admin
from ruya.db.base import get_db
from ruya.schemas.common import ApiResponse
from ruya.schemas.dream import StatsResponse
from ruya.services.store import count_by_status

router = APIRouter(tags=["stats"], route_class=AdminGateRoute)


@router.get(
    "/stats",
    response_model=ApiResponse[StatsResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
    summary="Dream counts by status",
    responses={401: {"description": "Missing or wrong admin token."}},
)
def stats(db: Session = Depends(get_db)):
    counts = count_by_status(db)
    return ApiResponse[StatsResponse](
        data=StatsResponse(
            pending=counts.pending,
            interpreted=counts.interpreted,
            archived=counts.archived,
            total=counts.total,
        )
    )
