from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from schemas import (
    ListPublicTripsResponse,
    PublicTripDetail,
    TripRead,
    VisibilityUpdate,
    LikeToggleResponse,
)
from services import public_trip_service, visibility_service, like_service, trip_service
from services.identity_service import Identity, get_identity, require_owner, require_user
from services.public_trip_service import PublicTripFilters, parse_duration_range
from utils.ownership import Owner

router = APIRouter(prefix="/public-trips", tags=["Public Trips"])


@router.get("/", response_model=ListPublicTripsResponse)
def list_public_trips(
    query: Optional[str] = None,
    cities: List[str] = Query([]),
    durations: List[str] = Query([], description="Day ranges such as 1-3, 10- or -5"),
    months: List[int] = Query([]),
    traveler_types: List[str] = Query([]),
    seasons: List[str] = Query([]),
    budget_levels: List[str] = Query([]),
    paces: List[str] = Query([]),
    tags: List[str] = Query([]),
    sort: Optional[str] = None,
    page: int = 1,
    page_size: Optional[int] = None,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """
    Browse public trips.
    Filters of different kinds are combined with AND, values of one kind with OR.
    """
    filters = PublicTripFilters(
        query=query,
        cities=cities,
        durations=[parse_duration_range(d) for d in durations],
        months=months,
        traveler_types=traveler_types,
        seasons=seasons,
        budget_levels=budget_levels,
        paces=paces,
        tags=tags,
    )
    page, page_size = public_trip_service.normalize_paging(page, page_size)
    trips, total = public_trip_service.find_public(
        db, filters, sort=sort, page=page, page_size=page_size, viewer_id=identity.user_id
    )
    return ListPublicTripsResponse(
        trips=trips,
        total=total,
        page=page,
        page_size=page_size,
        has_more_pages=page * page_size < total,
    )


@router.get("/slug/{slug}", response_model=PublicTripDetail)
def get_public_trip_by_slug(slug: str, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return public_trip_service.get_public_by_slug(db, slug, viewer_id=identity.user_id)


@router.get("/{trip_id}", response_model=PublicTripDetail)
def get_public_trip(trip_id: str, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return public_trip_service.get_public(db, trip_id, viewer_id=identity.user_id)


@router.post("/{trip_id}/visibility", response_model=TripRead)
def set_trip_visibility(
    trip_id: str,
    payload: VisibilityUpdate,
    owner: Owner = Depends(require_owner),
    db: Session = Depends(get_db),
):
    """
    Switch a trip between private, unlisted and public.
    The first switch to public records published_at and the slug; later switches keep them.
    """
    visibility_service.set_visibility(db, trip_id, owner, payload.visibility)
    return trip_service.get_owned(db, trip_id, owner)


@router.post("/{trip_id}/like", response_model=LikeToggleResponse)
def toggle_trip_like(trip_id: str, user_id: str = Depends(require_user), db: Session = Depends(get_db)):
    liked, likes = like_service.toggle_like(db, user_id, trip_id)
    return LikeToggleResponse(liked=liked, likes=likes)
