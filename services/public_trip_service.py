"""
Public trip feed: filtered, sorted and paginated read views over published trips.

Every filter field maps to one predicate builder. Predicates of different
fields are ANDed; the values of a multi-valued field are ORed.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy import and_, exists, func, or_
from sqlalchemy.orm import Session, selectinload

import config
from models.Trip import Trip, VISIBILITY_PUBLIC
from models.Destination import Destination
from models.DayPlan import DayPlan
from models.TripLike import TripLike
from models.TripTag import TripTag
from schemas import (
    AuthorRead,
    DayPlanRead,
    DestinationRead,
    PublicTripDetail,
    PublicTripSummary,
)
from utils.errors import NotFoundError, ValidationError
from utils.logger import get_logger

logger = get_logger("public_trips")

SORT_FEATURED = "featured"
SORT_MOST_RECENT = "mostRecent"
SORT_SHORTEST = "shortest"
SORT_LONGEST = "longest"


@dataclass(frozen=True)
class DurationRange:
    min_days: Optional[int] = None
    max_days: Optional[int] = None


@dataclass
class PublicTripFilters:
    query: Optional[str] = None
    cities: List[str] = field(default_factory=list)
    durations: List[DurationRange] = field(default_factory=list)
    months: List[int] = field(default_factory=list)
    traveler_types: List[str] = field(default_factory=list)
    seasons: List[str] = field(default_factory=list)
    budget_levels: List[str] = field(default_factory=list)
    paces: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


def parse_duration_range(raw: str) -> DurationRange:
    """Parse `min-max` with either side optional: `1-3`, `10-`, `-5`, or a single `7`."""
    text = (raw or "").strip()
    try:
        if "-" not in text:
            days = int(text)
            result = DurationRange(days, days)
        else:
            low, high = text.split("-", 1)
            result = DurationRange(
                int(low) if low.strip() else None,
                int(high) if high.strip() else None,
            )
    except ValueError:
        raise ValidationError(f"Invalid duration range: {raw!r}")

    if result.min_days is None and result.max_days is None:
        raise ValidationError(f"Invalid duration range: {raw!r}")
    if result.min_days is not None and result.max_days is not None and result.min_days > result.max_days:
        raise ValidationError(f"Duration range {raw!r} has min above max")
    return result


# ---------- Predicate builders ----------

def _query_predicate(text: str):
    needle = text.strip()
    return or_(
        Trip.name.icontains(needle, autoescape=True),
        Trip.summary.icontains(needle, autoescape=True),
        Trip.description.icontains(needle, autoescape=True),
    )


def _cities_predicate(cities: List[str]):
    wanted = [c.strip().lower() for c in cities]
    return exists().where(and_(
        Destination.trip_id == Trip.id,
        func.lower(Destination.city).in_(wanted),
    ))


def _durations_predicate(ranges: List[DurationRange]):
    clauses = []
    for r in ranges:
        bounds = []
        if r.min_days is not None:
            bounds.append(Trip.duration_days >= r.min_days)
        if r.max_days is not None:
            bounds.append(Trip.duration_days <= r.max_days)
        clauses.append(and_(*bounds))
    return or_(*clauses)


def _months_predicate(months: List[int]):
    for m in months:
        if not 1 <= m <= 12:
            raise ValidationError(f"Invalid month: {m}")
    # dates are stored as YYYY-MM-DD
    wanted = [f"{m:02d}" for m in months]
    return or_(
        func.substr(Trip.start_date, 6, 2).in_(wanted),
        exists().where(and_(
            DayPlan.trip_id == Trip.id,
            func.substr(DayPlan.date, 6, 2).in_(wanted),
        )),
    )


def _tags_predicate(tags: List[str]):
    return exists().where(and_(
        TripTag.trip_id == Trip.id,
        TripTag.tag.in_([t.strip() for t in tags]),
    ))


def build_predicates(filters: PublicTripFilters) -> list:
    predicates = [Trip.visibility == VISIBILITY_PUBLIC]
    if filters.query and filters.query.strip():
        predicates.append(_query_predicate(filters.query))
    if filters.cities:
        predicates.append(_cities_predicate(filters.cities))
    if filters.durations:
        predicates.append(_durations_predicate(filters.durations))
    if filters.months:
        predicates.append(_months_predicate(filters.months))
    if filters.traveler_types:
        predicates.append(Trip.traveler_type.in_(filters.traveler_types))
    if filters.seasons:
        predicates.append(Trip.season.in_(filters.seasons))
    if filters.budget_levels:
        predicates.append(Trip.budget_level.in_(filters.budget_levels))
    if filters.paces:
        predicates.append(Trip.pace.in_(filters.paces))
    if filters.tags:
        predicates.append(_tags_predicate(filters.tags))
    return predicates


def _ordering(sort: Optional[str]) -> list:
    if sort == SORT_MOST_RECENT:
        keys = [Trip.updated_at.desc()]
    elif sort == SORT_SHORTEST:
        keys = [Trip.duration_days.asc(), Trip.updated_at.desc()]
    elif sort == SORT_LONGEST:
        keys = [Trip.duration_days.desc(), Trip.updated_at.desc()]
    else:
        keys = [Trip.likes.desc(), Trip.updated_at.desc()]
    # stable pages
    return keys + [Trip.id.asc()]


def normalize_paging(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    page = page if page and page > 0 else 1
    if not page_size or page_size < 1:
        page_size = config.DEFAULT_PAGE_SIZE
    return page, min(page_size, config.MAX_PAGE_SIZE)


# ---------- Projections ----------

def liked_trip_ids(db: Session, viewer_id: str, trip_ids: List[str]) -> Set[str]:
    """Which of `trip_ids` the viewer has liked, in a single query."""
    if not trip_ids:
        return set()
    rows = (
        db.query(TripLike.trip_id)
        .filter(TripLike.user_id == viewer_id, TripLike.trip_id.in_(trip_ids))
        .all()
    )
    return {row.trip_id for row in rows}


def _summary_fields(trip: Trip, has_liked: Optional[bool]) -> Dict:
    return {
        "id": trip.id,
        "slug": trip.slug,
        "name": trip.name,
        "summary": trip.summary,
        "cover_image": trip.cover_image,
        "start_date": trip.start_date,
        "end_date": trip.end_date,
        "duration_days": trip.duration_days,
        "traveler_type": trip.traveler_type,
        "season": trip.season,
        "budget_level": trip.budget_level,
        "pace": trip.pace,
        "tags": trip.tags,
        "cities": [d.city for d in trip.destinations],
        "likes": trip.likes,
        "clone_count": trip.clone_count,
        "has_liked": has_liked,
        "published_at": trip.published_at,
        "updated_at": trip.updated_at,
    }


def _author(trip: Trip) -> Optional[AuthorRead]:
    if not trip.owner:
        return None
    return AuthorRead(
        id=trip.owner.id,
        name=trip.owner.public_name,
        profile_image_url=trip.owner.profile_image_url or None,
    )


def _to_detail(trip: Trip, has_liked: Optional[bool]) -> PublicTripDetail:
    fields = _summary_fields(trip, has_liked)
    fields.update({
        "description": trip.description,
        "traveler_count": trip.traveler_count,
        "timezone": trip.timezone,
        "hero_image": trip.hero_image,
        "author": _author(trip),
        "destinations": [DestinationRead.model_validate(d) for d in trip.destinations],
        "day_plans": [DayPlanRead.model_validate(dp) for dp in trip.day_plans],
    })
    return PublicTripDetail(**fields)


# ---------- Operations ----------

def find_public(
    db: Session,
    filters: PublicTripFilters,
    sort: Optional[str] = None,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    viewer_id: Optional[str] = None,
) -> Tuple[List[PublicTripSummary], int]:
    """Return one page of public trip summaries and the filtered total."""
    page, page_size = normalize_paging(page, page_size)
    predicates = build_predicates(filters)

    total = db.query(func.count(Trip.id)).filter(*predicates).scalar() or 0

    trips = (
        db.query(Trip)
        .options(selectinload(Trip.destinations), selectinload(Trip.tag_rows))
        .filter(*predicates)
        .order_by(*_ordering(sort))
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    liked = liked_trip_ids(db, viewer_id, [t.id for t in trips]) if viewer_id else set()
    summaries = [
        PublicTripSummary(**_summary_fields(t, (t.id in liked) if viewer_id else None))
        for t in trips
    ]
    logger.debug("Public feed page=%s size=%s sort=%s total=%s", page, page_size, sort, total)
    return summaries, total


def _hydrated_public(db: Session):
    return (
        db.query(Trip)
        .options(
            selectinload(Trip.destinations),
            selectinload(Trip.tag_rows),
            selectinload(Trip.day_plans).selectinload(DayPlan.destinations),
            selectinload(Trip.day_plans).selectinload(DayPlan.activities),
        )
        .filter(Trip.visibility == VISIBILITY_PUBLIC)
    )


def _detail_for_viewer(db: Session, trip: Trip, viewer_id: Optional[str]) -> PublicTripDetail:
    has_liked = None
    if viewer_id:
        has_liked = trip.id in liked_trip_ids(db, viewer_id, [trip.id])
    return _to_detail(trip, has_liked)


def get_public(db: Session, trip_id: str, viewer_id: Optional[str] = None) -> PublicTripDetail:
    trip = _hydrated_public(db).filter(Trip.id == trip_id).first()
    if not trip:
        raise NotFoundError("Trip")
    return _detail_for_viewer(db, trip, viewer_id)


def get_public_by_slug(db: Session, slug: str, viewer_id: Optional[str] = None) -> PublicTripDetail:
    trip = _hydrated_public(db).filter(Trip.slug == slug).first()
    if not trip:
        raise NotFoundError("Trip")
    return _detail_for_viewer(db, trip, viewer_id)
