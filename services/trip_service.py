"""
Trip repository: owner-scoped CRUD over the trip aggregate.

A trip subtree (destinations, day plans, day-plan destination links,
activities and tags) is always written wholesale. Replace deletes every
child and rebuilds it from the payload inside one transaction.
"""
from datetime import date
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from models.Trip import Trip, VISIBILITY_PRIVATE, STATUSES
from models.Destination import Destination
from models.DayPlan import DayPlan
from models.DayPlanDestination import DayPlanDestination
from models.Activity import Activity
from models.TripTag import TripTag
from schemas import TripWrite
from services import visibility_service
from utils.clock import utcnow
from utils.errors import NotFoundError, ValidationError
from utils.id_generator import generate_id
from utils.logger import get_logger
from utils.ownership import Owner

logger = get_logger("trips")


def duration_in_days(start: date, end: date) -> int:
    """Inclusive day count: a trip starting and ending the same day lasts 1 day."""
    return (end - start).days + 1


def _hydrated_query(db: Session):
    return db.query(Trip).options(
        selectinload(Trip.destinations),
        selectinload(Trip.tag_rows),
        selectinload(Trip.day_plans).selectinload(DayPlan.destinations),
        selectinload(Trip.day_plans).selectinload(DayPlan.activities),
    )


def list_owned(db: Session, owner: Owner) -> List[Trip]:
    return _hydrated_query(db).filter(Trip.owned_by(owner)).order_by(Trip.updated_at.desc(), Trip.id).all()


def _find_owned(db: Session, trip_id: str, owner: Owner) -> Optional[Trip]:
    return _hydrated_query(db).filter(Trip.owned_by(owner), Trip.id == trip_id).first()


def get_owned(db: Session, trip_id: str, owner: Owner) -> Trip:
    # a trip owned by someone else is reported exactly like a missing one
    trip = _find_owned(db, trip_id, owner)
    if not trip:
        raise NotFoundError("Trip")
    return trip


def validate_trip(payload: TripWrite):
    """Reject payloads that cannot form a consistent trip subtree."""
    if not payload.name or not payload.name.strip():
        raise ValidationError("Trip name is required")
    if payload.traveler_count < 1:
        raise ValidationError("Traveler count must be at least 1")
    if payload.start_date > payload.end_date:
        raise ValidationError("Start date must be on or before end date")
    if payload.status not in STATUSES:
        raise ValidationError(f"Invalid status: {payload.status}")
    if payload.visibility is not None and payload.visibility not in visibility_service.VISIBILITIES:
        raise ValidationError(f"Invalid visibility: {payload.visibility}")

    for dest in payload.destinations:
        if not dest.city or not dest.city.strip():
            raise ValidationError("Destination city is required")
        if dest.start_date and dest.end_date and dest.start_date > dest.end_date:
            raise ValidationError(f"Destination {dest.city} ends before it starts")

    numbers = [dp.day_number for dp in payload.day_plans]
    if any(n is not None for n in numbers):
        if any(n is None for n in numbers):
            raise ValidationError("Day numbers must be given for every day plan or for none")
        if sorted(numbers) != list(range(1, len(numbers) + 1)):
            raise ValidationError("Day numbers must run from 1 without gaps")

    known_destinations = {d.id for d in payload.destinations if d.id}
    for dp in payload.day_plans:
        for link in dp.destinations:
            if link.destination_id not in known_destinations:
                raise ValidationError(
                    f"Day plan references unknown destination {link.destination_id}"
                )


def _apply_scalars(trip: Trip, payload: TripWrite):
    trip.name = payload.name.strip()
    trip.description = payload.description
    trip.summary = payload.summary
    trip.traveler_count = payload.traveler_count
    trip.start_date = payload.start_date.isoformat()
    trip.end_date = payload.end_date.isoformat()
    trip.duration_days = duration_in_days(payload.start_date, payload.end_date)
    trip.timezone = payload.timezone
    trip.cover_image = payload.cover_image
    trip.hero_image = payload.hero_image
    trip.status = payload.status
    trip.traveler_type = payload.traveler_type or ""
    trip.season = payload.season
    trip.budget_level = payload.budget_level
    trip.pace = payload.pace


def _build_subtree(trip: Trip, payload: TripWrite):
    """Create every child row of `trip` from the payload, with fresh timestamps."""
    now = utcnow()

    # day-plan links reference destinations by their payload id
    destinations_by_ref = {}
    for index, dest in enumerate(payload.destinations):
        row = Destination(
            id=dest.id or generate_id("dest"),
            order_index=dest.order_index if dest.order_index is not None else index,
            city=dest.city.strip(),
            region=dest.region,
            country=dest.country,
            lat=dest.lat,
            lng=dest.lng,
            hero_image=dest.hero_image,
            start_date=dest.start_date.isoformat() if dest.start_date else None,
            end_date=dest.end_date.isoformat() if dest.end_date else None,
            notes=dest.notes,
            created_at=now,
            updated_at=now,
        )
        trip.destinations.append(row)
        if dest.id:
            destinations_by_ref[dest.id] = row

    for index, dp in enumerate(payload.day_plans):
        day = DayPlan(
            id=dp.id or generate_id("day"),
            day_number=dp.day_number if dp.day_number is not None else index + 1,
            date=dp.date.isoformat(),
            notes=dp.notes,
            created_at=now,
            updated_at=now,
        )
        for link_index, link in enumerate(dp.destinations):
            day.destinations.append(DayPlanDestination(
                id=generate_id("dpd"),
                destination=destinations_by_ref[link.destination_id],
                order_index=link.order_index if link.order_index is not None else link_index,
                part_of_day=link.part_of_day,
                created_at=now,
            ))
        for act in dp.activities:
            day.activities.append(Activity(
                id=act.id or generate_id("act"),
                time_of_day=act.time_of_day,
                order_within_time=act.order_within_time,
                title=act.title,
                type=act.type,
                location=act.location,
                address=act.address,
                cost=act.cost,
                place_id=act.place_id,
                lat=act.lat,
                lng=act.lng,
                notes=act.notes,
                completed=act.completed,
                skipped=act.skipped,
                created_at=now,
                updated_at=now,
            ))
        trip.day_plans.append(day)

    # de-duplicate while keeping the submitted order
    for tag in dict.fromkeys(t.strip() for t in payload.tags if t and t.strip()):
        trip.tag_rows.append(TripTag(tag=tag))


def _new_trip(db: Session, owner: Owner, payload: TripWrite, trip_id: Optional[str] = None) -> Trip:
    now = utcnow()
    trip = Trip(
        id=trip_id or payload.id or generate_id("trip"),
        visibility=VISIBILITY_PRIVATE,
        likes=0,
        clone_count=0,
        created_at=now,
        updated_at=now,
    )
    trip.assign_owner(owner)
    _apply_scalars(trip, payload)
    _build_subtree(trip, payload)
    if payload.visibility:
        visibility_service.apply_visibility(trip, payload.visibility)
    db.add(trip)
    return trip


def create_trip(db: Session, owner: Owner, payload: TripWrite) -> Trip:
    validate_trip(payload)
    try:
        trip = _new_trip(db, owner, payload)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Trip or child id already in use")
    except Exception:
        db.rollback()
        raise
    logger.info("Created trip %s for %s %s", trip.id, owner.kind.value, owner.id)
    return get_owned(db, trip.id, owner)


def replace_trip(db: Session, owner: Owner, trip_id: str, payload: TripWrite) -> Trip:
    """Replace a trip and its whole subtree; creates the trip when the caller has none with this id.

    Engagement counters, slug and published_at are never touched here.
    """
    validate_trip(payload)
    trip = _find_owned(db, trip_id, owner)

    if trip is None:
        if db.query(Trip.id).filter(Trip.id == trip_id).first():
            # the id belongs to another owner
            raise NotFoundError("Trip")
        try:
            _new_trip(db, owner, payload, trip_id=trip_id)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationError("Trip or child id already in use")
        except Exception:
            db.rollback()
            raise
        logger.info("Upserted new trip %s for %s %s", trip_id, owner.kind.value, owner.id)
        return get_owned(db, trip_id, owner)

    try:
        _apply_scalars(trip, payload)
        if payload.visibility:
            visibility_service.apply_visibility(trip, payload.visibility)
        trip.updated_at = utcnow()

        trip.destinations.clear()
        trip.day_plans.clear()
        trip.tag_rows.clear()
        db.flush()

        _build_subtree(trip, payload)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Replace of trip %s rolled back on id conflict", trip_id)
        raise ValidationError("Child id already in use")
    except Exception:
        db.rollback()
        logger.warning("Replace of trip %s rolled back", trip_id)
        raise

    logger.info("Replaced trip %s", trip_id)
    return get_owned(db, trip_id, owner)


def delete_trip(db: Session, trip_id: str, owner: Owner):
    trip = _find_owned(db, trip_id, owner)
    if not trip:
        raise NotFoundError("Trip")
    db.delete(trip)
    db.commit()
    logger.info("Deleted trip %s", trip_id)


def migrate_ownership(db: Session, shadow_id: str, user_id: str) -> int:
    """Move every trip of a shadow identity to an authenticated user.

    Runs as a single bulk UPDATE; a second call finds nothing left to move.
    """
    if not shadow_id or not user_id:
        raise ValidationError("Both shadow id and user id are required")

    result = db.execute(
        update(Trip)
        .where(Trip.shadow_user_id == shadow_id)
        .values(user_id=user_id, shadow_user_id=None, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    moved = result.rowcount or 0
    logger.info("Migrated %d shadow trips from %s to user %s", moved, shadow_id, user_id)
    return moved
