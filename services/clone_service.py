"""
Copy a public trip into the caller's private trips.

The clone gets fresh ids for every row and no engagement history. The
source's clone counter is bumped afterwards, outside the clone
transaction, by `increment_clone_count`.
"""
from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

import database
from models.Trip import Trip, VISIBILITY_PRIVATE, VISIBILITY_PUBLIC, STATUS_PLANNING
from models.Destination import Destination
from models.DayPlan import DayPlan
from models.DayPlanDestination import DayPlanDestination
from models.Activity import Activity
from models.TripTag import TripTag
from utils.clock import utcnow
from utils.errors import NotFoundError, ValidationError
from utils.id_generator import generate_id
from utils.logger import get_logger
from utils.ownership import Owner

logger = get_logger("clone")


def _copy_subtree(source: Trip, clone: Trip, now):
    new_destinations = {}
    for dest in source.destinations:
        copy = Destination(
            id=generate_id("dest"),
            order_index=dest.order_index,
            city=dest.city,
            region=dest.region,
            country=dest.country,
            lat=dest.lat,
            lng=dest.lng,
            hero_image=dest.hero_image,
            start_date=dest.start_date,
            end_date=dest.end_date,
            notes=dest.notes,
            created_at=now,
            updated_at=now,
        )
        new_destinations[dest.id] = copy
        clone.destinations.append(copy)

    for day in source.day_plans:
        day_copy = DayPlan(
            id=generate_id("day"),
            day_number=day.day_number,
            date=day.date,
            notes=day.notes,
            created_at=now,
            updated_at=now,
        )
        for link in day.destinations:
            day_copy.destinations.append(DayPlanDestination(
                id=generate_id("dpd"),
                destination=new_destinations[link.destination_id],
                order_index=link.order_index,
                part_of_day=link.part_of_day,
                created_at=now,
            ))
        for act in day.activities:
            day_copy.activities.append(Activity(
                id=generate_id("act"),
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
                created_at=now,
                updated_at=now,
            ))
        clone.day_plans.append(day_copy)

    for tag in source.tags:
        clone.tag_rows.append(TripTag(tag=tag))


def clone_public_trip(db: Session, source_id: str, user_id: str, new_name: str) -> Trip:
    if not new_name or not new_name.strip():
        raise ValidationError("Name for the cloned trip is required")

    source = (
        db.query(Trip)
        .options(
            selectinload(Trip.destinations),
            selectinload(Trip.tag_rows),
            selectinload(Trip.day_plans).selectinload(DayPlan.destinations),
            selectinload(Trip.day_plans).selectinload(DayPlan.activities),
        )
        .filter(Trip.id == source_id, Trip.visibility == VISIBILITY_PUBLIC)
        .first()
    )
    if not source:
        raise NotFoundError("Trip")

    now = utcnow()
    clone = Trip(
        id=generate_id("trip"),
        name=new_name.strip(),
        description=source.description,
        summary=source.summary,
        traveler_count=source.traveler_count,
        start_date=source.start_date,
        end_date=source.end_date,
        duration_days=source.duration_days,
        timezone=source.timezone,
        cover_image=source.cover_image,
        hero_image=source.hero_image,
        traveler_type=source.traveler_type,
        season=source.season,
        budget_level=source.budget_level,
        pace=source.pace,
        visibility=VISIBILITY_PRIVATE,
        status=STATUS_PLANNING,
        likes=0,
        clone_count=0,
        created_at=now,
        updated_at=now,
    )
    clone.assign_owner(Owner.user(user_id))

    try:
        _copy_subtree(source, clone, now)
        db.add(clone)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("User %s cloned trip %s into %s", user_id, source_id, clone.id)
    return clone


def increment_clone_count(source_id: str):
    """Bump the source trip's clone counter on a session of its own.

    Runs after the clone response is decided; failures are logged only.
    """
    db = None
    try:
        db = database.SessionLocal()
        db.execute(
            update(Trip)
            .where(Trip.id == source_id)
            .values(clone_count=Trip.clone_count + 1)
        )
        db.commit()
    except Exception:
        logger.exception("Failed to increment clone count for trip %s", source_id)
        if db is not None:
            db.rollback()
    finally:
        if db is not None:
            db.close()
