from collections import defaultdict
from typing import List

from sqlalchemy.orm import Session

from models.Activity import Activity, TIME_OF_DAY_BUCKETS
from models.DayPlan import DayPlan
from models.Trip import Trip
from schemas import ActivityOrderItem
from utils.clock import utcnow
from utils.errors import NotFoundError, ValidationError
from utils.logger import get_logger
from utils.ownership import Owner

logger = get_logger("activities")


def _owned_day_plan(db: Session, owner: Owner, day_plan_id: str) -> DayPlan:
    day_plan = (
        db.query(DayPlan)
        .join(Trip, DayPlan.trip_id == Trip.id)
        .filter(DayPlan.id == day_plan_id, Trip.owned_by(owner))
        .first()
    )
    if not day_plan:
        raise NotFoundError("Day plan")
    return day_plan


def reorder_activities(db: Session, owner: Owner, day_plan_id: str, items: List[ActivityOrderItem]) -> List[Activity]:
    """Move activities between buckets and renumber each bucket 0..n-1.

    Activities of the day plan that are not listed keep their bucket and
    are placed after the listed ones.
    """
    day_plan = _owned_day_plan(db, owner, day_plan_id)
    activities = {a.id: a for a in day_plan.activities}

    seen = set()
    for item in items:
        if item.id not in activities:
            raise ValidationError(f"Activity {item.id} does not belong to day plan {day_plan_id}")
        if item.id in seen:
            raise ValidationError(f"Activity {item.id} listed twice")
        seen.add(item.id)

    buckets = defaultdict(list)
    requested = sorted(items, key=lambda i: (TIME_OF_DAY_BUCKETS.index(i.time_of_day), i.order_within_time))
    for item in requested:
        buckets[item.time_of_day].append(activities[item.id])
    # day_plan.activities is already in display order
    for activity in day_plan.activities:
        if activity.id not in seen:
            buckets[activity.time_of_day].append(activity)

    now = utcnow()
    try:
        for bucket, members in buckets.items():
            for position, activity in enumerate(members):
                activity.time_of_day = bucket
                activity.order_within_time = position
                activity.updated_at = now
        day_plan.trip.updated_at = now
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Reordered %d activities in day plan %s", len(items), day_plan_id)
    db.refresh(day_plan)
    return list(day_plan.activities)
