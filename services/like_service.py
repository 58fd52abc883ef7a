from typing import Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.Trip import Trip, VISIBILITY_PUBLIC
from models.TripLike import TripLike
from utils.errors import NotFoundError
from utils.id_generator import generate_id
from utils.logger import get_logger

logger = get_logger("likes")


def _toggle_once(db: Session, user_id: str, trip_id: str, allow_unlike: bool = True) -> Tuple[bool, int]:
    # row lock serialises concurrent toggles on the same trip (no-op on SQLite)
    trip = db.query(Trip).filter(Trip.id == trip_id).with_for_update().first()
    if not trip:
        raise NotFoundError("Trip")

    existing = (
        db.query(TripLike)
        .filter(TripLike.user_id == user_id, TripLike.trip_id == trip_id)
        .first()
    )

    if existing and not allow_unlike:
        total = trip.likes
        db.commit()
        return True, total

    if existing:
        # an unlike is allowed even after the trip stopped being public
        db.delete(existing)
        db.flush()
        db.execute(
            update(Trip)
            .where(Trip.id == trip_id, Trip.likes > 0)
            .values(likes=Trip.likes - 1)
            .execution_options(synchronize_session=False)
        )
        liked = False
    else:
        if trip.visibility != VISIBILITY_PUBLIC:
            raise NotFoundError("Trip")
        db.add(TripLike(id=generate_id("like"), user_id=user_id, trip_id=trip_id))
        db.flush()
        db.execute(
            update(Trip)
            .where(Trip.id == trip_id)
            .values(likes=Trip.likes + 1)
            .execution_options(synchronize_session=False)
        )
        liked = True

    # read back inside the same transaction
    total = db.query(Trip.likes).filter(Trip.id == trip_id).scalar()
    db.commit()
    return liked, total


def toggle_like(db: Session, user_id: str, trip_id: str) -> Tuple[bool, int]:
    """Like the trip if the user has not liked it yet, otherwise remove the like.

    Liking requires a public trip; removing an existing like does not.
    Returns the new liked state and the trip's like count after the change.
    """
    try:
        liked, total = _toggle_once(db, user_id, trip_id)
    except IntegrityError:
        # a concurrent request inserted the same like first; keep it
        db.rollback()
        logger.warning("Duplicate like for trip %s by %s, retrying toggle", trip_id, user_id)
        try:
            liked, total = _toggle_once(db, user_id, trip_id, allow_unlike=False)
        except Exception:
            db.rollback()
            raise
    except Exception:
        db.rollback()
        raise

    logger.info("User %s %s trip %s (likes=%s)", user_id, "liked" if liked else "unliked", trip_id, total)
    return liked, total
