import re
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.Trip import Trip, VISIBILITIES, VISIBILITY_PUBLIC
from utils.clock import utcnow
from utils.errors import NotFoundError, ValidationError
from utils.logger import get_logger
from utils.ownership import Owner

logger = get_logger("visibility")

SLUG_ATTEMPTS = 3


def build_slug(trip: Trip) -> str:
    """URL slug from the trip name plus a random suffix, e.g. `tokyo-week-3f9a2c1d`."""
    base = re.sub(r"[^a-z0-9]+", "-", (trip.name or "").lower()).strip("-")[:60] or "trip"
    return f"{base}-{uuid.uuid4().hex[:8]}"


def apply_visibility(trip: Trip, visibility: str):
    """Move `trip` to a visibility state, stamping first-publish data once."""
    if visibility not in VISIBILITIES:
        raise ValidationError(f"Invalid visibility: {visibility}")

    if visibility == VISIBILITY_PUBLIC:
        if trip.shadow_user_id:
            raise ValidationError("Sign in before publishing a trip")
        # published_at and slug survive unpublish/republish cycles
        if trip.published_at is None:
            trip.published_at = utcnow()
        if not trip.slug:
            trip.slug = build_slug(trip)

    trip.visibility = visibility


def set_visibility(db: Session, trip_id: str, owner: Owner, visibility: str) -> Trip:
    for attempt in range(1, SLUG_ATTEMPTS + 1):
        trip = db.query(Trip).filter(Trip.id == trip_id, Trip.owned_by(owner)).first()
        if not trip:
            raise NotFoundError("Trip")

        previous = trip.visibility
        try:
            apply_visibility(trip, visibility)
            trip.updated_at = utcnow()
            db.commit()
            break
        except IntegrityError:
            # slug taken by another trip; a fresh one is drawn on the next pass
            db.rollback()
            logger.warning("Slug collision publishing trip %s (attempt %d)", trip_id, attempt)
        except Exception:
            db.rollback()
            raise
    else:
        raise ValidationError("Could not assign a unique slug, please retry")

    db.refresh(trip)
    logger.info("Trip %s visibility %s -> %s", trip_id, previous, visibility)
    return trip
