from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.User import User
from schemas import UserRead, ProfileUpdate, MigrateShadowTripsRequest, MigrateShadowTripsResponse
from services import identity_service, trip_service
from services.identity_service import require_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=UserRead)
def get_me(user_id: str = Depends(require_user), db: Session = Depends(get_db)):
    return db.get(User, user_id)


@router.put("/profile", response_model=UserRead)
def update_profile(payload: ProfileUpdate, user_id: str = Depends(require_user), db: Session = Depends(get_db)):
    """Set the display name shown as author of public trips (max 50 characters)."""
    return identity_service.update_profile(
        db, user_id, payload.display_name,
        profile_image_url=payload.profile_image_url,
        locale=payload.locale,
    )


@router.post("/migrate-shadow-trips", response_model=MigrateShadowTripsResponse)
def migrate_shadow_trips(
    payload: MigrateShadowTripsRequest,
    user_id: str = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Move every trip built anonymously under a shadow id to the signed-in user.
    Safe to call repeatedly; later calls move nothing.
    """
    moved = trip_service.migrate_ownership(db, payload.shadow_user_id, user_id)
    return MigrateShadowTripsResponse(migrated=moved)
