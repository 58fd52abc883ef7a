from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlalchemy.orm import Session

from database import get_db
from schemas import TripWrite, TripRead, CloneTripRequest
from services import trip_service, clone_service
from services.identity_service import require_owner, require_user
from utils.ownership import Owner

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("/", response_model=List[TripRead])
def list_my_trips(owner: Owner = Depends(require_owner), db: Session = Depends(get_db)):
    """All trips of the caller (user or shadow identity), most recently updated first."""
    return trip_service.list_owned(db, owner)


@router.post("/", response_model=TripRead, status_code=201)
def create_trip(payload: TripWrite, owner: Owner = Depends(require_owner), db: Session = Depends(get_db)):
    """
    Create a trip with its full itinerary.
    Ids are generated for the trip and every nested item that comes without one.
    """
    return trip_service.create_trip(db, owner, payload)


@router.get("/{trip_id}", response_model=TripRead)
def get_trip(trip_id: str, owner: Owner = Depends(require_owner), db: Session = Depends(get_db)):
    return trip_service.get_owned(db, trip_id, owner)


@router.put("/{trip_id}", response_model=TripRead)
def replace_trip(
    trip_id: str,
    payload: TripWrite,
    owner: Owner = Depends(require_owner),
    db: Session = Depends(get_db),
):
    """
    Replace a trip and its whole itinerary.
    Creates the trip under this id when the caller has none yet.
    """
    return trip_service.replace_trip(db, owner, trip_id, payload)


@router.delete("/{trip_id}", status_code=204)
def delete_trip(trip_id: str, owner: Owner = Depends(require_owner), db: Session = Depends(get_db)):
    trip_service.delete_trip(db, trip_id, owner)
    return Response(status_code=204)


@router.post("/clone/{trip_id}", response_model=TripRead, status_code=201)
def clone_trip(
    trip_id: str,
    payload: CloneTripRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Copy a public trip into the caller's private trips.
    The source's clone counter is updated after the response is sent.
    """
    clone = clone_service.clone_public_trip(db, trip_id, user_id, payload.name)
    background_tasks.add_task(clone_service.increment_clone_count, trip_id)
    return trip_service.get_owned(db, clone.id, Owner.user(user_id))
