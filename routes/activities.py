from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas import ActivityOrderRequest, ActivityRead
from services import activity_service
from services.identity_service import require_owner
from utils.ownership import Owner

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.post("/order", response_model=List[ActivityRead])
def reorder_activities(
    payload: ActivityOrderRequest,
    owner: Owner = Depends(require_owner),
    db: Session = Depends(get_db),
):
    """Move activities between time-of-day buckets and reorder them inside a day plan."""
    return activity_service.reorder_activities(db, owner, payload.day_plan_id, payload.activities)
