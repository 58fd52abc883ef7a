# schemas.py (Pydantic v2)
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal
from datetime import date, datetime


TimeOfDay = Literal["start", "mid", "end"]
CalendarDate = date  # alias for fields named `date`


# ---------- Users ----------
class UserRead(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    locale: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ProfileUpdate(BaseModel):
    display_name: str
    profile_image_url: Optional[str] = None
    locale: Optional[str] = None

class MigrateShadowTripsRequest(BaseModel):
    shadow_user_id: str

class MigrateShadowTripsResponse(BaseModel):
    migrated: int


# ---------- Activities ----------
class ActivityBase(BaseModel):
    time_of_day: TimeOfDay
    order_within_time: int = 0
    title: str
    type: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    cost: Optional[str] = None
    place_id: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    notes: Optional[str] = None
    completed: bool = False
    skipped: bool = False

class ActivityWrite(ActivityBase):
    id: Optional[str] = None  # generated when absent

class ActivityRead(ActivityBase):
    id: str
    day_plan_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ActivityOrderItem(BaseModel):
    id: str
    time_of_day: TimeOfDay
    order_within_time: int

class ActivityOrderRequest(BaseModel):
    """New bucket and position for activities of one day plan"""
    day_plan_id: str
    activities: List[ActivityOrderItem]


# ---------- Destinations ----------
class DestinationBase(BaseModel):
    city: str
    region: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    hero_image: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

class DestinationWrite(DestinationBase):
    id: Optional[str] = None
    order_index: Optional[int] = None  # position in the list when absent

class DestinationRead(DestinationBase):
    id: str
    trip_id: str
    order_index: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Day Plans ----------
class DayPlanDestinationWrite(BaseModel):
    destination_id: str  # must reference a destination of the same trip payload
    order_index: Optional[int] = None
    part_of_day: Optional[str] = None

class DayPlanDestinationRead(BaseModel):
    id: str
    destination_id: str
    order_index: int
    part_of_day: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class DayPlanWrite(BaseModel):
    id: Optional[str] = None
    day_number: Optional[int] = None  # assigned by position when omitted everywhere
    date: CalendarDate
    notes: Optional[str] = None
    destinations: List[DayPlanDestinationWrite] = []
    activities: List[ActivityWrite] = []

class DayPlanRead(BaseModel):
    id: str
    trip_id: str
    day_number: int
    date: CalendarDate
    notes: Optional[str] = None
    destinations: List[DayPlanDestinationRead] = []
    activities: List[ActivityRead] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Trips ----------
class TripBase(BaseModel):
    name: str
    description: Optional[str] = None
    summary: Optional[str] = None
    traveler_count: int = 1
    start_date: date
    end_date: date
    timezone: Optional[str] = None
    cover_image: Optional[str] = None
    hero_image: Optional[str] = None
    status: str = "planning"
    traveler_type: str = ""
    season: Optional[str] = None
    budget_level: Optional[str] = None
    pace: Optional[str] = None

class TripWrite(TripBase):
    """Full trip payload; nested children replace the stored ones wholesale"""
    id: Optional[str] = None  # honoured on create only
    visibility: Optional[str] = None  # left unchanged on replace when absent
    tags: List[str] = []
    destinations: List[DestinationWrite] = []
    day_plans: List[DayPlanWrite] = []

class TripRead(TripBase):
    id: str
    user_id: Optional[str] = None
    shadow_user_id: Optional[str] = None
    visibility: str
    slug: Optional[str] = None
    duration_days: int
    likes: int
    clone_count: int
    published_at: Optional[datetime] = None
    tags: List[str] = []
    destinations: List[DestinationRead] = []
    day_plans: List[DayPlanRead] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class VisibilityUpdate(BaseModel):
    visibility: str

class CloneTripRequest(BaseModel):
    name: str


# ---------- Public Trips ----------
class AuthorRead(BaseModel):
    id: str
    name: str  # display name when set, account name otherwise
    profile_image_url: Optional[str] = None

class PublicTripSummary(BaseModel):
    id: str
    slug: Optional[str] = None
    name: str
    summary: Optional[str] = None
    cover_image: Optional[str] = None
    start_date: date
    end_date: date
    duration_days: int
    traveler_type: str
    season: Optional[str] = None
    budget_level: Optional[str] = None
    pace: Optional[str] = None
    tags: List[str] = []
    cities: List[str] = []
    likes: int
    clone_count: int
    has_liked: Optional[bool] = None  # null for anonymous viewers
    published_at: Optional[datetime] = None
    updated_at: datetime

class PublicTripDetail(PublicTripSummary):
    description: Optional[str] = None
    traveler_count: int
    timezone: Optional[str] = None
    hero_image: Optional[str] = None
    author: Optional[AuthorRead] = None
    destinations: List[DestinationRead] = []
    day_plans: List[DayPlanRead] = []

class ListPublicTripsResponse(BaseModel):
    trips: List[PublicTripSummary]
    total: int
    page: int
    page_size: int
    has_more_pages: bool

class LikeToggleResponse(BaseModel):
    liked: bool
    likes: int = Field(ge=0)
