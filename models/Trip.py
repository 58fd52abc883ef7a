from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base
from models.Destination import Destination
from models.DayPlan import DayPlan
from utils.ownership import Owner

VISIBILITY_PRIVATE = "private"
VISIBILITY_UNLISTED = "unlisted"
VISIBILITY_PUBLIC = "public"
VISIBILITIES = (VISIBILITY_PRIVATE, VISIBILITY_UNLISTED, VISIBILITY_PUBLIC)

STATUS_PLANNING = "planning"
STATUSES = (STATUS_PLANNING, "active", "completed", "archived")


class Trip(Base):
    __tablename__ = "trips"
    __table_args__ = (
        # exactly one owner column is set
        CheckConstraint("(user_id IS NULL) <> (shadow_user_id IS NULL)", name="ck_trips_single_owner"),
        CheckConstraint("likes >= 0", name="ck_trips_likes_non_negative"),
    )

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    shadow_user_id = Column(String(64), nullable=True, index=True)

    # Basic info
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    slug = Column(String(255), unique=True, nullable=True)  # assigned on first publish

    # Trip details
    traveler_count = Column(Integer, default=1, nullable=False)
    start_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    end_date = Column(String(10), nullable=False)
    duration_days = Column(Integer, nullable=False, index=True)  # recomputed on every write
    timezone = Column(String(50), nullable=True)

    # Media
    cover_image = Column(Text, nullable=True)
    hero_image = Column(Text, nullable=True)

    # Visibility & status
    visibility = Column(String(20), default=VISIBILITY_PRIVATE, nullable=False, index=True)
    status = Column(String(20), default=STATUS_PLANNING, nullable=False)

    # Public metadata
    summary = Column(Text, nullable=True)
    traveler_type = Column(String(50), default="", nullable=False)  # single value
    season = Column(String(20), nullable=True)
    budget_level = Column(String(20), nullable=True)
    pace = Column(String(20), nullable=True)

    # Engagement metrics
    likes = Column(Integer, default=0, nullable=False)
    clone_count = Column(Integer, default=0, nullable=False)

    published_at = Column(DateTime(timezone=True), nullable=True)  # first publish only
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    owner = relationship("User", back_populates="trips")
    destinations = relationship(
        "Destination",
        back_populates="trip",
        order_by=Destination.order_index,
        cascade="all, delete-orphan",
    )
    day_plans = relationship(
        "DayPlan",
        back_populates="trip",
        order_by=DayPlan.day_number,
        cascade="all, delete-orphan",
    )
    tag_rows = relationship("TripTag", back_populates="trip", order_by="TripTag.id", cascade="all, delete-orphan")
    like_rows = relationship("TripLike", back_populates="trip", cascade="all, delete")

    @property
    def tags(self):
        return [t.tag for t in self.tag_rows]

    @classmethod
    def owned_by(cls, owner: Owner):
        """SQL clause matching the trips of `owner`."""
        if owner.is_user:
            return cls.user_id == owner.id
        return cls.shadow_user_id == owner.id

    def assign_owner(self, owner: Owner):
        if owner.is_user:
            self.user_id = owner.id
            self.shadow_user_id = None
        else:
            self.user_id = None
            self.shadow_user_id = owner.id
