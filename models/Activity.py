from sqlalchemy import Column, Integer, String, Text, Float, Boolean, ForeignKey, DateTime, case, func
from sqlalchemy.orm import relationship
from database import Base

# Coarse buckets, in display order
TIME_OF_DAY_BUCKETS = ("start", "mid", "end")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(String(64), primary_key=True, index=True)
    day_plan_id = Column(String(64), ForeignKey("day_plans.id", ondelete="CASCADE"), nullable=False, index=True)

    # Ordering
    time_of_day = Column(String(20), nullable=False)  # start, mid, end
    order_within_time = Column(Integer, default=0, nullable=False)

    title = Column(String(255), nullable=False)
    type = Column(String(40), nullable=True)  # transportation|culture|accommodation|meal|experience
    location = Column(String(255), nullable=True)
    address = Column(String(250), nullable=True)
    cost = Column(String(50), nullable=True)
    place_id = Column(String(255), nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    # Status
    completed = Column(Boolean, default=False, nullable=False)
    skipped = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    day_plan = relationship("DayPlan", back_populates="activities")


# SQL ordering rank of the time_of_day bucket (start < mid < end)
time_of_day_rank = case(
    {bucket: rank for rank, bucket in enumerate(TIME_OF_DAY_BUCKETS)},
    value=Activity.time_of_day,
    else_=len(TIME_OF_DAY_BUCKETS),
)
