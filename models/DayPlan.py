from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base
from models.Activity import Activity, time_of_day_rank
from models.DayPlanDestination import DayPlanDestination


class DayPlan(Base):
    __tablename__ = "day_plans"

    id = Column(String(64), primary_key=True, index=True)
    trip_id = Column(String(64), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    day_number = Column(Integer, nullable=False)  # 1, 2, 3, ... without gaps
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    trip = relationship("Trip", back_populates="day_plans")
    destinations = relationship(
        "DayPlanDestination",
        back_populates="day_plan",
        order_by=DayPlanDestination.order_index,
        cascade="all, delete-orphan",
    )
    activities = relationship(
        "Activity",
        back_populates="day_plan",
        order_by=[time_of_day_rank, Activity.order_within_time, Activity.id],
        cascade="all, delete-orphan",
    )
