from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


class DayPlanDestination(Base):
    """Destination visited on a given day (a day can start in one city and end in another)."""

    __tablename__ = "day_plan_destinations"

    id = Column(String(64), primary_key=True, index=True)
    day_plan_id = Column(String(64), ForeignKey("day_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    destination_id = Column(String(64), ForeignKey("destinations.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)  # 0 = start of day
    part_of_day = Column(String(20), nullable=True)  # morning, afternoon, evening, all-day

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    day_plan = relationship("DayPlan", back_populates="destinations")
    destination = relationship("Destination")
