from sqlalchemy import Column, Integer, String, Text, Float, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


class Destination(Base):
    __tablename__ = "destinations"

    id = Column(String(64), primary_key=True, index=True)
    trip_id = Column(String(64), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)  # position in the trip itinerary

    city = Column(String(100), nullable=False)
    region = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    hero_image = Column(Text, nullable=True)

    # Date range spent in this destination
    start_date = Column(String(10), nullable=True)
    end_date = Column(String(10), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    trip = relationship("Trip", back_populates="destinations")
