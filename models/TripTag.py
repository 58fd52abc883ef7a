from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base


class TripTag(Base):
    __tablename__ = "trip_tags"
    __table_args__ = (
        UniqueConstraint("trip_id", "tag", name="uq_trip_tag"),
    )

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(String(64), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = Column(String(50), nullable=False, index=True)

    trip = relationship("Trip", back_populates="tag_rows")
