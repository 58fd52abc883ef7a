from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True)
    firebase_uid = Column(String(128), unique=True, index=True, nullable=True)  # external auth subject
    name = Column(String(255), nullable=False, default="")  # name from the identity provider
    email = Column(String(255), unique=True, index=True, nullable=True)
    display_name = Column(String(100), nullable=True)  # user-chosen override of `name`
    profile_image_url = Column(String(500), nullable=True)
    locale = Column(String(10), default="en", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    trips = relationship("Trip", back_populates="owner")

    @property
    def public_name(self) -> str:
        return self.display_name or self.name
