import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, Float, Boolean, DateTime, ForeignKey, Text, Enum
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship
from .base import Base


class PropertyType(enum.Enum):
    APARTMENT = "APARTMENT"
    HOUSE = "HOUSE"
    CONDO = "CONDO"
    TOWNHOUSE = "TOWNHOUSE"
    ROOMS = "ROOMS"


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price_per_month = Column(Numeric(10, 2), nullable=False, default=0)
    security_deposit = Column(Numeric(10, 2), default=0)
    beds = Column(Integer, nullable=False, default=1)
    baths = Column(Float, nullable=False, default=1)
    kitchens = Column(Integer, default=0)
    square_feet = Column(Integer, default=0)
    property_type = Column(Enum(PropertyType, name="propertytype"), nullable=False)
    amenities = Column(ARRAY(String), default=list, nullable=False)
    highlights = Column(ARRAY(String), default=list, nullable=False)
    photo_urls = Column(ARRAY(String), default=list, nullable=False)
    is_pets_allowed = Column(Boolean, default=False)
    is_parking_included = Column(Boolean, default=False)
    average_rating = Column(Float, default=0)
    number_of_reviews = Column(Integer, default=0)
    posted_date = Column(DateTime(timezone=True), default=datetime.utcnow)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    manager_cognito_id = Column(String(255), ForeignKey("managers.cognito_id"), nullable=False)

    # Relationships
    location = relationship("Location", lazy="joined")
    manager = relationship("Manager", back_populates="properties")
