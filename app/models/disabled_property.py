from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from .base import Base


class DisabledProperty(Base):
    """Soft-disable marker. A property listed here is hidden from search and detail."""

    __tablename__ = "disabled_properties"

    # No FK so a marker can outlive a hard delete of the property row
    property_id = Column(Integer, primary_key=True)
    disabled_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    disabled_by = Column(String(255))
