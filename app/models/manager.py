import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship
from .base import Base


class ManagerStatus(enum.Enum):
    Pending = "Pending"
    Active = "Active"
    Disabled = "Disabled"
    Banned = "Banned"


class Manager(Base):
    __tablename__ = "managers"

    id = Column(Integer, primary_key=True)
    cognito_id = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(50))
    status = Column(Enum(ManagerStatus, name="managerstatus"), default=ManagerStatus.Pending, nullable=False)
    status_notes = Column(String)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    properties = relationship("Property", back_populates="manager")
