from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from .base import Base


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    tenant_cognito_id = Column(String(255))
    status = Column(String(20), nullable=False, default="Pending")
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    message = Column(Text)
    application_date = Column(DateTime(timezone=True), default=datetime.utcnow)
