from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from .base import Base


class Lease(Base):
    __tablename__ = "leases"

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    tenant_cognito_id = Column(String(255))
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    rent = Column(Numeric(10, 2), nullable=False)
