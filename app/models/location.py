from geoalchemy2 import Geography
from sqlalchemy import Column, Integer, String
from .base import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True)
    address = Column(String(500), nullable=False)
    city = Column(String(255), nullable=False)
    suburb = Column(String(255))
    state = Column(String(255))
    country = Column(String(255), nullable=False)
    postal_code = Column(String(20))
    # PostGIS point, SRID 4326 (longitude, latitude)
    coordinates = Column(Geography(geometry_type="POINT", srid=4326), nullable=False)
