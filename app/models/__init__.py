from .base import Base
from .manager import Manager, ManagerStatus
from .location import Location
from .property import Property, PropertyType
from .room import Room
from .lease import Lease
from .application import Application
from .disabled_property import DisabledProperty

__all__ = [
    "Base",
    "Manager",
    "ManagerStatus",
    "Location",
    "Property",
    "PropertyType",
    "Room",
    "Lease",
    "Application",
    "DisabledProperty",
]
