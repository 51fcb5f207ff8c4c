from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models import ManagerStatus, PropertyType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Coordinates(CamelModel):
    longitude: float
    latitude: float


class LocationOut(CamelModel):
    id: int
    address: str
    city: str
    suburb: Optional[str] = None
    state: Optional[str] = None
    country: str
    postal_code: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class PropertyOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    price_per_month: float
    security_deposit: Optional[float] = None
    beds: int
    baths: float
    kitchens: Optional[int] = None
    square_feet: Optional[int] = None
    property_type: PropertyType
    amenities: List[str] = []
    highlights: List[str] = []
    photo_urls: List[str] = []
    is_pets_allowed: bool = False
    is_parking_included: bool = False
    average_rating: Optional[float] = None
    number_of_reviews: Optional[int] = None
    posted_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    location_id: int
    manager_cognito_id: str
    # Search listings only
    min_room_price: Optional[float] = None
    available_rooms: Optional[int] = None
    location: LocationOut


def _split_list(v):
    if v is None:
        return v
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class PropertyCreate(CamelModel):
    manager_cognito_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    property_type: PropertyType
    security_deposit: float = Field(default=0, ge=0)
    beds: int = Field(default=1, ge=0)
    baths: float = Field(default=1, ge=0)
    kitchens: int = Field(default=0, ge=0)
    square_feet: int = Field(default=0, ge=0)
    amenities: List[str] = []
    highlights: List[str] = []
    is_pets_allowed: bool = False
    is_parking_included: bool = False
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    suburb: Optional[str] = None
    state: Optional[str] = Field(default=None, validation_alias=AliasChoices("state", "province"))
    country: str = Field(min_length=1)
    postal_code: Optional[str] = None

    @field_validator("amenities", "highlights", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _split_list(v)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "managerCognitoId": "eu-north-1_abc123",
            "name": "Rondebosch Student Lodge",
            "propertyType": "ROOMS",
            "beds": 6,
            "baths": 2,
            "amenities": ["WiFi", "Laundry"],
            "address": "12 Main Road",
            "suburb": "Rondebosch",
            "city": "Cape Town",
            "state": "Western Cape",
            "country": "South Africa",
            "postalCode": "7700",
        }
    })

    def address_line(self) -> str:
        """Comma-joined address used for geocoding and stored on the location."""
        parts = [self.address]
        if self.suburb and self.suburb.strip():
            parts.append(self.suburb)
        parts.append(self.city)
        if self.state and self.state.strip():
            parts.append(self.state)
        if self.postal_code and self.postal_code.strip():
            parts.append(self.postal_code)
        parts.append(self.country)
        return ", ".join(parts)


LOCATION_FIELDS = ("address", "city", "suburb", "state", "country", "postal_code")
NON_NULLABLE_FIELDS = (
    "name", "property_type", "price_per_month", "beds", "baths", "amenities", "highlights", "photo_urls",
)


class PropertyUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    property_type: Optional[PropertyType] = None
    price_per_month: Optional[float] = Field(default=None, ge=0)
    security_deposit: Optional[float] = Field(default=None, ge=0)
    beds: Optional[int] = Field(default=None, ge=0)
    baths: Optional[float] = Field(default=None, ge=0)
    kitchens: Optional[int] = Field(default=None, ge=0)
    square_feet: Optional[int] = Field(default=None, ge=0)
    amenities: Optional[List[str]] = None
    highlights: Optional[List[str]] = None
    photo_urls: Optional[List[str]] = None
    is_pets_allowed: Optional[bool] = None
    is_parking_included: Optional[bool] = None
    address: Optional[str] = None
    city: Optional[str] = None
    suburb: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None

    @field_validator("amenities", "highlights", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _split_list(v)

    @field_validator(*NON_NULLABLE_FIELDS)
    @classmethod
    def reject_null(cls, v, info):
        # Omit a field to keep it; an explicit null would violate NOT NULL
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    def property_changes(self) -> dict:
        return {
            k: v for k, v in self.model_dump(exclude_unset=True).items()
            if k not in LOCATION_FIELDS
        }

    def location_changes(self) -> dict:
        # Empty strings keep the stored value
        return {
            k: v for k, v in self.model_dump(exclude_unset=True).items()
            if k in LOCATION_FIELDS and v
        }


class ManagerStatusUpdate(BaseModel):
    # One of ManagerStatus; validated by the service
    status: str
    notes: Optional[str] = None


class ManagerOut(CamelModel):
    cognito_id: str
    name: str
    email: str
    status: ManagerStatus
    status_notes: Optional[str] = None
