import math
import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.config import settings

# Query-string value the search UI sends for an unset dropdown.
ANY = "any"


def _blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and v.strip().lower() in ("", ANY))


def _finite_float(v: Any) -> Optional[float]:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _split_csv(v: Any) -> List[str]:
    if isinstance(v, (list, tuple)):
        items = v
    else:
        items = str(v).split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def clamp_limit(v: Any) -> int:
    """Out-of-range limits are clamped, unparseable ones fall back to the default."""
    if _blank(v):
        return settings.SEARCH_DEFAULT_LIMIT
    try:
        parsed = int(float(v))
    except (TypeError, ValueError, OverflowError):
        return settings.SEARCH_DEFAULT_LIMIT
    return min(max(parsed, 1), settings.SEARCH_MAX_LIMIT)


def normalize_location(raw: Optional[str], country_suffix: Optional[str] = None) -> str:
    """Lower-case a free-text place, drop a trailing ", <country>" and collapse whitespace.

    >>> normalize_location("  Rondebosch,   Cape Town, South Africa ")
    'rondebosch, cape town'
    """
    if not raw:
        return ""
    country_suffix = settings.LOCATION_COUNTRY_SUFFIX if country_suffix is None else country_suffix
    text = raw.strip()
    if country_suffix:
        text = re.sub(rf",\s*{re.escape(country_suffix)}\s*$", "", text, flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", text.lower()).strip()


class PropertySearchFilter(BaseModel):
    """Request-scoped search filter built from the listing query string.

    Malformed values are ignored (or clamped, for ``limit``) rather than
    rejected, so a stale or hand-edited URL still returns listings.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    favorite_ids: Optional[List[int]] = Field(default=None, alias="favoriteIds")
    price_min: Optional[float] = Field(default=None, alias="priceMin")
    price_max: Optional[float] = Field(default=None, alias="priceMax")
    beds: Optional[float] = None
    baths: Optional[float] = None
    square_feet_min: Optional[float] = Field(default=None, alias="squareFeetMin")
    square_feet_max: Optional[float] = Field(default=None, alias="squareFeetMax")
    property_type: Optional[str] = Field(default=None, alias="propertyType")
    amenities: Optional[List[str]] = None
    available_from: Optional[datetime] = Field(default=None, alias="availableFrom")
    location: Optional[str] = None
    property_name: Optional[str] = Field(default=None, alias="propertyName")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    limit: int = Field(default_factory=lambda: settings.SEARCH_DEFAULT_LIMIT)

    @model_validator(mode="before")
    @classmethod
    def resolve_coordinates(cls, data: Any) -> Any:
        # coordinates=lng,lat wins; latitude/longitude only fill what is still missing
        if not isinstance(data, dict):
            return data
        data = dict(data)
        lat = lng = None
        coordinates = data.pop("coordinates", None)
        if isinstance(coordinates, str) and "," in coordinates:
            lng_str, lat_str = coordinates.split(",")[:2]
            parsed_lat, parsed_lng = _finite_float(lat_str), _finite_float(lng_str)
            if parsed_lat is not None and parsed_lng is not None:
                lat, lng = parsed_lat, parsed_lng
        if lat is None:
            lat = _finite_float(data.get("latitude"))
        if lng is None:
            lng = _finite_float(data.get("longitude"))
        data["latitude"] = lat
        data["longitude"] = lng
        return data

    @field_validator(
        "price_min", "price_max", "beds", "baths", "square_feet_min", "square_feet_max",
        mode="before",
    )
    @classmethod
    def lenient_number(cls, v):
        if _blank(v):
            return None
        return _finite_float(v)

    @field_validator("favorite_ids", mode="before")
    @classmethod
    def parse_ids(cls, v):
        if _blank(v):
            return None
        ids = []
        for item in _split_csv(v):
            try:
                ids.append(int(item))
            except ValueError:
                continue
        return ids or None

    @field_validator("amenities", mode="before")
    @classmethod
    def parse_amenities(cls, v):
        if _blank(v):
            return None
        return _split_csv(v) or None

    @field_validator("available_from", mode="before")
    @classmethod
    def parse_date(cls, v):
        if _blank(v):
            return None
        if isinstance(v, datetime):
            return v
        try:
            return datetime.fromisoformat(str(v).strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    @field_validator("property_type", mode="before")
    @classmethod
    def parse_property_type(cls, v):
        if _blank(v):
            return None
        return str(v).strip().upper()

    @field_validator("location", "property_name", mode="before")
    @classmethod
    def parse_text(cls, v):
        if _blank(v):
            return None
        return str(v).strip()

    @field_validator("limit", mode="before")
    @classmethod
    def parse_limit(cls, v):
        return clamp_limit(v)

    @property
    def has_valid_coordinates(self) -> bool:
        # [0, 0] is the UI's "no point selected" default, never a real search
        return (
            self.latitude is not None
            and self.longitude is not None
            and math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
            and (self.latitude != 0 or self.longitude != 0)
        )

    @property
    def location_term(self) -> str:
        return normalize_location(self.location)

    @property
    def is_narrow(self) -> bool:
        """True when a place, name or point filter is active."""
        return bool(self.location or self.property_name or self.has_valid_coordinates)

    def cache_params(self) -> dict:
        return self.model_dump(mode="json")
