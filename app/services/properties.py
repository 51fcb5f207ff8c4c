from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.config import Settings, settings as default_settings
from app.models import (
    Application,
    DisabledProperty,
    Lease,
    Location,
    Manager,
    ManagerStatus,
    Property,
    Room,
)
from app.schemas.property import PropertyCreate, PropertyUpdate
from app.services.geocoding import GeocodingClient
from app.services.property_search import listing_query, row_to_listing
from app.services.query_cache import QueryCache, make_cache_key

logger = get_logger(__name__)


class PropertyNotFound(Exception):
    def __init__(self, property_id: int):
        super().__init__(f"Property {property_id} not found")
        self.property_id = property_id


class ManagerNotFound(Exception):
    def __init__(self, cognito_id: str):
        super().__init__(f"Manager {cognito_id} not found")
        self.cognito_id = cognito_id


class ManagerInactive(Exception):
    pass


class NotPropertyOwner(Exception):
    pass


class InvalidManagerStatus(ValueError):
    def __init__(self, status):
        allowed = ", ".join(s.value for s in ManagerStatus)
        super().__init__(f"Invalid status '{status}'. Must be one of: {allowed}")
        self.status = status


async def _load_listing(db: AsyncSession, property_id: int):
    stmt = listing_query().add_columns(
        Manager.status.label("manager_status"),
        DisabledProperty.property_id.label("disabled_marker"),
    ).where(Property.id == property_id)
    result = await db.execute(stmt)
    return result.mappings().first()


async def get_property(
    db: AsyncSession,
    cache: QueryCache,
    property_id: int,
    settings: Settings = default_settings,
) -> Dict[str, Any]:
    """Public detail view. Properties of inactive managers and disabled
    properties are reported as not found."""
    cache_key = make_cache_key("property", {"id": property_id})
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    row = await _load_listing(db, property_id)
    if row is None:
        raise PropertyNotFound(property_id)
    if row["manager_status"] != ManagerStatus.Active:
        logger.warning("Hiding property of inactive manager", property_id=property_id)
        raise PropertyNotFound(property_id)
    if row["disabled_marker"] is not None:
        logger.warning("Hiding disabled property", property_id=property_id)
        raise PropertyNotFound(property_id)

    listing = row_to_listing(row)
    await cache.set(cache_key, listing, settings.PROPERTY_DETAIL_TTL)
    return listing


async def create_property(
    db: AsyncSession,
    cache: QueryCache,
    geocoder: GeocodingClient,
    payload: PropertyCreate,
) -> Dict[str, Any]:
    manager = await db.scalar(select(Manager).where(Manager.cognito_id == payload.manager_cognito_id))
    if manager is None:
        raise ManagerNotFound(payload.manager_cognito_id)
    if manager.status != ManagerStatus.Active:
        raise ManagerInactive("Manager account is not active. Cannot create property.")

    address_line = payload.address_line()
    lng, lat = await geocoder.geocode(address_line)

    location = Location(
        address=address_line,
        city=payload.city,
        suburb=payload.suburb or None,
        state=payload.state or "N/A",
        country=payload.country,
        postal_code=payload.postal_code or None,
        coordinates=f"SRID=4326;POINT({lng} {lat})",
    )
    prop = Property(
        name=payload.name,
        description=payload.description,
        property_type=payload.property_type,
        # Listing price is derived from its rooms; starts at zero
        price_per_month=0,
        security_deposit=payload.security_deposit,
        beds=payload.beds,
        baths=payload.baths,
        kitchens=payload.kitchens,
        square_feet=payload.square_feet,
        amenities=payload.amenities,
        highlights=payload.highlights,
        photo_urls=[],
        is_pets_allowed=payload.is_pets_allowed,
        is_parking_included=payload.is_parking_included,
        manager_cognito_id=payload.manager_cognito_id,
        location=location,
    )
    db.add(prop)
    await db.commit()

    await cache.invalidate_all()
    logger.info("Property created", property_id=prop.id, manager=payload.manager_cognito_id)
    return row_to_listing(await _load_listing(db, prop.id))


async def update_property(
    db: AsyncSession,
    cache: QueryCache,
    property_id: int,
    payload: PropertyUpdate,
    user: dict,
) -> Dict[str, Any]:
    prop = await db.get(Property, property_id)
    if prop is None:
        raise PropertyNotFound(property_id)
    _ensure_owner_or_admin(prop, user)

    for field, value in payload.property_changes().items():
        setattr(prop, field, value)
    for field, value in payload.location_changes().items():
        setattr(prop.location, field, value)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await cache.invalidate_all()
    logger.info("Property updated", property_id=property_id, fields=sorted(payload.model_fields_set))
    return row_to_listing(await _load_listing(db, property_id))


async def disable_property(
    db: AsyncSession,
    cache: QueryCache,
    property_id: int,
    user: dict,
) -> None:
    """Hide a property from search and detail without deleting any data."""
    prop = await db.get(Property, property_id)
    if prop is None:
        raise PropertyNotFound(property_id)
    _ensure_owner_or_admin(prop, user)

    acting_user = str(user.get("user_id") or user.get("role") or "unknown")
    stmt = insert(DisabledProperty).values(property_id=property_id, disabled_by=acting_user)
    stmt = stmt.on_conflict_do_update(
        index_elements=[DisabledProperty.property_id],
        set_={"disabled_at": stmt.excluded.disabled_at, "disabled_by": stmt.excluded.disabled_by},
    )
    await db.execute(stmt)
    await db.commit()

    await cache.invalidate_all()
    logger.info("Property disabled", property_id=property_id, disabled_by=acting_user)


async def enable_property(db: AsyncSession, cache: QueryCache, property_id: int) -> None:
    if await db.get(Property, property_id) is None:
        raise PropertyNotFound(property_id)

    await db.execute(delete(DisabledProperty).where(DisabledProperty.property_id == property_id))
    await db.commit()

    await cache.invalidate_all()
    logger.info("Property enabled", property_id=property_id)


async def hard_delete_property(db: AsyncSession, cache: QueryCache, property_id: int) -> None:
    """Delete a property together with its rooms, leases and applications."""
    prop = await db.get(Property, property_id)
    if prop is None:
        raise PropertyNotFound(property_id)

    for model in (Application, Lease, Room):
        await db.execute(delete(model).where(model.property_id == property_id))
    await db.execute(delete(DisabledProperty).where(DisabledProperty.property_id == property_id))
    await db.execute(delete(Property).where(Property.id == property_id))
    await db.commit()

    await cache.invalidate_all()
    logger.info("Property deleted", property_id=property_id)


async def update_manager_status(
    db: AsyncSession,
    cache: QueryCache,
    cognito_id: str,
    status: str,
    notes: Optional[str] = None,
) -> Manager:
    try:
        new_status = ManagerStatus(status)
    except ValueError:
        raise InvalidManagerStatus(status)

    manager = await db.scalar(select(Manager).where(Manager.cognito_id == cognito_id))
    if manager is None:
        raise ManagerNotFound(cognito_id)

    previous = manager.status
    manager.status = new_status
    if notes is not None:
        manager.status_notes = notes
    await db.commit()

    # A manager's status decides whether all of their listings are visible.
    await cache.invalidate_all()
    logger.info("Manager status updated", cognito_id=cognito_id, previous=previous.value, status=new_status.value)
    return manager


def _ensure_owner_or_admin(prop: Property, user: dict) -> None:
    if str(user.get("role", "")).lower() == "admin":
        return
    if user.get("user_id") != prop.manager_cognito_id:
        raise NotPropertyOwner("Unauthorized to modify this property")
