import asyncio
import math
from typing import Any, Dict, List, NamedTuple

from asyncpg.exceptions import QueryCanceledError
from geoalchemy2 import Geometry
from sqlalchemy import Select, cast, exc as sa_exc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

from app.config import Settings, settings as default_settings
from app.models import DisabledProperty, Location, Manager, Property, PropertyType, Room
from app.schemas.property import PropertyOut
from app.schemas.property_search import PropertySearchFilter
from app.services.predicates import (
    AtLeast,
    AtMost,
    ContainsAll,
    Equals,
    IdIn,
    LeaseStartedBy,
    LocationText,
    ManagerIsActive,
    NeverMatches,
    NotDisabled,
    Predicate,
    TextSearch,
    WithinRadius,
    all_of,
)
from app.services.query_cache import QueryCache, make_cache_key

logger = get_logger(__name__)

CACHE_ENDPOINT = "properties"
QUERY_CANCELED_SQLSTATE = "57014"


class SearchResult(NamedTuple):
    listings: List[Dict[str, Any]]
    ttl: int
    cached: bool


def build_predicates(filters: PropertySearchFilter, settings: Settings = default_settings) -> List[Predicate]:
    """Translate a filter into the ordered list of predicates it implies.

    The radius predicate, when present, always comes first. The text location
    predicate is only added when there is no usable point; the name search is
    added regardless.
    """
    predicates: List[Predicate] = []
    # Integer columns get whole-number bounds: beds >= 1.5 is beds >= 2.
    if filters.favorite_ids:
        predicates.append(IdIn(filters.favorite_ids))
    if filters.price_min is not None:
        predicates.append(AtLeast(Property.price_per_month, filters.price_min))
    if filters.price_max is not None:
        predicates.append(AtMost(Property.price_per_month, filters.price_max))
    if filters.beds is not None:
        predicates.append(AtLeast(Property.beds, math.ceil(filters.beds)))
    if filters.baths is not None:
        predicates.append(AtLeast(Property.baths, filters.baths))
    if filters.square_feet_min is not None:
        predicates.append(AtLeast(Property.square_feet, math.ceil(filters.square_feet_min)))
    if filters.square_feet_max is not None:
        predicates.append(AtMost(Property.square_feet, math.floor(filters.square_feet_max)))
    if filters.property_name:
        predicates.append(TextSearch(filters.property_name))
    if filters.property_type:
        try:
            predicates.append(Equals(Property.property_type, PropertyType(filters.property_type)))
        except ValueError:
            predicates.append(NeverMatches())
    if filters.amenities:
        predicates.append(ContainsAll(Property.amenities, filters.amenities))
    if filters.available_from is not None:
        predicates.append(LeaseStartedBy(filters.available_from))

    if filters.has_valid_coordinates:
        predicates.insert(
            0,
            WithinRadius(filters.longitude, filters.latitude, settings.SEARCH_RADIUS_METERS),
        )
    elif filters.location_term:
        predicates.append(LocationText(filters.location_term))

    return predicates


def listing_query() -> Select:
    """Listing columns with the location flattened in, joined to the manager
    and (outer) to the disabled marker. Callers add their own WHERE."""
    min_room_price = (
        select(func.min(Room.price_per_month))
        .where(Room.property_id == Property.id, Room.is_available.is_(True))
        .correlate(Property)
        .scalar_subquery()
        .label("min_room_price")
    )
    available_rooms = (
        select(func.count(Room.id))
        .where(Room.property_id == Property.id, Room.is_available.is_(True))
        .correlate(Property)
        .scalar_subquery()
        .label("available_rooms")
    )
    point = cast(Location.coordinates, Geometry(geometry_type="POINT", srid=4326))

    return (
        select(
            *Property.__table__.columns,
            min_room_price,
            available_rooms,
            Location.address.label("location_address"),
            Location.city.label("location_city"),
            Location.suburb.label("location_suburb"),
            Location.state.label("location_state"),
            Location.country.label("location_country"),
            Location.postal_code.label("location_postal_code"),
            func.ST_X(point).label("location_longitude"),
            func.ST_Y(point).label("location_latitude"),
        )
        .select_from(Property)
        .join(Location, Property.location_id == Location.id)
        .join(Manager, Property.manager_cognito_id == Manager.cognito_id)
        .outerjoin(DisabledProperty, DisabledProperty.property_id == Property.id)
    )


def build_search_statement(
    filters: PropertySearchFilter,
    limit: int,
    settings: Settings = default_settings,
) -> Select:
    predicates = build_predicates(filters, settings)
    logger.debug("Search predicates built", predicates=[type(p).__name__ for p in predicates], limit=limit)
    where = all_of([ManagerIsActive(), *predicates, NotDisabled()])
    return listing_query().where(where).order_by(Property.id.desc()).limit(limit)


def row_to_listing(row) -> Dict[str, Any]:
    """Shape one result row as the JSON listing object, location nested."""
    row = dict(row)
    coordinates = None
    if row.get("location_longitude") is not None and row.get("location_latitude") is not None:
        coordinates = {
            "longitude": row["location_longitude"],
            "latitude": row["location_latitude"],
        }
    row["location"] = {
        "id": row["location_id"],
        "address": row["location_address"],
        "city": row["location_city"],
        "suburb": row["location_suburb"],
        "state": row["location_state"],
        "country": row["location_country"],
        "postal_code": row["location_postal_code"],
        "coordinates": coordinates,
    }
    return PropertyOut.model_validate(row).model_dump(mode="json", by_alias=True)


def is_timeout_error(exc: BaseException) -> bool:
    """Pool checkout timeouts and statement_timeout cancellations."""
    if isinstance(exc, (sa_exc.TimeoutError, asyncio.TimeoutError, QueryCanceledError)):
        return True
    if isinstance(exc, sa_exc.DBAPIError):
        orig = exc.orig
        if getattr(orig, "sqlstate", None) == QUERY_CANCELED_SQLSTATE:
            return True
        if getattr(orig, "pgcode", None) == QUERY_CANCELED_SQLSTATE:
            return True
        return isinstance(getattr(orig, "__cause__", None), (QueryCanceledError, asyncio.TimeoutError))
    return False


def _log_degraded_retry(retry_state) -> None:
    logger.warning(
        "Property search timed out, retrying with reduced limit",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


async def fetch_listings(
    db: AsyncSession,
    filters: PropertySearchFilter,
    settings: Settings = default_settings,
) -> List[Dict[str, Any]]:
    """Run the search. A timeout with a large limit is retried exactly once
    with the smaller fallback limit; every other error propagates."""
    limits = [filters.limit]
    if filters.limit > settings.SEARCH_TIMEOUT_RETRY_LIMIT:
        limits.append(settings.SEARCH_TIMEOUT_RETRY_LIMIT)

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(len(limits)),
        retry=retry_if_exception(is_timeout_error),
        before_sleep=_log_degraded_retry,
        reraise=True,
    ):
        with attempt:
            limit = limits[attempt.retry_state.attempt_number - 1]
            stmt = build_search_statement(filters, limit, settings)
            try:
                result = await db.execute(stmt)
            except Exception:
                await db.rollback()
                raise
            return [row_to_listing(row) for row in result.mappings().all()]


def cache_ttl_for(filters: PropertySearchFilter, settings: Settings = default_settings) -> int:
    # Narrow searches change as listings move; "browse all" pages can live longer.
    return settings.SEARCH_TTL_FILTERED if filters.is_narrow else settings.SEARCH_TTL_BROWSE


async def search_properties(
    db: AsyncSession,
    cache: QueryCache,
    filters: PropertySearchFilter,
    settings: Settings = default_settings,
) -> SearchResult:
    ttl = cache_ttl_for(filters, settings)
    cache_key = make_cache_key(CACHE_ENDPOINT, filters.cache_params())

    cached = await cache.get(cache_key)
    if cached is not None:
        logger.info("Property search cache hit", results=len(cached))
        return SearchResult(cached, ttl, True)

    listings = await fetch_listings(db, filters, settings)
    logger.info(
        "Property search executed",
        results=len(listings),
        limit=filters.limit,
        radius=filters.has_valid_coordinates,
        location=filters.location_term or None,
        property_name=filters.property_name,
        ttl=ttl,
    )
    await cache.set(cache_key, listings, ttl)
    return SearchResult(listings, ttl, False)
