from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.config import settings
from app.database import get_session
from app.dependencies.auth import require_role
from app.dependencies.rate_limit import write_rate_limit
from app.dependencies.services import get_cache, get_geocoder
from app.schemas.property import PropertyCreate, PropertyOut, PropertyUpdate
from app.schemas.property_search import PropertySearchFilter
from app.services import properties as property_service
from app.services.geocoding import GeocodingClient, GeocodingError, GeocodingUnavailable
from app.services.property_search import search_properties
from app.services.query_cache import QueryCache

logger = get_logger(__name__)
router = APIRouter(prefix="/api/properties", tags=["properties"])


def _cache_headers(ttl: int, cached: bool | None = None) -> dict:
    headers = {"Cache-Control": f"public, max-age={ttl}, s-maxage={ttl}, stale-while-revalidate={ttl * 2}"}
    if cached is not None:
        headers["X-Cache"] = "HIT" if cached else "MISS"
    return headers


@router.get("", response_model=list[PropertyOut])
async def list_properties(request: Request, db: AsyncSession = Depends(get_session), cache: QueryCache = Depends(get_cache)):
    filters = PropertySearchFilter.model_validate(dict(request.query_params))
    try:
        result = await search_properties(db, cache, filters)
    except Exception as e:
        logger.error("Property search failed", error=str(e), params=dict(request.query_params))
        raise HTTPException(status_code=500, detail=f"Error retrieving properties: {e}")
    return JSONResponse(content=result.listings, headers=_cache_headers(result.ttl, result.cached))


@router.get("/{property_id}", response_model=PropertyOut)
async def get_property(property_id: int, db: AsyncSession = Depends(get_session), cache: QueryCache = Depends(get_cache)):
    try:
        listing = await property_service.get_property(db, cache, property_id)
    except property_service.PropertyNotFound:
        raise HTTPException(status_code=404, detail="Property not found")
    except Exception as e:
        logger.error("Property lookup failed", property_id=property_id, error=str(e))
        raise HTTPException(status_code=500, detail=f"Error retrieving property: {e}")
    return JSONResponse(content=listing, headers=_cache_headers(settings.PROPERTY_DETAIL_TTL))


@router.post("", response_model=PropertyOut, status_code=201, dependencies=[Depends(write_rate_limit)])
async def create_property(
    payload: PropertyCreate,
    user: dict = Depends(require_role("manager", "admin")),
    db: AsyncSession = Depends(get_session),
    cache: QueryCache = Depends(get_cache),
    geocoder: GeocodingClient = Depends(get_geocoder),
):
    if str(user.get("role", "")).lower() != "admin" and user.get("user_id") != payload.manager_cognito_id:
        raise HTTPException(status_code=403, detail="Managers can only create their own properties")
    try:
        listing = await property_service.create_property(db, cache, geocoder, payload)
    except property_service.ManagerNotFound:
        raise HTTPException(status_code=404, detail="Manager account not found")
    except property_service.ManagerInactive as e:
        raise HTTPException(status_code=403, detail=str(e))
    except GeocodingUnavailable as e:
        raise HTTPException(status_code=502, detail=f"Error creating location: {e.message}")
    except GeocodingError as e:
        raise HTTPException(status_code=422, detail=f"Error creating location: {e.message}")
    return JSONResponse(content=listing, status_code=201)


@router.put("/{property_id}", response_model=PropertyOut, dependencies=[Depends(write_rate_limit)])
async def update_property(
    property_id: int,
    payload: PropertyUpdate,
    user: dict = Depends(require_role("manager", "admin")),
    db: AsyncSession = Depends(get_session),
    cache: QueryCache = Depends(get_cache),
):
    try:
        listing = await property_service.update_property(db, cache, property_id, payload, user)
    except property_service.PropertyNotFound:
        raise HTTPException(status_code=404, detail="Property not found")
    except property_service.NotPropertyOwner as e:
        raise HTTPException(status_code=403, detail=str(e))
    return JSONResponse(content=listing)


@router.delete("/{property_id}", response_model=dict, dependencies=[Depends(write_rate_limit)])
async def delete_property(
    property_id: int,
    user: dict = Depends(require_role("manager", "admin")),
    db: AsyncSession = Depends(get_session),
    cache: QueryCache = Depends(get_cache),
):
    # Managers never hard-delete: the listing is hidden and its data kept.
    try:
        await property_service.disable_property(db, cache, property_id, user)
    except property_service.PropertyNotFound:
        raise HTTPException(status_code=404, detail="Property not found")
    except property_service.NotPropertyOwner as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"message": "Property disabled successfully", "id": property_id}
