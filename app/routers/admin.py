from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.database import get_session
from app.dependencies.auth import require_role
from app.dependencies.services import get_cache
from app.schemas.property import ManagerOut, ManagerStatusUpdate
from app.services import properties as property_service
from app.services.query_cache import QueryCache

logger = get_logger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])
admin_only = require_role("admin")


@router.post("/properties/{property_id}/disable", response_model=dict)
async def disable_property(
    property_id: int,
    user: dict = Depends(admin_only),
    db: AsyncSession = Depends(get_session),
    cache: QueryCache = Depends(get_cache),
):
    try:
        await property_service.disable_property(db, cache, property_id, user)
    except property_service.PropertyNotFound:
        raise HTTPException(status_code=404, detail="Property not found")
    return {"message": "Property disabled", "id": property_id}


@router.post("/properties/{property_id}/enable", response_model=dict, dependencies=[Depends(admin_only)])
async def enable_property(
    property_id: int,
    db: AsyncSession = Depends(get_session),
    cache: QueryCache = Depends(get_cache),
):
    try:
        await property_service.enable_property(db, cache, property_id)
    except property_service.PropertyNotFound:
        raise HTTPException(status_code=404, detail="Property not found")
    return {"message": "Property enabled", "id": property_id}


@router.delete("/properties/{property_id}", response_model=dict, dependencies=[Depends(admin_only)])
async def delete_property(
    property_id: int,
    db: AsyncSession = Depends(get_session),
    cache: QueryCache = Depends(get_cache),
):
    try:
        await property_service.hard_delete_property(db, cache, property_id)
    except property_service.PropertyNotFound:
        raise HTTPException(status_code=404, detail="Property not found")
    return {"message": "Property deleted", "id": property_id}


@router.patch("/managers/{cognito_id}/status", response_model=ManagerOut, dependencies=[Depends(admin_only)])
async def update_manager_status(
    cognito_id: str,
    payload: ManagerStatusUpdate,
    db: AsyncSession = Depends(get_session),
    cache: QueryCache = Depends(get_cache),
):
    try:
        manager = await property_service.update_manager_status(db, cache, cognito_id, payload.status, payload.notes)
    except property_service.InvalidManagerStatus as e:
        raise HTTPException(status_code=400, detail=str(e))
    except property_service.ManagerNotFound:
        raise HTTPException(status_code=404, detail="Manager not found")
    return ManagerOut.model_validate(manager)
