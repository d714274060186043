from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.api.dependencies import get_current_claims, get_db
from smarthive.schemas.auth import TokenClaims
from smarthive.schemas.location import LocationIn
from smarthive.services import access as access_service
from smarthive.services import locations as location_service

router = APIRouter(prefix="/api/smart-hive", tags=["Smart Hive"])


@router.get("/check-access")
async def check_access(
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
):
    status = await access_service.resolve_access(db, claims)
    # Only the tier-specific purchase field is present in the body
    return {"success": True, **status.to_json(exclude_unset=True)}


@router.get("/apiary-locations")
async def list_locations(db: AsyncSession = Depends(get_db)):
    locations = await location_service.list_locations(db)
    return {
        "success": True,
        "data": {container_id: loc.to_json() for container_id, loc in locations.items()},
    }


@router.post("/apiary-locations")
async def save_location(data: LocationIn, db: AsyncSession = Depends(get_db)):
    location = await location_service.upsert_location(db, data)
    return {
        "success": True,
        "message": "Location saved successfully",
        "data": location.to_json(exclude={"updated_at"}),
    }


@router.delete("/apiary-locations")
async def delete_location(containerId: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    await location_service.remove_location(db, containerId)
    return {"success": True, "message": "Location deleted successfully"}
