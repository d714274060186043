from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.api.dependencies import get_blob_storage, get_current_claims, get_db, require_admin
from smarthive.core.errors import ValidationError
from smarthive.schemas.auth import TokenClaims
from smarthive.schemas.sensor_data import ContainerIn
from smarthive.services import access as access_service
from smarthive.services import readings as readings_service
from smarthive.services.blob_storage import BlobStorage, azure_errors

router = APIRouter(prefix="/api/smart-hive", tags=["Sensor Data"])


@router.get("/containers", dependencies=[Depends(require_admin)])
async def list_containers(storage: BlobStorage = Depends(get_blob_storage)):
    with azure_errors("Failed to fetch containers. Please try again."):
        containers = await storage.list_containers()
    return {
        "success": True,
        "data": [c.to_json() for c in containers],
        "total": len(containers),
    }


@router.post("/containers", dependencies=[Depends(require_admin)])
async def create_container(data: ContainerIn, storage: BlobStorage = Depends(get_blob_storage)):
    name = (data.container_name or "").strip()
    if not name:
        raise ValidationError("Container name is required")

    with azure_errors("Failed to create container. Please try again."):
        created = await storage.create_container(name)

    return JSONResponse(
        status_code=201 if created else 200,
        content={
            "success": True,
            "message": "Container created successfully" if created else "Container already exists",
            "data": {"name": name, "created": created},
        },
    )


@router.get("/data/latest")
async def latest_data(
    containerId: Optional[str] = None,
    count: int = Query(1, ge=1, le=100),
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
):
    container_id = readings_service.require_container(containerId)
    await access_service.ensure_container_access(db, claims, container_id)
    return await readings_service.latest_readings(storage, container_id, count)


@router.get("/data/historical")
async def historical_data(
    containerId: Optional[str] = None,
    limit: int = Query(24, ge=1, le=500),
    dateFrom: Optional[datetime] = None,
    dateTo: Optional[datetime] = None,
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
):
    container_id = readings_service.require_container(containerId)
    await access_service.ensure_container_access(db, claims, container_id)
    return await readings_service.historical_readings(storage, container_id, limit, dateFrom, dateTo)
