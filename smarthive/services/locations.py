import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.core.errors import NotFound, ValidationError
from smarthive.core.utils import utcnow
from smarthive.models import ApiaryLocation
from smarthive.schemas.location import LocationIn, LocationOut

logger = logging.getLogger(__name__)


def _to_out(location: ApiaryLocation) -> LocationOut:
    return LocationOut(
        container_id=location.container_id,
        lat=location.latitude,
        lon=location.longitude,
        address=location.address,
        updated_at=location.updated_at,
    )


async def list_locations(db: AsyncSession) -> Dict[str, LocationOut]:
    """All locations keyed by container id."""
    result = await db.execute(select(ApiaryLocation).order_by(ApiaryLocation.updated_at.desc()))
    return {loc.container_id: _to_out(loc) for loc in result.scalars().all()}


def validate_location(data: LocationIn) -> None:
    if not data.container_id or data.lat is None or data.lon is None:
        raise ValidationError("Missing required fields: containerId, lat, lon")
    if not -90 <= data.lat <= 90:
        raise ValidationError("Latitude must be between -90 and 90")
    if not -180 <= data.lon <= 180:
        raise ValidationError("Longitude must be between -180 and 180")


async def upsert_location(db: AsyncSession, data: LocationIn) -> LocationOut:
    validate_location(data)

    result = await db.execute(
        select(ApiaryLocation).where(ApiaryLocation.container_id == data.container_id)
    )
    location = result.scalar_one_or_none()
    if location is None:
        location = ApiaryLocation(container_id=data.container_id)
        db.add(location)
    location.latitude = data.lat
    location.longitude = data.lon
    location.address = data.address or None
    location.updated_at = utcnow()
    await db.commit()

    logger.info(f"Location saved for container {data.container_id}")
    return _to_out(location)


async def remove_location(db: AsyncSession, container_id: str) -> None:
    if not container_id:
        raise ValidationError("Container ID is required")
    result = await db.execute(
        select(ApiaryLocation).where(ApiaryLocation.container_id == container_id)
    )
    location = result.scalar_one_or_none()
    if location is None:
        raise NotFound("Location not found")
    await db.delete(location)
    await db.commit()
    logger.info(f"Location removed for container {container_id}")
