from datetime import datetime
from typing import Optional

from smarthive.schemas.base import CamelModel


class LocationIn(CamelModel):
    container_id: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    address: Optional[str] = None


class LocationOut(CamelModel):
    container_id: str
    lat: float
    lon: float
    address: Optional[str] = None
    updated_at: Optional[datetime] = None
