from datetime import datetime
from typing import Optional

from smarthive.schemas.base import CamelModel


class ContainerInfo(CamelModel):
    name: str
    last_modified: Optional[datetime] = None
    blob_count: int = 0


class ContainerIn(CamelModel):
    container_name: Optional[str] = None


class BlobInfo(CamelModel):
    name: str
    last_modified: Optional[datetime] = None
    size: Optional[int] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None
    container_id: str
