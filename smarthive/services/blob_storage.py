"""
Azure Blob Storage access for hive sensor uploads.

Every hive writes its readings as CSV blobs into a container of its own;
the container name is what purchases list in ``assigned_containers``.
"""
import logging
import re
from contextlib import contextmanager
from typing import List

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    ResourceExistsError,
    ResourceNotFoundError,
    ServiceRequestError,
)
from azure.storage.blob.aio import BlobServiceClient

from smarthive.core.errors import (
    InternalError,
    NotFound,
    ServiceUnavailable,
    SmartHiveError,
    ValidationError,
)
from smarthive.schemas.sensor_data import BlobInfo, ContainerInfo

logger = logging.getLogger(__name__)

CONTAINER_NAME_RE = re.compile(r"^[a-z0-9](?!.*--)[a-z0-9-]{1,61}[a-z0-9]$")
MAX_BLOB_COUNT = 1000


@contextmanager
def azure_errors(fallback: str):
    """Translate SDK failures into API errors."""
    try:
        yield
    except SmartHiveError:
        raise
    except ServiceRequestError as e:
        logger.error(f"Azure Storage unreachable: {e}")
        raise ServiceUnavailable("Could not connect to Azure Storage. Please check configuration.") from e
    except ClientAuthenticationError as e:
        logger.error(f"Azure Storage rejected credentials: {e}")
        raise InternalError("Azure Storage authentication failed. Please check credentials.") from e
    except AzureError as e:
        logger.error(f"{fallback}: {e}")
        raise InternalError(fallback) from e


class BlobStorage:
    def __init__(self, client: BlobServiceClient):
        self.client = client

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "BlobStorage":
        return cls(BlobServiceClient.from_connection_string(connection_string))

    async def close(self) -> None:
        await self.client.close()

    async def list_containers(self, max_blob_count: int = MAX_BLOB_COUNT) -> List[ContainerInfo]:
        """All containers, each with a blob count capped at ``max_blob_count``."""
        containers = []
        async for props in self.client.list_containers():
            blob_count = 0
            async for _ in self.client.get_container_client(props.name).list_blobs():
                blob_count += 1
                if blob_count >= max_blob_count:
                    break
            containers.append(
                ContainerInfo(name=props.name, last_modified=props.last_modified, blob_count=blob_count)
            )
        return containers

    async def create_container(self, name: str) -> bool:
        """Create ``name``; False when it already exists."""
        if not CONTAINER_NAME_RE.match(name):
            raise ValidationError(
                "Invalid container name. Must be 3-63 characters, lowercase letters, "
                "numbers, and hyphens only."
            )
        try:
            await self.client.create_container(name)
        except ResourceExistsError:
            logger.info(f"Container {name} already exists")
            return False
        logger.info(f"Created container {name}")
        return True

    async def list_blobs(self, container_id: str) -> List[BlobInfo]:
        """Blobs in a container, newest first."""
        container = self.client.get_container_client(container_id)
        blobs = []
        try:
            async for props in container.list_blobs():
                content_settings = getattr(props, "content_settings", None)
                blobs.append(
                    BlobInfo(
                        name=props.name,
                        last_modified=props.last_modified,
                        size=props.size,
                        content_type=getattr(content_settings, "content_type", None),
                        etag=props.etag,
                        container_id=container_id,
                    )
                )
        except ResourceNotFoundError:
            raise NotFound(f"Container not found: {container_id}")

        blobs.sort(key=lambda b: b.last_modified.timestamp() if b.last_modified else 0, reverse=True)
        return blobs

    async def download_text(self, container_id: str, blob_name: str) -> str:
        container = self.client.get_container_client(container_id)
        try:
            downloader = await container.download_blob(blob_name)
            data = await downloader.readall()
        except ResourceNotFoundError:
            raise NotFound(f"Blob {blob_name} not found in container {container_id}")
        return data.decode("utf-8")
