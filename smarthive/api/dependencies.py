import logging
from typing import AsyncIterator

import httpx
from fastapi import Request

from smarthive.core.config import get_settings
from smarthive.core.db import get_db  # noqa: F401
from smarthive.core.errors import InternalError
from smarthive.core.security import extract_token, verify_token
from smarthive.schemas.auth import TokenClaims
from smarthive.services.blob_storage import BlobStorage

logger = logging.getLogger(__name__)


async def get_current_claims(request: Request) -> TokenClaims:
    """Any signed-in caller."""
    return verify_token(extract_token(request))


async def require_admin(request: Request) -> TokenClaims:
    return verify_token(extract_token(request), required_role="admin")


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=httpx.Timeout(60.0)) as client:
        yield client


async def get_blob_storage() -> AsyncIterator[BlobStorage]:
    connection_string = get_settings().azure_storage_connection_string
    if not connection_string:
        raise InternalError("Azure Storage not configured. Please contact support.")
    try:
        storage = BlobStorage.from_connection_string(connection_string)
    except ValueError as e:
        logger.error(f"Invalid Azure Storage connection string: {e}")
        raise InternalError("Azure Storage not configured. Please contact support.")
    try:
        yield storage
    finally:
        await storage.close()
