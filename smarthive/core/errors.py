"""
Error taxonomy and the handlers that render it as a JSON envelope.

Services raise these; the app turns each into
``{"success": false, "error": <message>}`` with the class's status code.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from smarthive.core.config import get_settings

logger = logging.getLogger(__name__)


class SmartHiveError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(SmartHiveError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input"


class Unauthorized(SmartHiveError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized - No token provided"


class InvalidToken(Unauthorized):
    message = "Invalid token"


class TokenExpired(Unauthorized):
    message = "Token has expired"


class InvalidCredentials(Unauthorized):
    message = "Invalid email or password"


class Forbidden(SmartHiveError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class NotFound(SmartHiveError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class Conflict(SmartHiveError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict"


class EmailTaken(Conflict):
    message = "Email already registered"


class AlreadyGranted(Conflict):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Access already granted for this purchase"


class TooManyRequests(SmartHiveError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."


class ServiceUnavailable(SmartHiveError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Service unavailable"


class UpstreamError(SmartHiveError):
    """Third-party failure; the upstream status is passed through."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, upstream_status: int, message: Optional[str] = None):
        super().__init__(message or f"API error: {upstream_status}", status_code=upstream_status)
        self.upstream_status = upstream_status


class InternalError(SmartHiveError):
    pass


def envelope(message: str, **extra: Any) -> Dict[str, Any]:
    return {"success": False, "error": message, **extra}


async def smarthive_error_handler(request: Request, exc: SmartHiveError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=envelope(exc.message))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = f"Invalid {field}: {first.get('msg')}" if field else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=envelope(message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    extra = {"details": str(exc)} if get_settings().is_development else {}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope("Internal server error", **extra),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SmartHiveError, smarthive_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
