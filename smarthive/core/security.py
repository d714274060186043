"""
Password hashing, session tokens and session cookies.

Tokens are stateless HS256 JWTs: they are trusted on signature and expiry
alone, there is no server-side revocation list.
"""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import jwt
from fastapi import Request, Response
from jwt import ExpiredSignatureError, PyJWTError
from passlib.hash import bcrypt
from pydantic import ValidationError as PydanticValidationError

from smarthive.core.config import Settings, get_settings
from smarthive.core.errors import Forbidden, InvalidToken, TokenExpired, Unauthorized
from smarthive.schemas.auth import TokenClaims

# Every cookie name a session token has ever been stored under
SESSION_COOKIE_NAMES = ("token", "admin-token", "user-token", "auth-token", "authToken")
DEFAULT_COOKIE = "token"


def get_password_hash(password: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return bcrypt.using(rounds=settings.bcrypt_rounds).hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    firstname: Optional[str] = None,
    lastname: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "id": user_id,
        "email": email,
        "role": role,
        "firstname": firstname,
        "lastname": lastname,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_exp_days),
    }
    if role == "admin":
        payload["admin_id"] = user_id
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> TokenClaims:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except ExpiredSignatureError:
        raise TokenExpired()
    except PyJWTError:
        raise InvalidToken()
    try:
        return TokenClaims(**payload)
    except PydanticValidationError:
        raise InvalidToken("Invalid token: missing user identifier")


def verify_token(
    token: Optional[str],
    required_role: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> TokenClaims:
    """Validate a presented token and, optionally, the role it carries."""
    if not token:
        raise Unauthorized()
    claims = decode_access_token(token, settings)
    if required_role is not None and claims.role != required_role:
        raise Forbidden("Access denied. Admin privileges required." if required_role == "admin" else None)
    return claims


def extract_token(request: Request) -> Optional[str]:
    # Authorization header takes precedence over cookies
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    for name in SESSION_COOKIE_NAMES:
        token = request.cookies.get(name)
        if token:
            return token
    return None


def _cookie_kwargs(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookies(
    response: Response,
    names: Iterable[str] = SESSION_COOKIE_NAMES,
    settings: Optional[Settings] = None,
) -> None:
    settings = settings or get_settings()
    for name in names:
        response.set_cookie(name, "", max_age=0, **_cookie_kwargs(settings))


def set_session_cookies(
    response: Response,
    token: str,
    role: str,
    settings: Optional[Settings] = None,
) -> None:
    """Overwrite any stale session cookie, then store the new token."""
    settings = settings or get_settings()
    names = [DEFAULT_COOKIE]
    if settings.legacy_session_cookies:
        names.insert(0, "admin-token" if role == "admin" else "user-token")
    clear_session_cookies(
        response,
        [name for name in SESSION_COOKIE_NAMES if name not in names],
        settings=settings,
    )
    max_age = settings.jwt_exp_days * 24 * 60 * 60
    for name in names:
        response.set_cookie(name, token, max_age=max_age, **_cookie_kwargs(settings))
