"""
Six-digit email verification codes, valid for 10 minutes.
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.core.errors import InternalError, TooManyRequests, ValidationError
from smarthive.core.utils import mask_email, utcnow
from smarthive.models import EmailVerification
from smarthive.services import email as email_service

logger = logging.getLogger(__name__)

CODE_TTL = timedelta(minutes=10)
MAX_CODES_PER_HOUR = 3
MAX_ATTEMPTS = 5


async def cleanup_expired_codes(db: AsyncSession) -> None:
    await db.execute(delete(EmailVerification).where(EmailVerification.expires_at < utcnow()))


async def create_verification_code(db: AsyncSession, email: str) -> str:
    """Issue a fresh code; earlier codes for the email are superseded."""
    recent = await db.scalar(
        select(func.count(EmailVerification.id)).where(
            EmailVerification.email == email,
            EmailVerification.created_at > utcnow() - timedelta(hours=1),
        )
    )
    if recent >= MAX_CODES_PER_HOUR:
        raise TooManyRequests("Too many verification attempts. Please try again later.")

    code = str(secrets.randbelow(900000) + 100000)
    db.add(EmailVerification(email=email, code=code, expires_at=utcnow() + CODE_TTL))
    await db.commit()
    return code


async def send_code(db: AsyncSession, email: str, firstname: Optional[str] = None) -> None:
    email = email.strip().lower()
    await cleanup_expired_codes(db)
    code = await create_verification_code(db, email)
    if not email_service.send_verification_email(email, code, firstname):
        raise InternalError("Failed to send verification email")
    logger.info(f"Verification code sent to {mask_email(email)}")


async def verify_code(db: AsyncSession, email: str, code: str) -> None:
    email = email.strip().lower()
    if not code:
        raise ValidationError("Email and code are required")

    result = await db.execute(
        select(EmailVerification)
        .where(EmailVerification.email == email, EmailVerification.verified.is_(False))
        .order_by(EmailVerification.created_at.desc(), EmailVerification.id.desc())
        .limit(1)
    )
    verification = result.scalar_one_or_none()
    if verification is None:
        raise ValidationError("Verification code not found or expired")

    if verification.expires_at < utcnow():
        await db.delete(verification)
        await db.commit()
        raise ValidationError("Verification code expired")

    verification.attempts += 1
    if verification.attempts > MAX_ATTEMPTS:
        await db.delete(verification)
        await db.commit()
        raise ValidationError("Too many failed attempts. Please request a new code.")

    if not secrets.compare_digest(verification.code.encode(), code.strip().encode()):
        await db.commit()
        raise ValidationError("Invalid verification code")

    verification.verified = True
    await db.execute(
        delete(EmailVerification).where(
            EmailVerification.email == email,
            EmailVerification.id != verification.id,
        )
    )
    await db.commit()
    logger.info(f"Email verified: {mask_email(email)}")
