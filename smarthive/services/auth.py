import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.core.config import Settings
from smarthive.core.errors import InvalidCredentials, ValidationError
from smarthive.core.security import create_access_token, verify_password
from smarthive.core.utils import is_valid_email, mask_email
from smarthive.models import Purchase, PurchaseStatus
from smarthive.schemas.auth import LoginResult, LoginUser
from smarthive.services.registration import get_user_by_email

logger = logging.getLogger(__name__)


async def has_approved_purchase(db: AsyncSession, user_id: int) -> bool:
    result = await db.execute(
        select(Purchase.id)
        .where(
            Purchase.user_id == user_id,
            Purchase.status == PurchaseStatus.approved.value,
            Purchase.access_granted.is_(True),
        )
        .limit(1)
    )
    return result.first() is not None


async def authenticate(
    db: AsyncSession,
    email: Optional[str],
    password: Optional[str],
    settings: Optional[Settings] = None,
) -> LoginResult:
    if not email or not password:
        raise ValidationError("Email and password are required")
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")

    user = await get_user_by_email(db, email)
    # Same error either way, so callers cannot discover which accounts exist
    if user is None or not verify_password(password, user.password_hash):
        logger.info(f"Failed login for {mask_email(email)}")
        raise InvalidCredentials()

    approved = user.is_admin or await has_approved_purchase(db, user.id)
    token = create_access_token(
        user.id,
        user.email,
        user.role,
        firstname=user.firstname,
        lastname=user.lastname,
        settings=settings,
    )
    logger.info(f"User logged in: {user.id} ({user.role})")
    return LoginResult(
        token=token,
        user=LoginUser(
            id=user.id,
            firstname=user.firstname,
            lastname=user.lastname,
            email=user.email,
            role=user.role,
            has_approved_purchase=approved,
            phone=user.phone,
            address=user.address,
            city=user.city,
            country=user.country,
        ),
    )
