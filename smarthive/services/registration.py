"""
Registration with purchase.

The user row and its pending purchase are written in a single transaction;
notification emails are sent afterwards and never affect the outcome.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.core.config import Settings
from smarthive.core.errors import EmailTaken, InternalError, ValidationError
from smarthive.core.security import get_password_hash
from smarthive.core.utils import is_valid_email, mask_email
from smarthive.models import Purchase, PurchaseStatus, User
from smarthive.schemas.purchase import RegistrationIn
from smarthive.services import email as email_service

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def email_available(db: AsyncSession, email: str) -> bool:
    return await get_user_by_email(db, email) is None


def validate_registration(data: RegistrationIn) -> None:
    if not (data.firstname and data.lastname and data.email and data.password):
        raise ValidationError("Missing required account fields")
    if not data.master_hives or data.master_hives < 1:
        raise ValidationError("At least 1 master hive is required")
    if not is_valid_email(data.email):
        raise ValidationError("Invalid email format")


def build_purchase(user: User, data: RegistrationIn) -> Purchase:
    return Purchase(
        user_id=user.id,
        master_hives=data.master_hives,
        normal_hives=data.normal_hives or 0,
        total_amount=float(data.total_amount or 0),
        full_name=data.full_name or f"{data.firstname} {data.lastname}",
        email=user.email,
        phone=data.phone or "",
        address=data.address or "",
        city=data.city or "",
        country=data.country or "",
        postal_code=data.postal_code or "",
        card_last_four=data.card_last_four[-4:] if data.card_last_four else None,
        payment_method="card",
        status=PurchaseStatus.pending.value,
        access_granted=False,
        assigned_containers=[],
    )


async def register_with_purchase(
    db: AsyncSession,
    data: RegistrationIn,
    settings: Optional[Settings] = None,
) -> Tuple[User, Purchase]:
    validate_registration(data)

    email = normalize_email(data.email)
    if await get_user_by_email(db, email):
        raise EmailTaken()

    password_hash = get_password_hash(data.password, settings)
    try:
        user = User(
            firstname=data.firstname,
            lastname=data.lastname,
            email=email,
            password_hash=password_hash,
            phone=data.phone or None,
            address=data.address or None,
            city=data.city or None,
            country=data.country or None,
            postal_code=data.postal_code or None,
            role="user",
        )
        db.add(user)
        await db.flush()

        purchase = build_purchase(user, data)
        db.add(purchase)
        await db.flush()
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        await db.rollback()
        raise EmailTaken()
    except Exception:
        await db.rollback()
        logger.exception(f"Registration failed for {mask_email(email)}")
        raise InternalError("Registration failed. Please try again.")

    logger.info(f"Registered user {user.id} with pending purchase {purchase.id}")
    return user, purchase


def notify_registration(user: User, purchase: Purchase) -> None:
    """Confirmation to the purchaser, notification to operators. Best effort."""
    try:
        email_service.send_purchase_confirmation_email(
            to_email=user.email,
            user_name=user.display_name,
            master_hives=purchase.master_hives,
            normal_hives=purchase.normal_hives,
            total_amount=purchase.total_amount,
            purchase_id=str(purchase.id),
            full_name=purchase.full_name,
            address=purchase.address,
            city=purchase.city,
            country=purchase.country,
            postal_code=purchase.postal_code,
        )
        email_service.send_admin_notification_email(
            user_name=user.display_name,
            user_email=user.email,
            master_hives=purchase.master_hives,
            normal_hives=purchase.normal_hives,
            total_amount=purchase.total_amount,
            purchase_id=str(purchase.id),
            purchase_date=purchase.purchase_date,
        )
        logger.info(f"Confirmation emails sent for purchase {purchase.id}")
    except Exception as e:
        logger.warning(f"Email sending failed, but registration succeeded (purchase {purchase.id}): {e}")
