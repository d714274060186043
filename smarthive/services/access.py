import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.core.errors import Forbidden, NotFound
from smarthive.models import Purchase, User
from smarthive.schemas.auth import TokenClaims
from smarthive.schemas.purchase import (
    AccessStatus,
    ActivePurchase,
    GrantedPurchase,
    PendingPurchase,
)

logger = logging.getLogger(__name__)


async def resolve_user(db: AsyncSession, claims: TokenClaims) -> User:
    """Look the subject up by id, falling back to the claimed email."""
    user: Optional[User] = None
    if claims.user_id is not None:
        user = await db.get(User, claims.user_id)
    if user is None and claims.email:
        result = await db.execute(select(User).where(User.email == claims.email.lower()))
        user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user


async def _latest_purchase(db: AsyncSession, user_id: int, granted_only: bool) -> Optional[Purchase]:
    query = select(Purchase).where(Purchase.user_id == user_id)
    if granted_only:
        query = query.where(Purchase.access_granted.is_(True))
    query = query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc()).limit(1)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def resolve_access(db: AsyncSession, claims: TokenClaims) -> AccessStatus:
    user = await resolve_user(db, claims)

    any_purchase = await _latest_purchase(db, user.id, granted_only=False)
    if any_purchase is None:
        return AccessStatus(
            has_purchased=False,
            has_access=False,
            message="No Smart Hive purchase found. Please purchase a plan first.",
        )

    active = await _latest_purchase(db, user.id, granted_only=True)
    if active is None:
        logger.info(f"User {user.id} has purchase {any_purchase.id} pending approval")
        return AccessStatus(
            has_purchased=True,
            has_access=False,
            message="Purchase pending admin approval. Please wait for admin to grant access.",
            pending_purchase=PendingPurchase.model_validate(any_purchase),
        )

    containers = list(active.assigned_containers or [])
    if not containers:
        return AccessStatus(
            has_purchased=True,
            has_access=True,
            message="Access granted but no containers assigned yet. Please contact admin.",
            purchase=GrantedPurchase(
                id=active.id,
                master_hives=active.master_hives,
                normal_hives=active.normal_hives,
                purchase_date=active.purchase_date,
                access_granted_at=active.access_granted_at,
                assigned_containers=[],
            ),
        )

    return AccessStatus(
        has_purchased=True,
        has_access=True,
        message=f"Access granted to {len(containers)} container(s)",
        purchase=ActivePurchase.model_validate(active),
    )


async def ensure_container_access(db: AsyncSession, claims: TokenClaims, container_id: str) -> None:
    """Admins read any container; users only those assigned to their active purchase."""
    if claims.is_admin:
        return

    user = await resolve_user(db, claims)
    active = await _latest_purchase(db, user.id, granted_only=True)
    if active is None or container_id not in (active.assigned_containers or []):
        logger.warning(f"User {user.id} denied access to container {container_id}")
        raise Forbidden("Access denied to this container")
