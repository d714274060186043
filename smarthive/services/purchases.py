"""
Admin purchase approval.

    pending (access_granted=False) --grant--> approved (access_granted=True)

Container assignment is independent of the grant.
"""
import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from smarthive.core.errors import AlreadyGranted, NotFound, ValidationError
from smarthive.core.utils import utcnow
from smarthive.models import Purchase, PurchaseStatus

logger = logging.getLogger(__name__)


async def list_purchases(db: AsyncSession) -> List[Purchase]:
    result = await db.execute(
        select(Purchase)
        .options(selectinload(Purchase.user))
        .order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
    )
    return list(result.scalars().all())


async def get_purchase(db: AsyncSession, purchase_id: int, for_update: bool = False) -> Purchase:
    query = select(Purchase).options(selectinload(Purchase.user)).where(Purchase.id == purchase_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    purchase = result.scalar_one_or_none()
    if purchase is None:
        logger.info(f"Purchase not found: {purchase_id}")
        raise NotFound("Purchase not found")
    return purchase


async def grant_access(db: AsyncSession, purchase_id: int) -> Purchase:
    purchase = await get_purchase(db, purchase_id, for_update=True)
    if purchase.access_granted:
        logger.info(f"Access already granted for purchase {purchase_id}")
        raise AlreadyGranted()

    now = utcnow()
    purchase.status = PurchaseStatus.approved.value
    purchase.access_granted = True
    purchase.access_granted_at = now
    purchase.approved_at = now
    await db.commit()

    logger.info(f"Access granted for purchase {purchase_id} (user {purchase.user_id})")
    return purchase


def validate_containers(containers: Any) -> List[str]:
    if not isinstance(containers, list) or not all(isinstance(c, str) for c in containers):
        raise ValidationError("Containers must be an array")
    return containers


async def assign_containers(
    db: AsyncSession,
    purchase_id: int,
    containers: Any,
    admin_notes: Optional[str] = None,
) -> Purchase:
    containers = validate_containers(containers)
    purchase = await get_purchase(db, purchase_id)

    # Replaced wholesale, never merged
    purchase.assigned_containers = list(containers)
    purchase.admin_notes = admin_notes or None
    purchase.updated_at = utcnow()
    await db.commit()

    logger.info(f"Assigned {len(containers)} container(s) to purchase {purchase_id}")
    return purchase


async def get_containers(db: AsyncSession, purchase_id: int) -> Purchase:
    return await get_purchase(db, purchase_id)
