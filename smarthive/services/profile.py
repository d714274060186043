from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.models import Purchase, User
from smarthive.schemas.auth import TokenClaims
from smarthive.schemas.profile import ProfileUpdateIn
from smarthive.services.access import resolve_user


async def get_profile(db: AsyncSession, claims: TokenClaims) -> Tuple[User, List[Purchase]]:
    user = await resolve_user(db, claims)
    result = await db.execute(
        select(Purchase)
        .where(Purchase.user_id == user.id)
        .order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
    )
    return user, list(result.scalars().all())


async def update_profile(db: AsyncSession, claims: TokenClaims, data: ProfileUpdateIn) -> User:
    """Only fields present in the request body are written."""
    user = await resolve_user(db, claims)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    return user
