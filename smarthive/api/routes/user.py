from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.api.dependencies import get_current_claims, get_db
from smarthive.schemas.auth import TokenClaims
from smarthive.schemas.profile import ProfileOut, ProfilePurchase, ProfileUpdateIn
from smarthive.services import profile as profile_service

router = APIRouter(prefix="/api/user", tags=["User"])


@router.get("/profile")
async def get_profile(
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
):
    user, purchases = await profile_service.get_profile(db, claims)
    return {
        "success": True,
        "user": ProfileOut.model_validate(user).to_json(),
        "purchases": [ProfilePurchase.model_validate(p).to_json() for p in purchases],
    }


@router.put("/profile")
async def update_profile(
    data: ProfileUpdateIn,
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
):
    user = await profile_service.update_profile(db, claims, data)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "user": ProfileOut.model_validate(user).to_json(),
    }
