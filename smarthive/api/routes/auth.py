import logging
from typing import Optional

import jwt
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from smarthive.api.dependencies import get_db
from smarthive.core.errors import ValidationError
from smarthive.core.security import clear_session_cookies, extract_token, set_session_cookies
from smarthive.schemas.auth import LoginIn, SendCodeIn, VerifyCodeIn
from smarthive.schemas.purchase import RegistrationIn, RegistrationResult
from smarthive.services import auth as auth_service
from smarthive.services import registration as registration_service
from smarthive.services import verification as verification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login")
async def login(data: LoginIn, db: AsyncSession = Depends(get_db)):
    result = await auth_service.authenticate(db, data.email, data.password)
    response = JSONResponse(
        {
            "success": True,
            "message": "Login successful",
            **result.to_json(),
        }
    )
    set_session_cookies(response, result.token, result.user.role)
    return response


@router.api_route("/logout", methods=["POST", "GET", "DELETE"])
async def logout(request: Request):
    """Always succeeds and always clears every session cookie."""
    response = JSONResponse({"success": True, "message": "Logged out successfully"})
    try:
        token = extract_token(request)
        if token:
            # Decoded only to log who is leaving
            claims = jwt.decode(token, options={"verify_signature": False})
            logger.info(f"User logging out: {claims.get('sub', 'unknown')}")
        else:
            logger.info("Logout without an active session")
    except Exception as e:
        logger.info(f"Could not decode token for logging: {e}")
    finally:
        clear_session_cookies(response)
    return response


@router.post("/register-with-purchase")
async def register_with_purchase(
    data: RegistrationIn,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    user, purchase = await registration_service.register_with_purchase(db, data)
    background_tasks.add_task(registration_service.notify_registration, user, purchase)
    result = RegistrationResult(
        user_id=user.id,
        email=user.email,
        purchase_id=str(purchase.id),
        status=purchase.status,
    )
    return {
        "success": True,
        "message": "Registration successful. Your purchase is pending approval.",
        "data": result.to_json(),
    }


@router.get("/register-with-purchase")
async def check_email_available(email: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    if not email:
        raise ValidationError("Email parameter required")
    return {"success": True, "available": await registration_service.email_available(db, email)}


@router.post("/send-verification")
async def send_verification_code(data: SendCodeIn, db: AsyncSession = Depends(get_db)):
    await verification_service.send_code(db, data.email, data.firstname)
    return {"success": True, "message": "Verification code sent successfully"}


@router.put("/send-verification")
async def verify_email_code(data: VerifyCodeIn, db: AsyncSession = Depends(get_db)):
    await verification_service.verify_code(db, data.email, data.code)
    return {"success": True, "message": "Email verified successfully"}
