"""
Outbound email through Resend.

All senders are synchronous so they can run from FastAPI BackgroundTasks
(which moves them to the threadpool).
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import resend

from smarthive.core.config import Settings, get_settings
from smarthive.core.utils import mask_email

logger = logging.getLogger(__name__)


class EmailNotConfigured(RuntimeError):
    pass


_LAYOUT = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="text-align: center; padding: 30px; background: #059669; border-radius: 8px 8px 0 0;">
        <h1 style="color: #ffffff; margin: 0;">SmartHive</h1>
        <p style="color: #ffffff; margin: 5px 0;">{title}</p>
    </div>
    <div style="background: #f9fafb; padding: 30px; border-radius: 0 0 8px 8px;">
        {body}
    </div>
    <div style="text-align: center; color: #9ca3af; font-size: 12px; margin-top: 30px;">
        <p>This is an automated message. Please do not reply to this email.</p>
    </div>
</div>
"""


def _send(params: Dict[str, Any], settings: Optional[Settings] = None) -> Any:
    settings = settings or get_settings()
    if not settings.resend_api_key:
        raise EmailNotConfigured("RESEND_API_KEY is not set")
    resend.api_key = settings.resend_api_key
    response = resend.Emails.send(params)
    logger.info(f"Email '{params['subject']}' sent to {', '.join(mask_email(t) for t in params['to'])}")
    return response


def send_purchase_confirmation_email(
    to_email: str,
    user_name: str,
    master_hives: int,
    normal_hives: int,
    total_amount: float,
    purchase_id: str,
    full_name: str,
    address: str,
    city: str,
    country: str,
    postal_code: str,
    settings: Optional[Settings] = None,
) -> Any:
    settings = settings or get_settings()
    body = f"""
        <h2 style="color: #111827;">Thank you, {user_name or full_name}!</h2>
        <p style="color: #4b5563;">We received your order. It is now pending approval by our team;
        you will be able to access your Smart Hive dashboard once it is approved.</p>
        <table style="width: 100%; margin: 20px 0;">
            <tr><td><strong>Order ID</strong></td><td>#{purchase_id}</td></tr>
            <tr><td><strong>Master hives</strong></td><td>{master_hives}</td></tr>
            <tr><td><strong>Normal hives</strong></td><td>{normal_hives}</td></tr>
            <tr><td><strong>Total</strong></td><td>{total_amount:.2f}</td></tr>
        </table>
        <p style="color: #6b7280; font-size: 14px;">
            Shipping to: {full_name}, {address}, {postal_code} {city}, {country}
        </p>
    """
    return _send(
        {
            "from": settings.email_from,
            "to": [to_email],
            "subject": "SmartHive Purchase Confirmation - Pending Approval",
            "html": _LAYOUT.format(title="Purchase Confirmation", body=body),
        },
        settings,
    )


def send_admin_notification_email(
    user_name: str,
    user_email: str,
    master_hives: int,
    normal_hives: int,
    total_amount: float,
    purchase_id: str,
    purchase_date: datetime,
    settings: Optional[Settings] = None,
) -> Any:
    settings = settings or get_settings()
    if not settings.admin_email:
        raise EmailNotConfigured("ADMIN_EMAIL is not set")
    body = f"""
        <h2 style="color: #111827;">New purchase request</h2>
        <p style="color: #4b5563;">A new customer registered and is waiting for access approval.</p>
        <table style="width: 100%; margin: 20px 0;">
            <tr><td><strong>Customer</strong></td><td>{user_name} &lt;{user_email}&gt;</td></tr>
            <tr><td><strong>Order ID</strong></td><td>#{purchase_id}</td></tr>
            <tr><td><strong>Master hives</strong></td><td>{master_hives}</td></tr>
            <tr><td><strong>Normal hives</strong></td><td>{normal_hives}</td></tr>
            <tr><td><strong>Total</strong></td><td>{total_amount:.2f}</td></tr>
            <tr><td><strong>Date</strong></td><td>{purchase_date:%Y-%m-%d %H:%M} UTC</td></tr>
        </table>
    """
    return _send(
        {
            "from": settings.email_from,
            "to": [settings.admin_email],
            "subject": "New SmartHive Purchase Request - Action Required",
            "html": _LAYOUT.format(title="Admin Notification", body=body),
        },
        settings,
    )


def send_verification_email(email: str, code: str, firstname: Optional[str] = None) -> bool:
    """Send a verification code. Returns False instead of raising."""
    settings = get_settings()
    greeting = f"Hello {firstname}!" if firstname else "Hello!"
    body = f"""
        <h2 style="color: #111827;">{greeting}</h2>
        <p style="color: #4b5563;">Please use the verification code below to confirm your email address:</p>
        <div style="text-align: center; margin: 30px 0;">
            <div style="background: #059669; color: white; display: inline-block; padding: 15px 30px;
                        border-radius: 8px; font-size: 32px; font-weight: bold; letter-spacing: 6px;">
                {code}
            </div>
        </div>
        <p style="color: #6b7280; font-size: 14px;">
            This code will expire in 10 minutes. If you didn't request this verification, please ignore this email.
        </p>
    """
    try:
        _send(
            {
                "from": settings.email_from,
                "to": [email],
                "subject": "Your SmartHive Verification Code",
                "html": _LAYOUT.format(title="Email Verification", body=body),
            },
            settings,
        )
        return True
    except Exception as e:
        logger.error(f"Failed to send verification email to {mask_email(email)}: {e}")
        return False
