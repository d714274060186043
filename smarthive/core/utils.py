"""
Shared utility functions
"""
import logging
import re
from datetime import datetime, timezone

# Configure logger
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

logger = logging.getLogger('smarthive')

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.search(email) is not None


def mask_email(email: str) -> str:
    """a***@example.com, for log lines."""
    if not email or "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    return f"{local[:1]}***@{domain}"
