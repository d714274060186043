from .user import User
from .purchase import Purchase, PurchaseStatus
from .location import ApiaryLocation
from .verification import EmailVerification

__all__ = ["User", "Purchase", "PurchaseStatus", "ApiaryLocation", "EmailVerification"]
