from datetime import datetime
from typing import Any, List, Optional

from pydantic import SerializeAsAny, field_validator

from smarthive.schemas.base import CamelModel


class RegistrationIn(CamelModel):
    # Account data
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None

    # Purchase data
    master_hives: Optional[int] = None
    normal_hives: Optional[int] = 0
    total_amount: Optional[float] = 0
    full_name: Optional[str] = None
    card_last_four: Optional[str] = None


class RegistrationResult(CamelModel):
    user_id: int
    email: str
    purchase_id: str
    status: str


class ContainerAssignmentIn(CamelModel):
    containers: Any = None
    admin_notes: Optional[str] = None


class ContainerAssignmentOut(CamelModel):
    purchase_id: int
    assigned_containers: List[str]
    admin_notes: Optional[str] = None


class UserBrief(CamelModel):
    id: int
    email: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    role: str
    phone: Optional[str] = None
    created_at: datetime


class PurchaseOut(CamelModel):
    id: int
    user_id: int
    master_hives: int
    normal_hives: int
    total_amount: float
    full_name: str
    email: str
    phone: str
    address: str
    city: str
    country: str
    postal_code: str
    card_last_four: Optional[str] = None
    payment_method: Optional[str] = None
    status: str
    access_granted: bool
    access_granted_at: Optional[datetime] = None
    assigned_containers: List[str] = []
    purchase_date: datetime
    approved_at: Optional[datetime] = None
    updated_at: datetime
    admin_notes: Optional[str] = None

    @field_validator("assigned_containers", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


class PurchaseWithUser(PurchaseOut):
    user: UserBrief


# Access resolution payloads, one per tier

class PendingPurchase(CamelModel):
    id: int
    master_hives: int
    normal_hives: int
    purchase_date: datetime
    status: str


class GrantedPurchase(CamelModel):
    id: int
    master_hives: int
    normal_hives: int
    purchase_date: datetime
    access_granted_at: Optional[datetime] = None
    assigned_containers: List[str]


class ActivePurchase(GrantedPurchase):
    total_amount: float
    status: str
    admin_notes: Optional[str] = None


class AccessStatus(CamelModel):
    has_purchased: bool
    has_access: bool
    message: str
    pending_purchase: Optional[PendingPurchase] = None
    purchase: Optional[SerializeAsAny[GrantedPurchase]] = None
