from datetime import datetime
from typing import List, Optional

from pydantic import field_validator

from smarthive.schemas.base import CamelModel


class ProfileOut(CamelModel):
    id: int
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: str
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdateIn(CamelModel):
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class ProfilePurchase(CamelModel):
    id: str
    master_hives: int
    normal_hives: int
    total_amount: float
    status: str
    access_granted: bool
    purchase_date: datetime
    assigned_containers: List[str] = []

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v):
        return str(v)
