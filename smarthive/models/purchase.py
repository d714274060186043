import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smarthive.core.db import Base
from smarthive.core.utils import utcnow
from smarthive.models.user import User


class PurchaseStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"


class Purchase(Base):
    __tablename__ = "purchases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    master_hives: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    normal_hives: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)

    # Contact snapshot taken at purchase time
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, index=True, nullable=False)
    phone: Mapped[str] = mapped_column(String, default="", nullable=False)
    address: Mapped[str] = mapped_column(String, default="", nullable=False)
    city: Mapped[str] = mapped_column(String, default="", nullable=False)
    country: Mapped[str] = mapped_column(String, default="", nullable=False)
    postal_code: Mapped[str] = mapped_column(String, default="", nullable=False)

    card_last_four: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String, default="card", nullable=True)

    status: Mapped[str] = mapped_column(
        String, default=PurchaseStatus.pending.value, index=True, nullable=False
    )
    access_granted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    access_granted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    assigned_containers: Mapped[List[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), default=list, nullable=False
    )
    purchase_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped[User] = relationship(back_populates="purchases")
