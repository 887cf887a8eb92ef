# app/models/payment_attempt.py
from __future__ import annotations
import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from sqlalchemy import Integer, String, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentType(str, enum.Enum):
    RENT = "rent"
    DEPOSIT = "deposit"
    UTILITY = "utility"
    MAINTENANCE = "maintenance"


class PaymentAttempt(Base):
    __tablename__ = "payment_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    lease_reference: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(12), nullable=False)
    payment_type: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentType.RENT.value)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, default="mpesa")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)

    # provider correlation
    checkout_request_id: Mapped[Optional[str]] = mapped_column(String(100), unique=True, index=True)
    merchant_request_id: Mapped[Optional[str]] = mapped_column(String(100))
    provider_transaction_id: Mapped[Optional[str]] = mapped_column(String(100))
    result_desc: Mapped[Optional[str]] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", lazy="joined")
