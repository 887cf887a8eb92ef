from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from app.models.payment_attempt import PaymentType


class PaymentInitiate(BaseModel):
    lease_reference: str = Field(min_length=1, max_length=64)
    # positivity is checked by the service so it fails the same way everywhere
    amount: Decimal
    phone_number: str = Field(min_length=1, max_length=20)
    payment_type: PaymentType = PaymentType.RENT


class PaymentRead(BaseModel):
    id: int
    lease_reference: str
    amount: Decimal
    phone_number: str
    payment_type: str
    payment_method: str
    status: str
    checkout_request_id: Optional[str] = None
    merchant_request_id: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    result_desc: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentInitiated(BaseModel):
    message: str = "Payment initiated. Please complete the payment on your phone."
    payment_id: int
    checkout_request_id: str
    customer_message: str


class CallbackAck(BaseModel):
    ResultCode: int = 0
    ResultDesc: str = "Success"
