from __future__ import annotations
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.models.payment_attempt import PaymentAttempt, PaymentStatus, PaymentType
from app.models.user import User
from app.services.mpesa import MpesaClient, StkCallback, parse_stk_callback
from app.utils.phone import normalize_ke_phone

logger = logging.getLogger(__name__)

# fits the Numeric(12, 2) amount column
MAX_AMOUNT = Decimal("9999999999.99")


def account_reference(lease_reference: str) -> str:
    return f"LEASE-{lease_reference[:8]}"


class PaymentService:
    def __init__(
        self,
        db: Session,
        client: MpesaClient | None = None,
        callback_url: str | None = None,
        *,
        apply_callbacks: bool = False,
    ):
        """`client` and `callback_url` are only needed for provider calls."""
        self.db = db
        self.client = client
        self.callback_url = callback_url
        self.apply_callbacks = apply_callbacks

    def _validate(self, amount, phone_number: str, payment_type: str) -> tuple[Decimal, str]:
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError("Amount must be a number", field="amount") from exc
        if not value.is_finite() or value <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount")
        if value > MAX_AMOUNT:
            raise ValidationError("Amount is too large", field="amount")
        if value != value.quantize(Decimal("0.01")):
            raise ValidationError("Amount can have at most two decimal places", field="amount")
        if payment_type not in {t.value for t in PaymentType}:
            raise ValidationError("Unknown payment type", field="payment_type")
        return value, normalize_ke_phone(phone_number)

    def initiate(
        self,
        *,
        user_id: int,
        lease_reference: str,
        amount,
        phone_number: str,
        payment_type: str = PaymentType.RENT.value,
    ) -> tuple[PaymentAttempt, str]:
        """
        Record a pending attempt, then ask M-Pesa to prompt the phone.
        Returns (attempt, customer_message). Provider failures propagate as
        UpstreamError and leave the pending row in place.
        """
        value, phone = self._validate(amount, phone_number, payment_type)
        if not lease_reference or not lease_reference.strip():
            raise ValidationError("Lease reference is required", field="lease_reference")
        lease_reference = lease_reference.strip()

        attempt = PaymentAttempt(
            user_id=user_id,
            lease_reference=lease_reference,
            amount=value,
            phone_number=phone,
            payment_type=payment_type,
            status=PaymentStatus.PENDING.value,
        )
        self.db.add(attempt)
        self.db.commit()
        self.db.refresh(attempt)
        logger.info("Payment attempt created", extra={"payment_id": attempt.id, "lease_reference": lease_reference})

        result = self.client.stk_push(
            phone_number=phone,
            amount=value,
            account_reference=account_reference(lease_reference),
            description=f"{payment_type.capitalize()} payment for lease {lease_reference}",
            callback_url=self.callback_url,
        )

        attempt.checkout_request_id = result.checkout_request_id
        attempt.merchant_request_id = result.merchant_request_id
        self.db.commit()
        self.db.refresh(attempt)
        logger.info(
            "STK push accepted",
            extra={"payment_id": attempt.id, "checkout_request_id": result.checkout_request_id},
        )
        return attempt, result.customer_message

    def handle_callback(self, payload: Any) -> StkCallback:
        cb = parse_stk_callback(payload)
        attempt = None
        if cb.checkout_request_id:
            attempt = (
                self.db.query(PaymentAttempt)
                .filter(PaymentAttempt.checkout_request_id == cb.checkout_request_id)
                .first()
            )

        log_extra = {
            "checkout_request_id": cb.checkout_request_id,
            "result_code": cb.result_code,
            "payment_id": attempt.id if attempt else None,
        }
        if cb.succeeded:
            logger.info("M-Pesa payment succeeded: receipt %s", cb.receipt_number, extra=log_extra)
        else:
            logger.info("M-Pesa payment not completed: %s", cb.result_desc, extra=log_extra)

        if attempt is None:
            if cb.checkout_request_id:
                logger.warning("Callback for unknown checkout request", extra=log_extra)
            return cb

        if not self.apply_callbacks:
            # Status transitions are not applied unless MPESA_APPLY_CALLBACKS is on
            return cb

        if cb.result_code is None:
            logger.warning("Callback without a result code, leaving attempt pending", extra=log_extra)
            return cb

        values = {
            PaymentAttempt.status: PaymentStatus.COMPLETED.value if cb.succeeded else PaymentStatus.FAILED.value,
            PaymentAttempt.result_desc: (cb.result_desc or "")[:255] or None,
        }
        if cb.succeeded:
            values[PaymentAttempt.provider_transaction_id] = cb.receipt_number

        updated = (
            self.db.query(PaymentAttempt)
            .filter(PaymentAttempt.id == attempt.id, PaymentAttempt.status == PaymentStatus.PENDING.value)
            .update(values, synchronize_session=False)
        )
        self.db.commit()
        if not updated:
            logger.info("Duplicate callback ignored", extra=log_extra)
        return cb

    def query_status(self, checkout_request_id: str) -> dict[str, Any]:
        return self.client.stk_query(checkout_request_id)

    def list_for_lease(self, user: User, lease_reference: str) -> list[PaymentAttempt]:
        q = self.db.query(PaymentAttempt).filter(PaymentAttempt.lease_reference == lease_reference)
        if not user.is_admin:
            q = q.filter(PaymentAttempt.user_id == user.id)
        return q.order_by(PaymentAttempt.created_at.desc(), PaymentAttempt.id.desc()).all()
