from __future__ import annotations
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_user, get_db, get_mpesa_client, require_user_type, require_verified_email
from app.models.user import User, UserType
from app.schemas.payment import CallbackAck, PaymentInitiate, PaymentInitiated, PaymentRead
from app.services.mpesa import MpesaClient
from app.services.payments import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/payments", tags=["payments"])

_tenant_only = [Depends(require_user_type(UserType.TENANT)), Depends(require_verified_email)]


def _service(db: Session, client: MpesaClient) -> PaymentService:
    return PaymentService(
        db,
        client,
        settings.mpesa_callback,
        apply_callbacks=settings.mpesa_apply_callbacks,
    )


@router.post("/mpesa/initiate", response_model=PaymentInitiated, dependencies=_tenant_only)
def initiate_mpesa_payment(
    body: PaymentInitiate,
    db: Session = Depends(get_db),
    client: MpesaClient = Depends(get_mpesa_client),
    current_user: User = Depends(get_current_user),
):
    attempt, customer_message = _service(db, client).initiate(
        user_id=current_user.id,
        lease_reference=body.lease_reference,
        amount=body.amount,
        phone_number=body.phone_number,
        payment_type=body.payment_type.value,
    )
    return PaymentInitiated(
        payment_id=attempt.id,
        checkout_request_id=attempt.checkout_request_id,
        customer_message=customer_message,
    )


@router.post("/mpesa/callback", response_model=CallbackAck)
async def mpesa_callback(request: Request, db: Session = Depends(get_db)):
    """
    Safaricom retries anything that is not a 200, so this always acknowledges.
    Processing failures are logged. Session work runs in the threadpool.
    """
    try:
        payload: Any = await request.json()
    except ValueError:
        logger.warning("Undecodable M-Pesa callback body")
        return CallbackAck()

    try:
        service = PaymentService(db, apply_callbacks=settings.mpesa_apply_callbacks)
        await run_in_threadpool(service.handle_callback, payload)
    except Exception:
        logger.exception("M-Pesa callback processing failed")
        await run_in_threadpool(db.rollback)
    return CallbackAck()


@router.get("/mpesa/status/{checkout_request_id}", dependencies=_tenant_only)
def query_mpesa_status(
    checkout_request_id: str,
    db: Session = Depends(get_db),
    client: MpesaClient = Depends(get_mpesa_client),
) -> dict[str, Any]:
    return _service(db, client).query_status(checkout_request_id)


@router.get("/lease/{lease_reference}", response_model=list[PaymentRead])
def list_lease_payments(
    lease_reference: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return PaymentService(db).list_for_lease(current_user, lease_reference)
