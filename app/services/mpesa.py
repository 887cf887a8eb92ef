"""
Safaricom Daraja client: OAuth, STK push and STK push query, plus the
decoder for the asynchronous STK callback.
"""
from __future__ import annotations
import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import settings
from app.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

EAT = timezone(timedelta(hours=3), "EAT")
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

OAUTH_PATH = "/oauth/v1/generate"
STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"
STK_QUERY_PATH = "/mpesa/stkpushquery/v1/query"


class StkPushResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    merchant_request_id: str = Field(alias="MerchantRequestID")
    checkout_request_id: str = Field(alias="CheckoutRequestID")
    response_code: str = Field(alias="ResponseCode")
    response_description: str = Field("", alias="ResponseDescription")
    customer_message: str = Field("", alias="CustomerMessage")


def timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(EAT).strftime(TIMESTAMP_FORMAT)


def whole_shillings(amount: Decimal) -> str:
    # Daraja only accepts whole numbers
    return str(int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


class MpesaClient:
    def __init__(
        self,
        *,
        consumer_key: str,
        consumer_secret: str,
        short_code: str,
        pass_key: str,
        base_url: str = "https://sandbox.safaricom.co.ke",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.short_code = short_code
        self.pass_key = pass_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, transport: httpx.BaseTransport | None = None) -> "MpesaClient":
        return cls(
            consumer_key=settings.mpesa_consumer_key,
            consumer_secret=settings.mpesa_consumer_secret,
            short_code=settings.mpesa_short_code,
            pass_key=settings.mpesa_pass_key,
            base_url=settings.mpesa_base_url,
            timeout=settings.mpesa_timeout_seconds,
            transport=transport,
        )

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    def password(self, ts: str) -> str:
        raw = f"{self.short_code}{self.pass_key}{ts}"
        return base64.b64encode(raw.encode()).decode()

    def get_access_token(self, client: httpx.Client) -> str:
        """Client-credentials grant. Not cached: each push/query re-authenticates."""
        try:
            resp = client.get(
                OAUTH_PATH,
                params={"grant_type": "client_credentials"},
                auth=(self.consumer_key, self.consumer_secret),
            )
        except httpx.HTTPError as exc:
            logger.warning("M-Pesa OAuth request failed: %s", exc)
            raise UpstreamError("Could not reach M-Pesa") from exc

        if resp.status_code != 200:
            logger.warning("M-Pesa OAuth rejected", extra={"status_code": resp.status_code})
            raise UpstreamError("M-Pesa authentication failed", provider_status=resp.status_code)

        try:
            token = resp.json()["access_token"]
        except (ValueError, KeyError) as exc:
            raise UpstreamError("Malformed M-Pesa authentication response") from exc
        return token

    def stk_push(
        self,
        *,
        phone_number: str,
        amount: Decimal,
        account_reference: str,
        description: str,
        callback_url: str,
        now: datetime | None = None,
    ) -> StkPushResponse:
        ts = timestamp(now)
        body = {
            "BusinessShortCode": self.short_code,
            "Password": self.password(ts),
            "Timestamp": ts,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": whole_shillings(amount),
            "PartyA": phone_number,
            "PartyB": self.short_code,
            "PhoneNumber": phone_number,
            "CallBackURL": callback_url,
            "AccountReference": account_reference,
            "TransactionDesc": description,
        }

        with self._client() as client:
            access_token = self.get_access_token(client)
            try:
                resp = client.post(STK_PUSH_PATH, json=body, headers={"Authorization": f"Bearer {access_token}"})
            except httpx.HTTPError as exc:
                logger.warning("M-Pesa STK push request failed: %s", exc)
                raise UpstreamError("Could not reach M-Pesa") from exc

        if resp.status_code != 200:
            logger.warning("M-Pesa STK push rejected", extra={"status_code": resp.status_code, "body": resp.text[:500]})
            raise UpstreamError("M-Pesa rejected the payment request", provider_status=resp.status_code)

        try:
            return StkPushResponse.model_validate(resp.json())
        except ValueError as exc:
            raise UpstreamError("Malformed M-Pesa STK push response") from exc

    def stk_query(self, checkout_request_id: str, now: datetime | None = None) -> dict[str, Any]:
        """Returns the provider's decoded body as-is."""
        ts = timestamp(now)
        body = {
            "BusinessShortCode": self.short_code,
            "Password": self.password(ts),
            "Timestamp": ts,
            "CheckoutRequestID": checkout_request_id,
        }
        with self._client() as client:
            access_token = self.get_access_token(client)
            try:
                resp = client.post(STK_QUERY_PATH, json=body, headers={"Authorization": f"Bearer {access_token}"})
            except httpx.HTTPError as exc:
                logger.warning("M-Pesa STK query request failed: %s", exc)
                raise UpstreamError("Could not reach M-Pesa") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError("Malformed M-Pesa query response", provider_status=resp.status_code) from exc


# ----------------- Callback decoding -----------------
MetadataValue = Union[str, int, float]


@dataclass
class StkCallback:
    merchant_request_id: Optional[str] = None
    checkout_request_id: Optional[str] = None
    result_code: Optional[int] = None
    result_desc: Optional[str] = None
    metadata: dict[str, MetadataValue] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.result_code == 0

    @property
    def receipt_number(self) -> Optional[str]:
        value = self.metadata.get("MpesaReceiptNumber")
        return str(value) if value is not None else None

    @property
    def phone_number(self) -> Optional[str]:
        value = self.metadata.get("PhoneNumber")
        if isinstance(value, float):
            value = int(value)
        return str(value) if value is not None else None

    @property
    def amount(self) -> Optional[Decimal]:
        value = self.metadata.get("Amount")
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except ArithmeticError:
            return None


def _as_str(value) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _metadata_items(items) -> dict[str, MetadataValue]:
    decoded: dict[str, MetadataValue] = {}
    if not isinstance(items, list):
        return decoded
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get("Name")
        value = item.get("Value")
        if not isinstance(name, str) or isinstance(value, bool):
            continue
        if isinstance(value, (str, int, float)):
            decoded[name] = value
    return decoded


def parse_stk_callback(payload: Any) -> StkCallback:
    """
    Decode `Body.stkCallback` without trusting its shape. Missing or mistyped
    fields come back as None; metadata items with unexpected values are skipped.
    """
    body = payload.get("Body") if isinstance(payload, dict) else None
    cb = body.get("stkCallback") if isinstance(body, dict) else None
    if not isinstance(cb, dict):
        return StkCallback()

    meta = cb.get("CallbackMetadata")
    return StkCallback(
        merchant_request_id=_as_str(cb.get("MerchantRequestID")),
        checkout_request_id=_as_str(cb.get("CheckoutRequestID")),
        result_code=_as_int(cb.get("ResultCode")),
        result_desc=_as_str(cb.get("ResultDesc")),
        metadata=_metadata_items(meta.get("Item") if isinstance(meta, dict) else None),
    )
