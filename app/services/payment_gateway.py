"""Payment gateway client (Razorpay-compatible REST API)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from app.core.config import Settings
from app.core.error_codes import ErrorCode
from app.core.errors import UpstreamError
from app.core.logging import get_logger
from app.core.security import verify_hmac_sha256

logger = get_logger(__name__)


@dataclass(frozen=True)
class GatewayOrder:
    order_ref: str
    amount: int
    currency: str


class PaymentGateway(Protocol):
    key_id: str

    def create_order(self, *, amount: int, currency: str, receipt: str, notes: dict[str, str]) -> GatewayOrder: ...

    def verify_payment_signature(self, *, order_ref: str, payment_ref: str, signature: str) -> bool: ...

    def verify_webhook_signature(self, *, body: bytes, signature: str) -> bool: ...


class RazorpayGateway:
    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        self.key_id = settings.payment_key_id
        self._key_secret = settings.payment_key_secret
        self._webhook_secret = settings.payment_webhook_secret
        self._base_url = settings.payment_api_base_url.rstrip("/")
        self._timeout = settings.payment_timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.key_id and self._key_secret)

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url,
            auth=(self.key_id, self._key_secret),
            timeout=self._timeout,
            transport=self._transport,
        )

    def create_order(self, *, amount: int, currency: str, receipt: str, notes: dict[str, str]) -> GatewayOrder:
        if not self.enabled:
            raise UpstreamError(
                "Payment gateway not configured. Please contact support.",
                code=ErrorCode.PAYMENTS_NOT_CONFIGURED,
            )

        body: dict[str, Any] = {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes}
        try:
            with self._client() as client:
                resp = client.post("/orders", json=body)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("payment_gateway_rejected_order", status_code=exc.response.status_code, receipt=receipt)
            raise UpstreamError("Payment gateway rejected the order", code=ErrorCode.PAYMENT_GATEWAY_ERROR) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("payment_gateway_unreachable", error=str(exc), receipt=receipt)
            raise UpstreamError("Payment gateway unavailable", code=ErrorCode.PAYMENT_GATEWAY_ERROR) from exc

        order_ref = data.get("id")
        if not order_ref:
            raise UpstreamError("Payment gateway returned no order id", code=ErrorCode.PAYMENT_GATEWAY_ERROR)
        return GatewayOrder(
            order_ref=str(order_ref),
            amount=int(data.get("amount", amount)),
            currency=str(data.get("currency", currency)),
        )

    def verify_payment_signature(self, *, order_ref: str, payment_ref: str, signature: str) -> bool:
        _require_secret(self._key_secret)
        return verify_hmac_sha256(self._key_secret, f"{order_ref}|{payment_ref}", signature)

    def verify_webhook_signature(self, *, body: bytes, signature: str) -> bool:
        _require_secret(self._webhook_secret)
        return verify_hmac_sha256(self._webhook_secret, body, signature)


def _require_secret(secret: str) -> None:
    # An unset secret is a deployment fault, not a forged signature.
    if not secret:
        raise UpstreamError(
            "Payment gateway not configured. Please contact support.",
            code=ErrorCode.PAYMENTS_NOT_CONFIGURED,
        )
