"""
Payment gateway client (Razorpay REST API over httpx).

Only two calls are needed: create an order for the tier price, and fetch a
payment to confirm it was captured. Every call has a timeout; timeouts and
5xx / connection failures are raised as Transient errors so the caller can
retry safely, while 4xx answers are business rejections.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from hackgate.config import settings
from hackgate.errors import (
    GatewayRejectedError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)

logger = logging.getLogger(__name__)

CAPTURED = "captured"


@dataclass(frozen=True)
class GatewayPayment:
    payment_id: str
    status:     str
    amount:     int     # minor units


class PaymentGateway(Protocol):
    async def create_order(
        self, amount: int, currency: str, metadata: Dict[str, str]
    ) -> str: ...

    async def fetch_payment(self, payment_id: str) -> GatewayPayment: ...


# ── Signatures ────────────────────────────────────────────────────────────────

def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of "<order_id>|<payment_id>"."""
    return hmac.new(
        secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def signature_matches(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    expected = compute_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature or "")


# ── Client ────────────────────────────────────────────────────────────────────

class RazorpayGateway:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.GATEWAY_BASE_URL,
            auth=(key_id, key_secret),
            timeout=timeout if timeout is not None else settings.GATEWAY_TIMEOUT,
            transport=transport,
        )

    async def create_order(
        self, amount: int, currency: str, metadata: Dict[str, str]
    ) -> str:
        data = await self._request(
            "POST",
            "/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": metadata.get("receipt", ""),
                "notes": metadata,
            },
        )
        return data["id"]

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:
        data = await self._request("GET", f"/payments/{payment_id}")
        return GatewayPayment(
            payment_id=data.get("id", payment_id),
            status=data.get("status", ""),
            amount=int(data.get("amount", 0)),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Gateway %s %s timed out: %s", method, path, e)
            raise GatewayTimeoutError() from e
        except httpx.TransportError as e:
            logger.warning("Gateway %s %s failed: %s", method, path, e)
            raise GatewayUnavailableError() from e

        if response.status_code >= 500:
            logger.warning("Gateway %s %s answered %d", method, path, response.status_code)
            raise GatewayUnavailableError()
        if response.status_code >= 400:
            raise GatewayRejectedError(
                f"Payment gateway rejected the request ({response.status_code})"
            )
        return response.json()


def build_gateway() -> Optional[RazorpayGateway]:
    """Gateway from settings, or None when keys are not configured."""
    if not settings.gateway_enabled:
        return None
    return RazorpayGateway(settings.GATEWAY_KEY_ID, settings.GATEWAY_KEY_SECRET)
