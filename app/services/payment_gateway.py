from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from app.core.config import get_settings
from app.economy.payments.errors import (
    GatewayMisconfiguredError,
    GatewayRejectedError,
    GatewayUnavailableError,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GatewayOrder:
    order_id: str
    amount_minor: int
    currency: str


@dataclass(frozen=True, slots=True)
class GatewayRefund:
    refund_id: str
    amount_minor: int


class PaymentGatewayClient:
    def __init__(
        self,
        *,
        base_url: str,
        key_id: str,
        key_secret: str,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._key_id = key_id
        self._key_secret = key_secret
        self._timeout_seconds = timeout_seconds

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def is_configured(self) -> bool:
        return bool(self._key_id and self._key_secret)

    async def _post(self, path: str, body: dict[str, Any], *, operation: str) -> dict[str, Any]:
        if not self.is_configured:
            raise GatewayMisconfiguredError

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                auth=(self._key_id, self._key_secret),
            ) as client:
                response = await client.post(f"{self._base_url}{path}", json=body)
        except httpx.HTTPError as exc:
            logger.warning("payment_gateway_unreachable", operation=operation, error=type(exc).__name__)
            raise GatewayUnavailableError from exc

        if response.status_code >= 500:
            logger.warning("payment_gateway_unavailable", operation=operation, status=response.status_code)
            raise GatewayUnavailableError
        if response.status_code in {401, 403}:
            logger.error("payment_gateway_auth_failed", operation=operation, status=response.status_code)
            raise GatewayMisconfiguredError
        if response.status_code >= 400:
            description = _error_description(response)
            logger.warning(
                "payment_gateway_rejected",
                operation=operation,
                status=response.status_code,
                description=description,
            )
            raise GatewayRejectedError(description or None)

        payload = response.json()
        if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
            raise GatewayUnavailableError("Payment gateway returned an unexpected response")
        return payload

    async def create_order(
        self,
        *,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict[str, str],
    ) -> GatewayOrder:
        payload = await self._post(
            "/v1/orders",
            {
                "amount": amount_minor,
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
            },
            operation="create_order",
        )
        return GatewayOrder(order_id=payload["id"], amount_minor=amount_minor, currency=currency)

    async def refund(
        self,
        *,
        gateway_payment_id: str,
        amount_minor: int,
        receipt: str,
    ) -> GatewayRefund:
        payload = await self._post(
            f"/v1/payments/{gateway_payment_id}/refund",
            {"amount": amount_minor, "receipt": receipt},
            operation="refund",
        )
        return GatewayRefund(refund_id=payload["id"], amount_minor=amount_minor)


def _error_description(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return ""
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        description = payload["error"].get("description")
        return description if isinstance(description, str) else ""
    return ""


def get_payment_gateway() -> PaymentGatewayClient:
    settings = get_settings()
    return PaymentGatewayClient(
        base_url=settings.payment_gateway_base_url,
        key_id=settings.payment_gateway_key_id,
        key_secret=settings.payment_gateway_key_secret,
        timeout_seconds=settings.payment_gateway_timeout_seconds,
    )
