"""
HTTP boundary used by a front-end: calls this service's own payments API
instead of Daraja directly.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from mpesa_checkout.integrations.contracts.interfaces import (
    PushPaymentFailure,
    PushPaymentGateway,
    PushPaymentResult,
    PushPaymentSuccess,
)

GENERIC_FAILURE_MESSAGE = "Payment failed. Please try again."


class PaymentsApiClient(PushPaymentGateway):
    """Transport errors are not caught here; PaymentState reports them as network errors."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 35.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def initiate(self, phone: str, amount: float, package_name: str) -> PushPaymentResult:
        body = {"phone": phone, "amount": amount, "package": package_name}
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/api/payments/stk-push",
                json=body,
                headers={"Content-Type": "application/json"},
            )
        return _to_result(response.json())

    async def query_status(self, checkout_request_id: str) -> PushPaymentResult:
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.get(f"{self.base_url}/api/payments/status/{checkout_request_id}")
        return _to_result(response.json())


def _to_result(result: Dict[str, Any]) -> PushPaymentResult:
    if result.get("success"):
        return PushPaymentSuccess(provider_payload=result.get("data") or {})
    return PushPaymentFailure(message=result.get("error") or GENERIC_FAILURE_MESSAGE)
