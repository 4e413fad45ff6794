from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError

from mpesa_checkout.integrations.contracts.interfaces import TransactionOutcome
from mpesa_checkout.integrations.contracts.payments import CallbackItemModel, StkCallbackModel

DEFAULT_FAILURE_MESSAGE = "Payment failed. Please try again."
DEFAULT_GATEWAY_MESSAGE = "M-Pesa API error"
TIMEOUT_MESSAGE = "Request timeout. Please try again."

# Daraja error codes that get explicit user guidance
_KNOWN_ERROR_CODES = {
    "400.002.02": "Invalid phone number format",
    "400.002.01": "Invalid amount",
}


class IntegrationError(Exception):
    def __init__(self, message: str, *, payload: Optional[Any] = None) -> None:
        super().__init__(message)
        self.payload = payload


class PaymentValidationError(IntegrationError):
    """Request fields missing or invalid; rejected before reaching the gateway."""


class AuthError(IntegrationError):
    """OAuth token could not be obtained."""


class GatewayError(IntegrationError):
    """Daraja answered with a non-2xx response."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, payload: Optional[Any] = None) -> None:
        super().__init__(message, payload=payload)
        self.status_code = status_code


class GatewayTimeoutError(IntegrationError):
    """Outbound call exceeded the configured timeout."""


class MalformedCallbackError(IntegrationError):
    """Webhook payload is missing Body.stkCallback or its required fields."""


def gateway_error_message(body: Any) -> str:
    """Pick the user-facing message for a structured Daraja error body."""
    if not isinstance(body, dict):
        return DEFAULT_GATEWAY_MESSAGE

    code = str(body.get("errorCode") or "")
    if code in _KNOWN_ERROR_CODES:
        return _KNOWN_ERROR_CODES[code]
    return str(_first_non_empty(body, "errorMessage", "message", default=DEFAULT_GATEWAY_MESSAGE))


def failure_message(exc: Exception) -> str:
    if isinstance(exc, GatewayError) and exc.payload:
        return gateway_error_message(exc.payload)
    if isinstance(exc, GatewayTimeoutError):
        return TIMEOUT_MESSAGE
    return DEFAULT_FAILURE_MESSAGE


def extract_transaction_data(items: Iterable[CallbackItemModel]) -> Dict[str, Any]:
    return {item.Name: item.Value for item in items}


def normalize_stk_callback(raw: Any) -> TransactionOutcome:
    body = raw.get("Body") if isinstance(raw, dict) else None
    container = body.get("stkCallback") if isinstance(body, dict) else None
    if not isinstance(container, dict):
        raise MalformedCallbackError("Callback payload has no Body.stkCallback", payload=raw)

    try:
        callback = StkCallbackModel(**container)
    except ValidationError as exc:
        raise MalformedCallbackError(f"Callback validation failed: {exc}", payload=raw) from exc

    fields: Dict[str, Any] = {}
    if callback.ResultCode == 0 and callback.CallbackMetadata is not None:
        fields = extract_transaction_data(callback.CallbackMetadata.Item)

    description = callback.ResultDesc or ""
    if callback.ResultCode != 0 and not description:
        description = "Payment failed"

    return TransactionOutcome(
        checkout_request_id=callback.CheckoutRequestID,
        result_code=callback.ResultCode,
        result_description=description,
        extracted_fields=fields,
        merchant_request_id=callback.MerchantRequestID,
    )


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return default
