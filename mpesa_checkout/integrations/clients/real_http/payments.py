"""
Real M-Pesa STK Push HTTP Client.

Used when Daraja credentials are configured (INTEGRATIONS_MODE=real/live).
"""

from __future__ import annotations

import base64
import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from mpesa_checkout.integrations.clients.real_http.auth import CredentialCache
from mpesa_checkout.integrations.contracts.interfaces import (
    PushPaymentFailure,
    PushPaymentGateway,
    PushPaymentRequest,
    PushPaymentResult,
    PushPaymentSuccess,
)
from mpesa_checkout.integrations.policy.response_wrappers import (
    DEFAULT_FAILURE_MESSAGE,
    GatewayError,
    GatewayTimeoutError,
    IntegrationError,
    failure_message,
)
from mpesa_checkout.utils.clock import SystemClock
from mpesa_checkout.utils.config_loader import MpesaConfig

logger = logging.getLogger(__name__)

STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"
STK_QUERY_PATH = "/mpesa/stkpushquery/v1/query"
COUNTRY_CODE = "254"

_WHITESPACE = re.compile(r"\s+")


def format_phone_number(phone: str) -> str:
    """Normalize a Kenyan number to the 2547XXXXXXXX MSISDN form."""
    cleaned = _WHITESPACE.sub("", phone)
    if cleaned.startswith("0"):
        return COUNTRY_CODE + cleaned[1:]
    if cleaned.startswith("+" + COUNTRY_CODE):
        return cleaned[1:]
    if not cleaned.startswith(COUNTRY_CODE):
        return COUNTRY_CODE + cleaned
    return cleaned


def get_timestamp(now: Optional[datetime] = None) -> str:
    """Daraja timestamp: YYYYMMDDHHmmss, 14 digits."""
    now = now or datetime.now()
    return f"{now.year:04d}{now.month:02d}{now.day:02d}{now.hour:02d}{now.minute:02d}{now.second:02d}"


def generate_password(short_code: str, passkey: str, timestamp: str) -> str:
    return base64.b64encode(f"{short_code}{passkey}{timestamp}".encode("utf-8")).decode("ascii")


class StkPushClient(PushPaymentGateway):
    def __init__(
        self,
        config: MpesaConfig,
        credentials: Optional[CredentialCache] = None,
        clock=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.clock = clock or SystemClock()
        self.credentials = credentials or CredentialCache(config, clock=self.clock, transport=transport)
        self._transport = transport

    def get_timestamp(self) -> str:
        return get_timestamp(self.clock.now())

    def generate_password(self, timestamp: str) -> str:
        return generate_password(self.config.short_code, self.config.passkey, timestamp)

    def build_request(self, phone: str, amount: float, package_name: str) -> PushPaymentRequest:
        timestamp = self.get_timestamp()
        return PushPaymentRequest(
            short_code=self.config.short_code,
            password=self.generate_password(timestamp),
            timestamp=timestamp,
            amount=_whole_amount(amount),
            payer_msisdn=format_phone_number(phone),
            callback_url=self.config.callback_url,
            account_reference=package_name,
            description=f"Payment for {package_name}",
        )

    async def initiate(self, phone: str, amount: float, package_name: str) -> PushPaymentResult:
        try:
            access_token = await self.credentials.get_access_token()
            request = self.build_request(phone, amount, package_name)
            logger.info(
                "[MPESA] STK push phone=%s amount=%s package=%s timestamp=%s",
                request.payer_msisdn, request.amount, package_name, request.timestamp,
            )
            data = await self._post(STK_PUSH_PATH, request.to_payload(), access_token)
        except IntegrationError as e:
            return self._failure(e, "STK push")
        except Exception:
            logger.exception("[MPESA] Unexpected error during STK push")
            return PushPaymentFailure(message=DEFAULT_FAILURE_MESSAGE)

        logger.info("[MPESA] STK push accepted checkout_request_id=%s", data.get("CheckoutRequestID"))
        return PushPaymentSuccess(provider_payload=data)

    async def query_status(self, checkout_request_id: str) -> PushPaymentResult:
        try:
            access_token = await self.credentials.get_access_token()
            timestamp = self.get_timestamp()
            payload = {
                "BusinessShortCode": self.config.short_code,
                "Password": self.generate_password(timestamp),
                "Timestamp": timestamp,
                "CheckoutRequestID": checkout_request_id,
            }
            data = await self._post(STK_QUERY_PATH, payload, access_token)
        except IntegrationError as e:
            return self._failure(e, "STK query")
        except Exception:
            logger.exception("[MPESA] Unexpected error during STK query")
            return PushPaymentFailure(message=DEFAULT_FAILURE_MESSAGE)

        return PushPaymentSuccess(provider_payload=data)

    async def _post(self, path: str, payload: Dict[str, Any], access_token: str) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        url = f"{self.config.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json() if response.content else {}
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError(f"Timed out calling {path}") from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                # Token was revoked or expired early; the next call fetches a fresh one.
                self.credentials.invalidate()
            raise GatewayError(
                f"Gateway returned {e.response.status_code} for {path}",
                status_code=e.response.status_code,
                payload=_error_body(e.response),
            ) from e
        except httpx.RequestError as e:
            raise GatewayError(f"Request error calling {path}: {e}") from e
        except ValueError as e:
            raise GatewayError(f"Gateway returned a non-JSON body for {path}") from e

        if not isinstance(data, dict):
            raise GatewayError(f"Unexpected response shape from {path}", payload=data)
        return data

    def _failure(self, exc: IntegrationError, operation: str) -> PushPaymentFailure:
        logger.error(
            "[MPESA] %s failed: %s (%s) details=%s",
            operation, exc, type(exc).__name__, exc.payload,
        )
        return PushPaymentFailure(message=failure_message(exc), provider_details=exc.payload)


def _whole_amount(amount: float):
    # Daraja rejects fractional amounts; keep integers as int in the JSON body.
    if isinstance(amount, float) and amount.is_integer():
        return int(amount)
    return amount


def _error_body(response: httpx.Response) -> Optional[Any]:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
