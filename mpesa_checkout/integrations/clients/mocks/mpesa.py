"""
M-Pesa STK Push: MOCK client.

This is a mock implementation for development and testing.
It never calls Daraja; payloads mimic the sandbox responses closely enough
for the front-end and the callback flow to be exercised end-to-end.
"""

import logging
import random
import uuid
from typing import Dict

from mpesa_checkout.integrations.clients.real_http.payments import format_phone_number
from mpesa_checkout.integrations.contracts.interfaces import (
    PushPaymentFailure,
    PushPaymentGateway,
    PushPaymentResult,
    PushPaymentSuccess,
)

logger = logging.getLogger(__name__)


class MpesaMockClient(PushPaymentGateway):
    """
    Mock STK push client.

    Parameters
    ----------
    payment_success_rate : float
        Probability (0-1) that an STK push is accepted. Default 1.0.
    """

    def __init__(self, payment_success_rate: float = 1.0):
        self._success_rate = payment_success_rate

        # In-memory store (reset on restart): CheckoutRequestID -> query payload
        self._pushes: Dict[str, Dict[str, str]] = {}

        logger.info("[MPESA MOCK] Client initialised (success_rate=%.0f%%)", payment_success_rate * 100)

    def _should_succeed(self) -> bool:
        return random.random() < self._success_rate

    async def initiate(self, phone: str, amount: float, package_name: str) -> PushPaymentResult:
        msisdn = format_phone_number(phone)
        logger.info("[MPESA MOCK] STK push phone=%s amount=%s package=%s", msisdn, amount, package_name)

        if not self._should_succeed():
            details = {
                "requestId": uuid.uuid4().hex[:16],
                "errorCode": "500.001.1001",
                "errorMessage": "Unable to lock subscriber, a transaction is already in process for the current subscriber",
            }
            return PushPaymentFailure(message=details["errorMessage"], provider_details=details)

        merchant_request_id = f"{random.randint(10000, 99999)}-{random.randint(1000000, 9999999)}-1"
        checkout_request_id = f"ws_CO_{uuid.uuid4().hex[:20].upper()}"
        payload = {
            "MerchantRequestID": merchant_request_id,
            "CheckoutRequestID": checkout_request_id,
            "ResponseCode": "0",
            "ResponseDescription": "Success. Request accepted for processing",
            "CustomerMessage": "Success. Request accepted for processing",
        }
        self._pushes[checkout_request_id] = {
            "ResponseCode": "0",
            "ResponseDescription": "The service request has been accepted successsfully",
            "MerchantRequestID": merchant_request_id,
            "CheckoutRequestID": checkout_request_id,
            "ResultCode": "0",
            "ResultDesc": "The service request is processed successfully.",
        }
        return PushPaymentSuccess(provider_payload=payload)

    async def query_status(self, checkout_request_id: str) -> PushPaymentResult:
        if checkout_request_id in self._pushes:
            return PushPaymentSuccess(provider_payload=dict(self._pushes[checkout_request_id]))

        logger.warning("[MPESA MOCK] Unknown CheckoutRequestID=%s", checkout_request_id)
        details = {
            "requestId": uuid.uuid4().hex[:16],
            "errorCode": "400.002.02",
            "errorMessage": "Bad Request - Invalid CheckoutRequestID",
        }
        return PushPaymentFailure(message=details["errorMessage"], provider_details=details)
