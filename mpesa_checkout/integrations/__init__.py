"""
Integrations layer.
This package contains all code used to communicate with the M-Pesa (Daraja) gateway:
- OAuth token acquisition and caching
- STK push initiation and status queries
- Interpretation of the asynchronous STK callback

Key rule:
- API routes and the client state machine MUST NOT call Daraja directly.
- They go through a PushPaymentGateway (real or mock) from integrations/clients.

Switching implementations:
- The selection of mock vs real clients happens in ONE place (mpesa_checkout/api/endpoints/payments.py).
"""

from .contracts.interfaces import (
    AccessToken,
    ClientPaymentState,
    Package,
    PaymentStatus,
    PushPaymentFailure,
    PushPaymentGateway,
    PushPaymentRequest,
    PushPaymentResult,
    PushPaymentSuccess,
    TransactionOutcome,
)
from .policy.response_wrappers import (
    AuthError,
    GatewayError,
    GatewayTimeoutError,
    IntegrationError,
    MalformedCallbackError,
    PaymentValidationError,
)

__all__ = [
    # interfaces
    "AccessToken", "ClientPaymentState", "Package", "PaymentStatus",
    "PushPaymentFailure", "PushPaymentGateway", "PushPaymentRequest",
    "PushPaymentResult", "PushPaymentSuccess", "TransactionOutcome",
    # errors
    "AuthError", "GatewayError", "GatewayTimeoutError", "IntegrationError",
    "MalformedCallbackError", "PaymentValidationError",
]
