"""
Real HTTP integration clients.

These clients talk to the Safaricom Daraja API:
- OAuth client-credentials token (auth.py)
- STK push initiation and status query (payments.py)

Important:
- Must implement the same PushPaymentGateway interface as the mock clients
- Must return data shaped according to mpesa_checkout/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in mpesa_checkout/api/endpoints/payments.py only.
"""

from .auth import CredentialCache
from .payments import StkPushClient, format_phone_number, generate_password, get_timestamp

__all__ = [
    "CredentialCache",
    "StkPushClient",
    "format_phone_number",
    "generate_password",
    "get_timestamp",
]
