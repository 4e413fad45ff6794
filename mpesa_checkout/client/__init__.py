"""
Client-side checkout state and the HTTP boundary it calls through.
"""

from .payment_state import PaymentState
from .payments_api import PaymentsApiClient

__all__ = ["PaymentState", "PaymentsApiClient"]
