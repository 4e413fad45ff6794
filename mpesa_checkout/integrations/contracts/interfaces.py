from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PaymentStatus(str, Enum):
    """UI-facing lifecycle of a single payment attempt."""
    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Gateway data models
# ---------------------------------------------------------------------------

@dataclass
class AccessToken:
    value: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


@dataclass
class PushPaymentRequest:
    short_code: str
    password: str
    timestamp: str                       # YYYYMMDDHHmmss
    amount: float
    payer_msisdn: str                    # 2547XXXXXXXX
    callback_url: str
    account_reference: str
    description: str

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the Daraja processrequest JSON body."""
        return {
            "BusinessShortCode": self.short_code,
            "Password": self.password,
            "Timestamp": self.timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": self.amount,
            "PartyA": self.payer_msisdn,
            "PartyB": self.short_code,
            "PhoneNumber": self.payer_msisdn,
            "CallBackURL": self.callback_url,
            "AccountReference": self.account_reference,
            "TransactionDesc": self.description,
        }


@dataclass
class PushPaymentSuccess:
    provider_payload: Dict[str, Any] = field(default_factory=dict)
    success: bool = field(default=True, init=False)

    @property
    def checkout_request_id(self) -> Optional[str]:
        return self.provider_payload.get("CheckoutRequestID")


@dataclass
class PushPaymentFailure:
    message: str
    provider_details: Optional[Any] = None
    success: bool = field(default=False, init=False)


PushPaymentResult = Union[PushPaymentSuccess, PushPaymentFailure]


@dataclass
class TransactionOutcome:
    checkout_request_id: str
    result_code: int
    result_description: str
    extracted_fields: Dict[str, Any] = field(default_factory=dict)
    merchant_request_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.result_code == 0


# ---------------------------------------------------------------------------
# Client-side models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Package:
    name: str
    amount: float


@dataclass(frozen=True)
class ClientPaymentState:
    selected_package: Optional[Package] = None
    status: PaymentStatus = PaymentStatus.IDLE
    transaction_data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Abstract gateway interface
# ---------------------------------------------------------------------------

class PushPaymentGateway(ABC):
    """Every STK push client (real or mock) must implement this interface."""

    @abstractmethod
    async def initiate(self, phone: str, amount: float, package_name: str) -> PushPaymentResult:
        """Send a payment prompt to the payer's phone. Never raises."""

    @abstractmethod
    async def query_status(self, checkout_request_id: str) -> PushPaymentResult:
        """Ask the gateway for the state of a previously initiated push."""
