"""
Payment contract: request/response schemas and validation helpers
specific to the M-Pesa STK push flow.
"""

import math
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Inbound API request
# ---------------------------------------------------------------------------


class StkPushApiRequest(BaseModel):
    """Body accepted by POST /api/payments/stk-push.

    Fields are optional so the route can answer missing input with its own
    400 payload instead of FastAPI's 422.
    """
    phone: Optional[str] = None
    amount: Optional[float] = None
    package: Optional[str] = None


# ---------------------------------------------------------------------------
# Gateway webhook payload (Body.stkCallback)
# ---------------------------------------------------------------------------


class CallbackItemModel(BaseModel):
    Name: str
    Value: Any = None


class CallbackMetadataModel(BaseModel):
    Item: List[CallbackItemModel] = Field(default_factory=list)


class StkCallbackModel(BaseModel):
    # Daraja sometimes sends identifiers as bare numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    MerchantRequestID: Optional[str] = None
    CheckoutRequestID: str
    ResultCode: int
    ResultDesc: Optional[str] = None
    CallbackMetadata: Optional[CallbackMetadataModel] = None


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def validate_stk_push_request(request: StkPushApiRequest) -> List[str]:
    """
    Return a list of validation errors.
    Empty list means the request can be handed to the STK push client.
    """
    if not request.phone or not request.amount or not request.package:
        return ["Missing required fields: phone, amount, package"]

    errors: List[str] = []
    if not math.isfinite(request.amount) or request.amount <= 0:
        errors.append("Invalid amount")
    return errors
