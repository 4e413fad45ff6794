"""
STK Push callback handling.

Daraja posts the final outcome of a push to our callback URL. The response we
send back only acknowledges receipt; it says nothing about whether the payer
actually paid. Anything other than a well-formed acknowledgement makes Daraja
retry the webhook.
"""

import logging
from typing import Any, Callable, Dict, Optional

from mpesa_checkout.integrations.contracts.interfaces import TransactionOutcome
from mpesa_checkout.integrations.policy.response_wrappers import MalformedCallbackError, normalize_stk_callback

logger = logging.getLogger(__name__)

ACK_RECEIVED = {"ResultCode": 0, "ResultDesc": "Success"}
ACK_INVALID = {"ResultCode": 1, "ResultDesc": "Invalid callback data"}
ACK_PROCESSING_FAILED = {"ResultCode": 1, "ResultDesc": "Callback processing failed"}

OutcomeHandler = Callable[[TransactionOutcome], None]


def log_transaction_outcome(outcome: TransactionOutcome) -> None:
    """Default handler: entitlement, account updates etc. are wired in by the deployment."""
    if outcome.succeeded:
        logger.info(
            "[MPESA] Payment successful checkout_request_id=%s data=%s",
            outcome.checkout_request_id, outcome.extracted_fields,
        )
    else:
        logger.info(
            "[MPESA] Payment failed checkout_request_id=%s code=%s error=%s",
            outcome.checkout_request_id, outcome.result_code, outcome.result_description,
        )


class CallbackService:
    def __init__(self, on_outcome: Optional[OutcomeHandler] = None):
        self.on_outcome = on_outcome or log_transaction_outcome

    def interpret(self, payload: Any) -> TransactionOutcome:
        """Parse the webhook payload; raises MalformedCallbackError."""
        return normalize_stk_callback(payload)

    def handle_callback(self, payload: Any) -> Dict[str, Any]:
        logger.debug("[MPESA] Callback received: %s", payload)

        try:
            outcome = self.interpret(payload)
        except MalformedCallbackError as e:
            logger.warning("[MPESA] Rejecting malformed callback: %s", e)
            return dict(ACK_INVALID)

        self.on_outcome(outcome)
        return dict(ACK_RECEIVED)
