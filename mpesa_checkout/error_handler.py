"""Error handling helpers for the payments API."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        logger.error("Unhandled exception in payments API: %s (context=%s)", exc, context or {}, exc_info=True)
        return {
            "success": False,
            "error": "Internal server error",
        }

    def handle_callback_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        logger.error("Callback error: %s (context=%s)", exc, context or {}, exc_info=True)
        return {
            "ResultCode": 1,
            "ResultDesc": "Callback processing failed",
        }
