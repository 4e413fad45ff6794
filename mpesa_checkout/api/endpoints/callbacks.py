import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from mpesa_checkout.error_handler import ErrorHandler
from mpesa_checkout.integrations.policy.callback_service import ACK_INVALID, CallbackService

logger = logging.getLogger(__name__)

router = APIRouter()

error_handler = ErrorHandler()

_callback_service: Optional[CallbackService] = None


def get_callback_service() -> CallbackService:
    global _callback_service
    if _callback_service is None:
        _callback_service = CallbackService()
    return _callback_service


@router.post("/mpesa", tags=["Callbacks"])
async def mpesa_callback(request: Request, service: CallbackService = Depends(get_callback_service)):
    """
    STK Push result webhook. Always answers with a Daraja acknowledgement.
    """
    logger.info("[MPESA] Callback received: %s", datetime.now(timezone.utc).isoformat())

    try:
        payload = await request.json()
    except ValueError:
        logger.warning("[MPESA] Callback body is not valid JSON")
        return dict(ACK_INVALID)

    try:
        return service.handle_callback(payload)
    except Exception as e:
        return JSONResponse(status_code=500, content=error_handler.handle_callback_exception(e, {"route": "mpesa"}))
