import logging
import os
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from mpesa_checkout.error_handler import ErrorHandler
from mpesa_checkout.integrations.clients.mocks.mpesa import MpesaMockClient
from mpesa_checkout.integrations.clients.real_http.payments import (
    StkPushClient,
    generate_password,
    get_timestamp,
)
from mpesa_checkout.integrations.contracts.interfaces import PushPaymentGateway
from mpesa_checkout.integrations.contracts.payments import StkPushApiRequest, validate_stk_push_request
from mpesa_checkout.utils.config_loader import MpesaConfig, load_mpesa_config

logger = logging.getLogger(__name__)

api = APIRouter()
payments_api = api

error_handler = ErrorHandler()

_config: Optional[MpesaConfig] = None
_payment_client: Optional[PushPaymentGateway] = None


def _should_use_real_integrations() -> bool:
    mode = os.getenv("INTEGRATIONS_MODE", "").strip().lower()
    if mode in {"real", "live"}:
        return True
    if mode in {"mock", "test"}:
        return False
    return bool(os.getenv("MPESA_CONSUMER_KEY"))


def get_mpesa_config() -> MpesaConfig:
    global _config
    if _config is None:
        _config = load_mpesa_config()
    return _config


def get_payment_client() -> PushPaymentGateway:
    """One client per process so the cached access token is shared by every request."""
    global _payment_client
    if _payment_client is None:
        if _should_use_real_integrations():
            _payment_client = StkPushClient(get_mpesa_config())
        else:
            logger.info("INTEGRATIONS_MODE is not real; using M-Pesa mock client")
            _payment_client = MpesaMockClient()
    return _payment_client


@api.post("/stk-push", tags=["Payments"])
async def initiate_stk_push(
    request: StkPushApiRequest,
    client: PushPaymentGateway = Depends(get_payment_client),
):
    try:
        logger.info("STK Push request: phone=%s amount=%s package=%s", request.phone, request.amount, request.package)

        errors = validate_stk_push_request(request)
        if errors:
            return JSONResponse(status_code=400, content={"success": False, "error": errors[0]})

        result = await client.initiate(request.phone, request.amount, request.package)

        if result.success:
            return {
                "success": True,
                "data": result.provider_payload,
                "message": "STK Push initiated successfully",
            }

        logger.warning("STK Push rejected: %s details=%s", result.message, result.provider_details)
        return JSONResponse(status_code=400, content={"success": False, "error": result.message})
    except Exception as e:
        return JSONResponse(status_code=500, content=error_handler.handle_exception(e, {"route": "stk-push"}))


@api.get("/debug-timestamp", tags=["Payments"])
async def debug_timestamp(config: MpesaConfig = Depends(get_mpesa_config)):
    """Diagnostic: show the timestamp and password the next STK push would use."""
    timestamp = get_timestamp()
    password = generate_password(config.short_code, config.passkey, timestamp)

    return {
        "timestamp": timestamp,
        "password": password,
        "timestampLength": len(timestamp),
        "passwordLength": len(password),
        "expectedFormat": "YYYYMMDDHHmmss (14 characters)",
        "currentTime": datetime.now(timezone.utc).isoformat(),
    }


@api.get("/status/{checkout_request_id}", tags=["Payments"])
async def stk_push_status(
    checkout_request_id: str,
    client: PushPaymentGateway = Depends(get_payment_client),
):
    try:
        result = await client.query_status(checkout_request_id)
        if result.success:
            return {"success": True, "data": result.provider_payload}

        logger.warning("STK query rejected: %s details=%s", result.message, result.provider_details)
        return JSONResponse(status_code=400, content={"success": False, "error": result.message})
    except Exception as e:
        return JSONResponse(status_code=500, content=error_handler.handle_exception(e, {"route": "status"}))
