"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mpesa_checkout.api.endpoints.callbacks import router as callbacks_router
from mpesa_checkout.api.endpoints.payments import payments_api

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="M-Pesa Checkout API",
    description="STK Push payment initiation and Daraja callback handling",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(payments_api, prefix="/api/payments", tags=["Payments"])
app.include_router(callbacks_router, prefix="/api/callbacks", tags=["Callbacks"])


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request body"})


@app.get("/health")
async def health_check():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.on_event("startup")
async def log_startup():
    logger.info("M-Pesa environment: %s", os.getenv("MPESA_ENVIRONMENT", "sandbox"))
    logger.info("Integrations mode: %s", os.getenv("INTEGRATIONS_MODE", "auto"))
