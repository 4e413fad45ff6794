"""
Utility modules for the M-Pesa checkout service
"""
from .clock import SystemClock
from .config_loader import LIVE_BASE_URL, SANDBOX_BASE_URL, MpesaConfig, load_mpesa_config

__all__ = [
    'SystemClock',
    'MpesaConfig',
    'load_mpesa_config',
    'LIVE_BASE_URL',
    'SANDBOX_BASE_URL',
]
