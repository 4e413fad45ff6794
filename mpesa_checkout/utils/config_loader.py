"""
M-Pesa configuration loader (credentials, environment, gateway endpoints).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = "https://sandbox.safaricom.co.ke"
LIVE_BASE_URL = "https://api.safaricom.co.ke"

# Environment variable -> config field
_ENV_OVERRIDES = {
    "MPESA_CONSUMER_KEY": "consumer_key",
    "MPESA_CONSUMER_SECRET": "consumer_secret",
    "MPESA_BUSINESS_SHORTCODE": "short_code",
    "MPESA_PASSKEY": "passkey",
    "MPESA_CALLBACK_URL": "callback_url",
    "MPESA_ENVIRONMENT": "environment",
    "MPESA_BASE_URL": "base_url",
}


class MpesaConfig(BaseModel):
    """Everything the token cache and the STK push client need to talk to Daraja."""

    consumer_key: str = ""
    consumer_secret: str = ""
    short_code: str = ""
    passkey: str = ""
    callback_url: str = ""
    environment: Literal["sandbox", "live"] = "sandbox"
    base_url: str = ""
    timeout_seconds: float = Field(default=30.0, gt=0, le=120)
    token_ttl_minutes: int = Field(default=55, ge=1, le=60)

    def model_post_init(self, __context: Any) -> None:
        if not self.base_url:
            self.base_url = LIVE_BASE_URL if self.environment == "live" else SANDBOX_BASE_URL
        self.base_url = self.base_url.rstrip("/")

    def missing_credentials(self) -> list[str]:
        required = ("consumer_key", "consumer_secret", "short_code", "passkey", "callback_url")
        return [name for name in required if not getattr(self, name)]


def load_mpesa_config(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> MpesaConfig:
    """
    Load and validate M-Pesa configuration.

    Values from the YAML file are overridden by MPESA_* environment variables,
    so secrets can stay out of the repository.

    Args:
        config_path: Path to config file. Defaults to config/mpesa_config.yml
        env: Mapping used for overrides. Defaults to os.environ

    Raises:
        ValidationError: If the merged config doesn't match the schema
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config" / "mpesa_config.yml"
    if env is None:
        env = os.environ

    data: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        logger.warning("M-Pesa config file not found at %s; using environment only", config_path)

    for env_name, field_name in _ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value:
            data[field_name] = value.strip()

    try:
        cfg = MpesaConfig(**data)
    except ValidationError as e:
        logger.error("M-Pesa config validation failed: %s", e)
        raise

    missing = cfg.missing_credentials()
    if missing:
        logger.warning("M-Pesa config is missing: %s", ", ".join(missing))
    logger.info("Loaded M-Pesa config (environment=%s, base_url=%s)", cfg.environment, cfg.base_url)
    return cfg
