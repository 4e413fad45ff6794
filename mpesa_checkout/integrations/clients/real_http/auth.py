"""
Daraja OAuth client.

Fetches a client-credentials bearer token and keeps it until shortly before
the gateway's 60 minute lifetime runs out.
"""

from __future__ import annotations

import base64
import logging
from datetime import timedelta
from typing import Optional

import httpx

from mpesa_checkout.integrations.contracts.interfaces import AccessToken
from mpesa_checkout.integrations.policy.response_wrappers import AuthError
from mpesa_checkout.utils.clock import SystemClock
from mpesa_checkout.utils.config_loader import MpesaConfig

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/v1/generate"


def basic_auth_header(consumer_key: str, consumer_secret: str) -> str:
    credentials = base64.b64encode(f"{consumer_key}:{consumer_secret}".encode("utf-8")).decode("ascii")
    return f"Basic {credentials}"


class CredentialCache:
    """
    One shared token per process.

    Concurrent refreshes are not serialized: whichever fetch finishes last
    overwrites the cached token.
    """

    def __init__(
        self,
        config: MpesaConfig,
        clock=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.clock = clock or SystemClock()
        self.ttl = timedelta(minutes=config.token_ttl_minutes)
        self._transport = transport
        self._token: Optional[AccessToken] = None

    @property
    def token(self) -> Optional[AccessToken]:
        return self._token

    def invalidate(self) -> None:
        self._token = None

    async def get_access_token(self) -> str:
        cached = self._token
        if cached is not None and cached.is_valid(self.clock.now()):
            return cached.value

        url = f"{self.config.base_url}{TOKEN_PATH}"
        headers = {"Authorization": basic_auth_header(self.config.consumer_key, self.config.consumer_secret)}
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = await client.get(url, params={"grant_type": "client_credentials"}, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("[MPESA] Access token error: %s %s", e.response.status_code, e.response.text)
            raise AuthError("Failed to get access token", payload=_safe_json(e.response)) from e
        except httpx.RequestError as e:
            logger.error("[MPESA] Access token request failed: %s", e)
            raise AuthError("Failed to get access token") from e
        except ValueError as e:
            logger.error("[MPESA] Access token response is not JSON: %s", e)
            raise AuthError("Failed to get access token") from e

        value = data.get("access_token") if isinstance(data, dict) else None
        if not value:
            logger.error("[MPESA] Access token response has no access_token field")
            raise AuthError("Failed to get access token", payload=data)

        self._token = AccessToken(value=value, expires_at=self.clock.now() + self.ttl)
        logger.info("[MPESA] New access token generated (valid until %s)", self._token.expires_at.isoformat())
        return value


def _safe_json(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return response.text or None
