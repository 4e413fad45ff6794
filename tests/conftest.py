"""Pytest fixtures for the M-Pesa checkout tests."""

from datetime import datetime, timedelta

import pytest

from mpesa_checkout.utils.config_loader import MpesaConfig


class DummyClock:
    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def mpesa_config():
    return MpesaConfig(
        consumer_key="key",
        consumer_secret="secret",
        short_code="174379",
        passkey="passkey",
        callback_url="https://example.com/api/callbacks/mpesa",
    )


@pytest.fixture
def clock():
    return DummyClock(datetime(2024, 3, 5, 9, 7, 3))
