"""
Client-side payment state.

Drives the checkout UI: idle -> processing -> success | error. Subscribers
receive the full state snapshot after every transition and render from it.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional

from mpesa_checkout.integrations.contracts.interfaces import (
    ClientPaymentState,
    Package,
    PaymentStatus,
    PushPaymentGateway,
)

logger = logging.getLogger(__name__)

NO_PACKAGE_MESSAGE = "No package selected."
GENERIC_FAILURE_MESSAGE = "Payment failed. Please try again."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."

Listener = Callable[[ClientPaymentState], None]


class _Subscription:
    __slots__ = ("listener",)

    def __init__(self, listener: Listener):
        self.listener = listener


class PaymentState:
    def __init__(self, gateway: PushPaymentGateway):
        self.gateway = gateway
        self._state = ClientPaymentState()
        self._subscriptions: List[_Subscription] = []

    @property
    def state(self) -> ClientPaymentState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns an unsubscribe function (safe to call twice)."""
        subscription = _Subscription(listener)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _set_state(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for subscription in list(self._subscriptions):
            subscription.listener(self._state)

    # --- Transitions ---------------------------------------------------------

    def select_package(self, package: Package) -> None:
        logger.debug("Setting package: %s", package)
        self._set_state(
            selected_package=package,
            status=PaymentStatus.IDLE,
            transaction_data=None,
            error_message=None,
        )

    async def process_payment(self, phone: str) -> None:
        package: Optional[Package] = self._state.selected_package

        if self._state.status in (PaymentStatus.PROCESSING, PaymentStatus.SUCCESS):
            logger.warning("Payment already %s; ignoring new request", self._state.status.value)
            return

        if package is None:
            logger.error("No package selected")
            self._set_state(status=PaymentStatus.ERROR, error_message=NO_PACKAGE_MESSAGE)
            return

        self._set_state(status=PaymentStatus.PROCESSING, transaction_data=None, error_message=None)

        try:
            result = await self.gateway.initiate(phone, package.amount, package.name)
        except Exception as e:
            logger.error("Payment error: %s", e)
            self._set_state(status=PaymentStatus.ERROR, error_message=NETWORK_ERROR_MESSAGE)
            return

        if result.success:
            self._set_state(status=PaymentStatus.SUCCESS, transaction_data=result.provider_payload)
        else:
            self._set_state(status=PaymentStatus.ERROR, error_message=result.message or GENERIC_FAILURE_MESSAGE)

    def reset(self) -> None:
        self._set_state(
            selected_package=None,
            status=PaymentStatus.IDLE,
            transaction_data=None,
            error_message=None,
        )
