"""
Clock abstraction so token expiry and request timestamps can be tested
without real time passing.
"""

from datetime import datetime


class SystemClock:
    """Local wall-clock time; Daraja timestamps are expected in local time."""

    def now(self) -> datetime:
        return datetime.now()
