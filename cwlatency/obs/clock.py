"""Time source used by the middleware.

The middleware never calls ``datetime.now`` directly; it asks its clock, so
tests can pin both the current instant and the measured latency.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


_ZERO = timedelta(0)


class Clock(Protocol):
    def now(self) -> datetime: ...

    def elapsed(self, since: datetime) -> timedelta: ...


class RealClock:
    """System clock (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def elapsed(self, since: datetime) -> timedelta:
        # Wall-clock steps can move backwards; latency never does
        return max(self.now() - since, _ZERO)


class FixedClock:
    """Deterministic clock for tests.

    ``now()`` always returns the same instant and ``elapsed()`` the same
    duration. Both can be reassigned between requests.
    """

    def __init__(
        self,
        now: Optional[datetime] = None,
        elapsed: timedelta = timedelta(microseconds=10),
    ):
        self.fixed_now = now or datetime.now(timezone.utc)
        self.fixed_elapsed = max(elapsed, _ZERO)

    def now(self) -> datetime:
        return self.fixed_now

    def elapsed(self, since: datetime) -> timedelta:
        return self.fixed_elapsed
