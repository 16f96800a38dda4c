from __future__ import annotations

import math
import time
from datetime import datetime
from typing import Callable, Optional, Union

Expiry = Union[datetime, float, int]


def format_countdown(seconds: int) -> str:
    """mm:ss with zero-padded seconds, e.g. 125 -> "2:05"."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def _to_epoch(expires_at: Expiry) -> float:
    if isinstance(expires_at, datetime):
        # Naive datetimes are taken as local time, same as datetime.timestamp().
        return expires_at.timestamp()
    return float(expires_at)


class ResendTimer:
    """
    Cooldown between OTP issuances, derived from the server expiry.

    Remaining time is always recomputed from `(expires_at, clock())`, so a
    missed or late tick never drifts; ticking only samples the clock and
    reports whether the countdown is still running.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._expires_at: Optional[float] = None
        self.running = False
        self.seconds_remaining = 0

    @property
    def issued(self) -> bool:
        return self._expires_at is not None

    @property
    def can_resend(self) -> bool:
        if self._expires_at is None:
            return True
        return self._sample() == 0

    def display(self) -> str:
        return format_countdown(self.seconds_remaining)

    def start(self, expires_at: Expiry) -> int:
        self._expires_at = _to_epoch(expires_at)
        self.seconds_remaining = self._sample()
        self.running = self.seconds_remaining > 0
        return self.seconds_remaining

    def tick(self) -> bool:
        """
        Refresh the countdown. Returns False once it is finished (or was never
        started) so a Kivy interval callback unschedules itself.
        """
        if not self.running:
            return False
        self.seconds_remaining = self._sample()
        if self.seconds_remaining == 0:
            self.running = False
        return self.running

    def stop(self) -> None:
        self.running = False

    def reset(self) -> None:
        self._expires_at = None
        self.running = False
        self.seconds_remaining = 0

    def _sample(self) -> int:
        if self._expires_at is None:
            return 0
        return max(0, math.floor(self._expires_at - self._clock()))
