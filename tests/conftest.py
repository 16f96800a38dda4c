"""
Shared fixtures.

Kivy reads its environment at import time, so it is configured here before
any test module imports publisher_app.
"""

import os
import tempfile

os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")
os.environ.setdefault("KIVY_HOME", tempfile.mkdtemp(prefix="kivy-home-"))

from datetime import datetime, timezone

import pytest

from publisher_app.utils.api import ApiError
from publisher_app.utils.schemas import MessageResponse, OtpIssued, OtpVerified
from publisher_app.utils.worker import run_inline

START = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeScheduler:
    """Collects delayed callbacks and intervals so tests decide when they fire."""

    def __init__(self):
        self.once = []
        self.intervals = []

    def schedule_once(self, fn, delay):
        self.once.append((fn, delay))

    def schedule_interval(self, fn, interval):
        entry = {"fn": fn, "interval": interval, "cancelled": False}
        self.intervals.append(entry)

        def cancel():
            entry["cancelled"] = True

        return cancel

    def active_intervals(self):
        return [e for e in self.intervals if not e["cancelled"]]

    def run_pending(self):
        pending, self.once = self.once, []
        for fn, _delay in pending:
            fn()


class DeferredRunner:
    """Holds remote calls until flush(), like responses arriving later."""

    def __init__(self):
        self.pending = []

    def __call__(self, work, callback):
        self.pending.append((work, callback))

    def flush(self):
        pending, self.pending = self.pending, []
        for work, callback in pending:
            run_inline(work, callback)


class FakeOtpService:
    def __init__(self, clock: FakeClock, ttl: float = 180):
        self.clock = clock
        self.ttl = ttl
        self.calls = []
        self.send_error = None
        self.verify_error = None
        self.reset_error = None
        self.token = "reset-token-1"
        self.accepted_code = "123456"

    def send_code(self, email):
        self.calls.append(("send", email))
        if self.send_error:
            raise self.send_error
        expires = datetime.fromtimestamp(self.clock() + self.ttl, tz=timezone.utc)
        return OtpIssued(expiresAt=expires, message="Code sent")

    def verify_code(self, email, code, purpose):
        self.calls.append(("verify", email, code, purpose))
        if self.verify_error:
            raise self.verify_error
        if code != self.accepted_code:
            raise ApiError("Invalid OTP", status_code=400)
        return OtpVerified(message="OTP verified", token=self.token)

    def reset_password(self, token, new_password):
        self.calls.append(("reset", token, new_password))
        if self.reset_error:
            raise self.reset_error
        return MessageResponse(message="Password updated")

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def otp_service(clock):
    return FakeOtpService(clock)


@pytest.fixture
def deferred():
    return DeferredRunner()
