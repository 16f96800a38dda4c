from __future__ import annotations

import os
import time
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from kivy.logger import Logger

from publisher_app.utils.api import ApiError, OtpPurpose
from publisher_app.utils.otp_buffer import OtpInputBuffer
from publisher_app.utils.resend_timer import ResendTimer
from publisher_app.utils.schemas import MessageResponse, OtpIssued, OtpVerified
from publisher_app.utils.worker import InlineScheduler, run_inline

MIN_PASSWORD_LENGTH = 6
SUCCESS_BANNER_SECONDS = 3.0

MSG_EMAIL_REQUIRED = "Please enter your email address"
MSG_CODE_INCOMPLETE = "Please enter complete OTP"
MSG_INVALID_OTP = "Invalid OTP"
MSG_FILL_ALL = "Please fill in all fields"
MSG_PASSWORD_MISMATCH = "Passwords do not match"
MSG_PASSWORD_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
MSG_SEND_FAILED = "Failed to send OTP"
MSG_RESEND_FAILED = "Failed to resend OTP"
MSG_VERIFY_FAILED = "Failed to verify OTP"
MSG_RESET_FAILED = "Failed to update password"


class FlowState(str, Enum):
    EMAIL_ENTRY = "email_entry"
    CODE_SENT = "code_sent"
    VERIFIED = "verified"


class OtpService(Protocol):
    def send_code(self, email: str) -> OtpIssued: ...

    def verify_code(self, email: str, code: str, purpose: OtpPurpose) -> OtpVerified: ...

    def reset_password(self, token: str, new_password: str) -> MessageResponse: ...


def _success_delay(purpose: OtpPurpose) -> float:
    default = "1.5" if purpose == OtpPurpose.PASSWORD_RESET else "2.0"
    try:
        return float(os.getenv("OTP_SUCCESS_DELAY", default))
    except ValueError:
        return float(default)


def _error_message(action: str, err: BaseException, default: str) -> str:
    if isinstance(err, ApiError):
        return err.message or default
    Logger.error("OtpFlow: %s failed unexpectedly", action, exc_info=err)
    return default


class OtpFlow:
    """
    Email -> code -> verified sequence shared by forgot-password and email
    verification.

    `purpose` picks the verify variant: PASSWORD_RESET expects a reset token
    back and adds the new-password step; EMAIL_VERIFICATION is finished as soon
    as the code is accepted. Remote calls go through `runner(work, callback)`;
    every callback checks the flow epoch, which is bumped on back/reset, so a
    response that lands after the user left the step is dropped.
    """

    def __init__(
        self,
        service: OtpService,
        purpose: OtpPurpose,
        *,
        runner: Callable[..., None] = run_inline,
        scheduler: Any = None,
        clock: Callable[[], float] = time.time,
        on_change: Optional[Callable[["OtpFlow"], None]] = None,
        on_verified: Optional[Callable[[OtpVerified], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
        success_delay: Optional[float] = None,
    ) -> None:
        self.service = service
        self.purpose = purpose
        self._runner = runner
        self._scheduler = scheduler or InlineScheduler()
        self._on_change = on_change
        self._on_verified = on_verified
        self._on_complete = on_complete
        self.success_delay = _success_delay(purpose) if success_delay is None else success_delay

        self.buffer = OtpInputBuffer()
        self.timer = ResendTimer(clock)
        self._cancel_tick: Optional[Callable[[], None]] = None
        self._epoch = 0
        self.sending = False
        self.verifying = False
        self.resetting = False
        self._clear_session()

    def _clear_session(self) -> None:
        self.state = FlowState.EMAIL_ENTRY
        self.email = ""
        self.reset_token = ""
        self.error = ""
        self.success = ""
        self.completed = False

    # ---------- derived ----------
    @property
    def can_resend(self) -> bool:
        return self.timer.can_resend

    @property
    def countdown(self) -> str:
        return self.timer.display()

    @property
    def busy(self) -> bool:
        return self.sending or self.verifying or self.resetting

    # ---------- email step ----------
    def set_email(self, email: str) -> bool:
        if self.state != FlowState.EMAIL_ENTRY:
            return False
        self.email = (email or "").strip()
        return True

    def submit_email(self, email: Optional[str] = None) -> bool:
        if self.state != FlowState.EMAIL_ENTRY or self.sending:
            return False
        if email is not None:
            self.set_email(email)
        if not self.email:
            self._fail(MSG_EMAIL_REQUIRED)
            return False
        self._issue(resend=False)
        return True

    # ---------- code step ----------
    def resend(self) -> bool:
        if self.state != FlowState.CODE_SENT or self.sending or not self.can_resend:
            return False
        self._issue(resend=True)
        return True

    def submit_code(self) -> bool:
        if self.state != FlowState.CODE_SENT or self.verifying:
            return False
        if not self.buffer.is_complete:
            self._fail(MSG_CODE_INCOMPLETE)
            return False

        self.verifying = True
        self.error = ""
        self.success = ""
        epoch = self._epoch
        email, code = self.email, self.buffer.value()
        self._notify()

        def done(result: Optional[OtpVerified], err: Optional[BaseException]) -> None:
            try:
                if epoch != self._epoch or self.state != FlowState.CODE_SENT:
                    Logger.debug("OtpFlow: dropping stale verify response")
                    return
                if err is not None:
                    # Entered digits stay so a typo can be fixed.
                    self.error = _error_message("verify", err, MSG_VERIFY_FAILED)
                    return
                self._apply_verified(result, epoch)
            finally:
                self.verifying = False
                self._notify()

        self._runner(lambda: self.service.verify_code(email, code, self.purpose), done)
        return True

    def _apply_verified(self, result: OtpVerified, epoch: int) -> None:
        if self.purpose == OtpPurpose.PASSWORD_RESET:
            if not result.token:
                self.error = MSG_INVALID_OTP
                return
            self.reset_token = result.token

        self.state = FlowState.VERIFIED
        self.success = result.message
        self._stop_ticking()
        Logger.info("OtpFlow: code verified (%s)", self.purpose.value)

        if self.purpose == OtpPurpose.EMAIL_VERIFICATION:
            self.completed = True
            if self._on_verified:
                self._on_verified(result)
            self._scheduler.schedule_once(lambda: self._finish(epoch), self.success_delay)

    # ---------- password step ----------
    def submit_new_password(self, new_password: str, confirm_password: str) -> bool:
        if self.purpose != OtpPurpose.PASSWORD_RESET or self.state != FlowState.VERIFIED:
            return False
        if self.resetting or self.completed:
            return False
        if not new_password or not confirm_password:
            self._fail(MSG_FILL_ALL)
            return False
        if new_password != confirm_password:
            self._fail(MSG_PASSWORD_MISMATCH)
            return False
        if len(new_password) < MIN_PASSWORD_LENGTH:
            self._fail(MSG_PASSWORD_SHORT)
            return False

        self.resetting = True
        self.error = ""
        self.success = ""
        epoch = self._epoch
        token = self.reset_token
        self._notify()

        def done(result: Optional[MessageResponse], err: Optional[BaseException]) -> None:
            try:
                if epoch != self._epoch or self.state != FlowState.VERIFIED:
                    Logger.debug("OtpFlow: dropping stale reset response")
                    return
                if err is not None:
                    self.error = _error_message("reset password", err, MSG_RESET_FAILED)
                    return
                self.reset_token = ""
                self.success = result.message
                self.completed = True
                Logger.info("OtpFlow: password updated")
                self._scheduler.schedule_once(lambda: self._finish(epoch), self.success_delay)
            finally:
                self.resetting = False
                self._notify()

        self._runner(lambda: self.service.reset_password(token, new_password), done)
        return True

    # ---------- navigation ----------
    def back(self) -> None:
        """Return to email entry, keeping the typed address editable."""
        email = self.email
        self._restart()
        self.email = email
        self._notify()

    def reset(self) -> None:
        self._restart()
        self._notify()

    def teardown(self) -> None:
        """View is going away: drop timers and any in-flight results."""
        self._restart()

    def tick(self) -> bool:
        if self.state != FlowState.CODE_SENT:
            return False
        running = self.timer.tick()
        self._notify()
        return running

    # ---------- internals ----------
    def _issue(self, *, resend: bool) -> None:
        self.sending = True
        self.error = ""
        self.success = ""
        epoch = self._epoch
        email = self.email
        expected = FlowState.CODE_SENT if resend else FlowState.EMAIL_ENTRY
        self._notify()

        def done(result: Optional[OtpIssued], err: Optional[BaseException]) -> None:
            try:
                if epoch != self._epoch or self.state != expected:
                    Logger.debug("OtpFlow: dropping stale send response")
                    return
                if err is not None:
                    default = MSG_RESEND_FAILED if resend else MSG_SEND_FAILED
                    self.error = _error_message("send code", err, default)
                    return
                self.state = FlowState.CODE_SENT
                self.buffer.clear()
                self.timer.start(result.expires_at)
                self.success = result.message
                self._start_ticking()
                Logger.info("OtpFlow: code %s, resend in %s", "re-sent" if resend else "sent", self.countdown)
                if resend:
                    self._clear_success_later(epoch, result.message)
            finally:
                self.sending = False
                self._notify()

        self._runner(lambda: self.service.send_code(email), done)

    def _finish(self, epoch: int) -> None:
        if epoch != self._epoch:
            return
        self.reset()
        if self._on_complete:
            self._on_complete()

    def _clear_success_later(self, epoch: int, message: str) -> None:
        def _clear() -> None:
            if epoch == self._epoch and self.success == message:
                self.success = ""
                self._notify()

        self._scheduler.schedule_once(_clear, SUCCESS_BANNER_SECONDS)

    def _start_ticking(self) -> None:
        self._cancel_interval()
        if self.timer.running:
            self._cancel_tick = self._scheduler.schedule_interval(self.tick, 1.0)

    def _stop_ticking(self) -> None:
        self.timer.stop()
        self._cancel_interval()

    def _cancel_interval(self) -> None:
        if self._cancel_tick is not None:
            self._cancel_tick()
            self._cancel_tick = None

    def _restart(self) -> None:
        self._epoch += 1
        self._stop_ticking()
        self.timer.reset()
        self.buffer.clear()
        self._clear_session()

    def _fail(self, message: str) -> None:
        self.error = message
        self.success = ""
        self._notify()

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self)
