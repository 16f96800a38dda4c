from __future__ import annotations

from kivy.app import App
from kivy.properties import BooleanProperty, StringProperty
from kivy.uix.screenmanager import Screen

from publisher_app.utils.api import ApiError, OtpPurpose
from publisher_app.utils.forms import validate_login
from publisher_app.utils.otp_flow import FlowState, OtpFlow
from publisher_app.utils.worker import KivyScheduler, run_in_background

_FLOW_STEPS = {
    FlowState.EMAIL_ENTRY: "forgot_email",
    FlowState.CODE_SENT: "forgot_code",
    FlowState.VERIFIED: "reset_password",
}


def _safe_text(screen: Screen, wid: str) -> str:
    widget = screen.ids.get(wid)
    return (widget.text or "").strip() if widget else ""


class LoginScreen(Screen):
    """Sign-in form plus the forgot-password steps, one visible at a time."""

    # auth | forgot_email | forgot_code | reset_password
    step = StringProperty("auth")
    error = StringProperty("")
    success = StringProperty("")
    countdown = StringProperty("")
    can_resend = BooleanProperty(True)
    busy = BooleanProperty(False)
    password_updated = BooleanProperty(False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.flow = None

    def _app(self):
        return App.get_running_app()

    def _ensure_flow(self) -> OtpFlow:
        if self.flow is None:
            self.flow = OtpFlow(
                self._app().otp_service,
                OtpPurpose.PASSWORD_RESET,
                runner=run_in_background,
                scheduler=KivyScheduler(),
                on_change=self._sync,
                on_complete=self._back_to_login,
            )
        return self.flow

    def on_leave(self, *args):
        if self.flow is not None:
            self.flow.teardown()
        self.step = "auth"

    # -----------------------
    # Login
    # -----------------------
    def login(self):
        if self.busy:
            return
        email = _safe_text(self, "email_input")
        password = _safe_text(self, "password_input")
        remember_box = self.ids.get("remember_box")
        remember = bool(remember_box and remember_box.active)

        errs = validate_login(email, password)
        if errs:
            self.error = errs["form"]
            return

        self.busy = True
        self.error = ""
        auth = self._app().auth

        def done(user, err):
            self.busy = False
            if err is not None:
                self.error = (err.message if isinstance(err, ApiError) else None) or "Failed to log in"
                return
            self._app().open_dashboard()

        run_in_background(lambda: auth.login(email=email, password=password, remember=remember), done)

    def open_register(self):
        if self.manager:
            self.manager.current = "register"

    # -----------------------
    # Forgot password
    # -----------------------
    def open_forgot_password(self):
        flow = self._ensure_flow()
        flow.reset()
        flow.set_email(_safe_text(self, "email_input"))
        self._sync(flow)

    def send_code(self):
        self._ensure_flow().submit_email(_safe_text(self, "forgot_email_input"))

    def verify_code(self):
        self._ensure_flow().submit_code()

    def resend_code(self):
        self._ensure_flow().resend()

    def back_to_email(self):
        self._ensure_flow().back()

    def reset_password(self):
        self._ensure_flow().submit_new_password(
            _safe_text(self, "new_password_input"),
            _safe_text(self, "confirm_password_input"),
        )

    def cancel_forgot_password(self):
        if self.flow is not None:
            self.flow.reset()
        self._back_to_login()

    def _back_to_login(self):
        for wid in ("password_input", "new_password_input", "confirm_password_input"):
            widget = self.ids.get(wid)
            if widget:
                widget.text = ""
        self.step = "auth"
        self.error = ""
        self.success = ""
        self.password_updated = False

    def _sync(self, flow: OtpFlow) -> None:
        self.step = _FLOW_STEPS[flow.state]
        self.error = flow.error
        self.success = flow.success
        self.countdown = flow.countdown
        self.can_resend = flow.can_resend
        self.busy = flow.busy
        self.password_updated = flow.completed

        email_field = self.ids.get("forgot_email_input")
        if email_field is not None and email_field.text != flow.email and flow.state == FlowState.EMAIL_ENTRY:
            email_field.text = flow.email

        otp_input = self.ids.get("otp_input")
        if otp_input is not None:
            if otp_input.buffer is not flow.buffer:
                otp_input.bind_buffer(flow.buffer)
            otp_input.refresh(focus=flow.state == FlowState.CODE_SENT and not flow.busy)
            otp_input.set_disabled(flow.verifying)
