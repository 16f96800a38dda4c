from __future__ import annotations

from threading import Thread

from kivy.app import App
from kivy.clock import Clock
from kivy.logger import Logger
from kivy.properties import BooleanProperty, StringProperty
from kivy.uix.screenmanager import Screen

from publisher_app.utils.api import ApiError
from publisher_app.utils.forms import validate_signup
from publisher_app.utils.popup import show_message


class RegisterScreen(Screen):
    error = StringProperty("")
    busy = BooleanProperty(False)

    def go_back(self) -> None:
        self.manager.current = "login"

    def _get(self, wid: str) -> str:
        """Helper to get and trim text from widget by ID."""
        w = self.ids.get(wid)
        return (w.text or "").strip() if w else ""

    def on_leave(self, *args):
        self.error = ""
        for wid in ("username_input", "telegram_input", "email_input", "password_input"):
            w = self.ids.get(wid)
            if w:
                w.text = ""

    def register(self) -> None:
        """Collects input, validates, and calls the signup API."""
        if self.busy:
            return
        username = self._get("username_input")
        telegram_username = self._get("telegram_input")
        email = self._get("email_input")
        password = self._get("password_input")

        errs = validate_signup(
            username=username,
            telegram_username=telegram_username,
            email=email,
            password=password,
        )
        if errs:
            self.error = errs["form"]
            return

        self.error = ""
        self.busy = True
        auth = App.get_running_app().auth

        def work():
            try:
                msg = auth.signup(
                    username=username,
                    email=email,
                    password=password,
                    telegram_username=telegram_username,
                )
            except ApiError as e:
                fail = e.message or "Signup failed"
                Clock.schedule_once(lambda *_: self._failed(fail), 0)
                return
            except Exception:
                Logger.exception("RegisterScreen: signup crashed")
                Clock.schedule_once(lambda *_: self._failed("Signup failed"), 0)
                return

            def done_ok(*_):
                self.busy = False
                show_message("Success", msg)
                self.manager.current = "login"

            Clock.schedule_once(done_ok, 0)

        Thread(target=work, daemon=True).start()

    def _failed(self, msg: str) -> None:
        self.busy = False
        self.error = msg
