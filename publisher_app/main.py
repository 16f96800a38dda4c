from __future__ import annotations
import os
import sys
import traceback

#
# IMPORTANT (Android packaging):
# Buildozer runs this file as the entrypoint (e.g. `publisher_app/main.py`).
# When a script inside a package folder is executed, Python adds THAT folder
# to `sys.path`, not the repository root. Our imports use `publisher_app.*`,
# so we must ensure the repo root (parent of `publisher_app/`) is on `sys.path`.
#
APP_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(APP_DIR, os.pardir))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from kivy.app import App
from kivy.clock import Clock
from kivy.lang import Builder
from kivy.logger import Logger
from kivy.uix.label import Label
from kivy.uix.screenmanager import ScreenManager
from kivy.uix.scrollview import ScrollView
from kivy.utils import platform

from publisher_app.utils.api import ApiClient, ApiOtpService
from publisher_app.utils.auth import AuthService
from publisher_app.utils.storage import SessionManager
from publisher_app.utils.worker import run_in_background

DASHBOARD_SCREENS = ("my_sites", "statistics", "withdrawals", "payments", "profile", "support")


class PublisherApp(App):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.session = SessionManager()
        self.api = ApiClient(self.session)
        self.auth = AuthService(self.api, self.session)
        self.otp_service = ApiOtpService(self.api)
        self.sm = None

    def build(self):
        self.title = "Publisher Dashboard"
        try:
            # Widgets used by the KV rules must be registered before any screen is built.
            from publisher_app.widgets.data_table import DataTable, Pager  # noqa: F401
            from publisher_app.widgets.otp_input import OtpInput  # noqa: F401

            Builder.load_file(os.path.join(APP_DIR, "kv", "screens.kv"))

            # Import screens lazily so we can show a readable error screen
            # instead of hard-closing on startup.
            from publisher_app.screens.login_screen import LoginScreen
            from publisher_app.screens.my_sites_screen import MySitesScreen
            from publisher_app.screens.payments_screen import PaymentsScreen
            from publisher_app.screens.profile_screen import ProfileScreen
            from publisher_app.screens.register_screen import RegisterScreen
            from publisher_app.screens.statistics_screen import StatisticsScreen
            from publisher_app.screens.support_screen import SupportScreen
            from publisher_app.screens.withdrawals_screen import WithdrawalsScreen

            self.sm = ScreenManager()
            self.sm.add_widget(LoginScreen(name="login"))
            self.sm.add_widget(RegisterScreen(name="register"))
            self.sm.add_widget(MySitesScreen(name="my_sites"))
            self.sm.add_widget(StatisticsScreen(name="statistics"))
            self.sm.add_widget(WithdrawalsScreen(name="withdrawals"))
            self.sm.add_widget(PaymentsScreen(name="payments"))
            self.sm.add_widget(ProfileScreen(name="profile"))
            self.sm.add_widget(SupportScreen(name="support"))
            self.sm.current = "login"
            return self.sm

        except Exception:
            # On Android users would only see the splash briefly; keep the app
            # alive and show the real error instead.
            tb = traceback.format_exc()
            Logger.exception("PublisherApp: crashed during build()")

            sv = ScrollView()
            lbl = Label(
                text=tb,
                size_hint_y=None,
                text_size=(self._get_window_width(), None),
                halign="left",
                valign="top",
            )
            lbl.bind(texture_size=lambda _i, s: setattr(lbl, "height", s[1] + 40))
            sv.add_widget(lbl)
            return sv

    @staticmethod
    def _get_window_width() -> int:
        try:
            from kivy.core.window import Window

            return int(Window.width or 360)
        except Exception:
            return 360

    def on_start(self):
        if platform == "android":
            try:
                from android import remove_presplash  # type: ignore

                Clock.schedule_once(lambda _dt: remove_presplash(), 0)
            except ImportError:
                Logger.warning("PublisherApp: presplash helper unavailable")

        if self.sm is None:
            return

        # If the user opted into "Keep me logged in", skip the login form.
        def done(restored, err):
            if err is not None:
                Logger.warning("PublisherApp: session restore failed (%s)", err)
                return
            if restored:
                self.open_dashboard()

        run_in_background(self.auth.restore, done)

    # -----------------------
    # Navigation
    # -----------------------
    def go(self, name: str) -> None:
        if self.sm is None:
            return
        if name in DASHBOARD_SCREENS and not self.session.is_authenticated:
            name = "login"
        self.sm.current = name

    def open_dashboard(self) -> None:
        self.go("my_sites")

    def logout(self) -> None:
        self.auth.logout()
        self.go("login")


def main() -> None:
    PublisherApp().run()


if __name__ == "__main__":
    main()
