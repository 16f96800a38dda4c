from __future__ import annotations

from kivy.app import App
from kivy.logger import Logger
from kivy.properties import BooleanProperty, StringProperty
from kivy.uix.screenmanager import Screen

from publisher_app.utils.api import ApiError
from publisher_app.utils.auth import user_data
from publisher_app.utils.forms import (
    ACCOUNT_INDIVIDUAL,
    check_account_type,
    profile_payload,
    validate_password_change,
    validate_profile,
)
from publisher_app.utils.popup import show_message
from publisher_app.utils.worker import run_in_background

_PROFILE_FIELDS = {
    "first_name_input": "FirstName",
    "last_name_input": "LastName",
    "company_input": "CompanyName",
    "city_input": "City",
    "address_input": "Address",
    "country_input": "Country",
}
_PASSWORD_FIELDS = ("current_password_input", "new_password_input", "confirm_password_input")


class ProfileScreen(Screen):
    account_type = StringProperty(ACCOUNT_INDIVIDUAL)
    locked_account_type = StringProperty("")
    username = StringProperty("")
    email = StringProperty("")
    telegram_username = StringProperty("")
    profile_error = StringProperty("")
    password_error = StringProperty("")
    saving = BooleanProperty(False)
    changing_password = BooleanProperty(False)

    def _app(self):
        return App.get_running_app()

    def _get(self, wid: str) -> str:
        w = self.ids.get(wid)
        return (w.text or "").strip() if w else ""

    def on_enter(self, *args):
        self.load_user()

    def load_user(self):
        data = user_data(self._app().session.user)
        self.username = str(data.get("Username") or "")
        self.email = str(data.get("Email") or "")
        self.telegram_username = str(data.get("TelegramUsername") or "")
        self.locked_account_type = str(data.get("AccountType") or "")
        self.account_type = self.locked_account_type or ACCOUNT_INDIVIDUAL
        for wid, key in _PROFILE_FIELDS.items():
            w = self.ids.get(wid)
            if w:
                w.text = str(data.get(key) or "")
        self.profile_error = ""
        self.password_error = ""

    def select_account_type(self, value: str):
        msg = check_account_type(value, self.locked_account_type or None)
        if msg:
            show_message("Account Type", msg)
            return
        self.account_type = value

    # -----------------------
    # Profile details
    # -----------------------
    def save_details(self):
        if self.saving:
            return
        fields = dict(
            account_type=self.account_type,
            first_name=self._get("first_name_input"),
            last_name=self._get("last_name_input"),
            company_name=self._get("company_input"),
            city=self._get("city_input"),
            address=self._get("address_input"),
            country=self._get("country_input"),
        )
        errs = validate_profile(**fields)
        if errs:
            self.profile_error = "\n".join(errs.values())
            return

        self.profile_error = ""
        self.saving = True
        app = self._app()
        payload = profile_payload(**fields)

        def work():
            data = app.api.update_profile(payload)
            app.auth.refresh_user()
            return data

        def done(data, err):
            self.saving = False
            if err is not None:
                Logger.warning("ProfileScreen: update failed (%s)", err)
                self.profile_error = "Failed to update profile. Please try again."
                return
            self.locked_account_type = self.account_type
            show_message("Profile", (data or {}).get("message") or "Profile updated successfully")

        run_in_background(work, done)

    # -----------------------
    # Password
    # -----------------------
    def change_password(self):
        if self.changing_password:
            return
        current = self._get("current_password_input")
        new = self._get("new_password_input")
        confirm = self._get("confirm_password_input")
        errs = validate_password_change(current, new, confirm)
        if errs:
            self.password_error = errs["form"]
            return

        self.password_error = ""
        self.changing_password = True
        api = self._app().api

        def done(data, err):
            self.changing_password = False
            if err is not None:
                if isinstance(err, ApiError) and err.status_code == 409:
                    self.password_error = "Incorrect password. Please try again."
                else:
                    self.password_error = "An unexpected error occurred. Please try again."
                return
            for wid in _PASSWORD_FIELDS:
                w = self.ids.get(wid)
                if w:
                    w.text = ""
            show_message("Password", (data or {}).get("message") or "Password changed successfully")

        run_in_background(lambda: api.change_password(old_password=current, new_password=new), done)
