from __future__ import annotations

from typing import Any, Dict, Optional

from kivy.logger import Logger

from publisher_app.utils.api import ApiClient, ApiError
from publisher_app.utils.storage import SessionManager


def user_data(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return dict((user or {}).get("userdata") or {})


def is_email_verified(user: Optional[Dict[str, Any]]) -> bool:
    return bool(user_data(user).get("isEmailVerified"))


def is_profile_complete(user: Optional[Dict[str, Any]]) -> bool:
    data = user_data(user)
    return all(data.get(k) for k in ("Address", "City", "Country"))


def balance(user: Optional[Dict[str, Any]]) -> float:
    try:
        return float(user_data(user).get("Balance") or 0)
    except (TypeError, ValueError):
        return 0.0


class AuthService:
    """Login, signup and profile refresh on top of the explicit session."""

    def __init__(self, api: ApiClient, session: SessionManager):
        self.api = api
        self.session = session

    def login(self, *, email: str, password: str, remember: bool = False) -> Dict[str, Any]:
        data = self.api.login(email=email, password=password)
        token = data.get("token")
        if not token:
            raise ApiError("Invalid credentials")
        self.session.login(token=token, remember=remember)
        user = self.refresh_user()
        if user is None:
            raise ApiError("Failed to load your profile")
        Logger.info("AuthService: signed in")
        return user

    def signup(self, *, username: str, email: str, password: str, telegram_username: str) -> str:
        data = self.api.signup(
            username=username,
            email=email,
            password=password,
            telegram_username=telegram_username,
        )
        return str(data.get("message") or "Registered successfully. Please login.")

    def refresh_user(self) -> Optional[Dict[str, Any]]:
        """
        Re-fetch the profile with the current token. A failed fetch means the
        token is no longer good, so the session is dropped.
        """
        if not self.session.token:
            return None
        try:
            user = self.api.get_profile()
        except ApiError as exc:
            Logger.warning("AuthService: profile fetch failed (%s), signing out", exc)
            self.session.logout()
            return None
        self.session.set_user(user)
        return user

    def restore(self) -> bool:
        """App start: reuse a remembered token if the backend still accepts it."""
        if not self.session.hydrate():
            return False
        return self.refresh_user() is not None

    def logout(self) -> None:
        self.session.logout()
        Logger.info("AuthService: signed out")
