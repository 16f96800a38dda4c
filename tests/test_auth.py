"""Tests for login / profile refresh on top of the session manager."""

from unittest.mock import MagicMock

import pytest
from kivy.storage.jsonstore import JsonStore

from publisher_app.utils.api import ApiError
from publisher_app.utils.auth import AuthService, balance, is_email_verified, is_profile_complete
from publisher_app.utils.storage import SessionManager

PROFILE = {"userdata": {"Email": "a@b.c", "isEmailVerified": False, "Balance": "12.5"}}


@pytest.fixture
def session(tmp_path):
    return SessionManager(store=JsonStore(str(tmp_path / "session.json")))


@pytest.fixture
def api():
    mock = MagicMock()
    mock.login.return_value = {"token": "tok-1"}
    mock.get_profile.return_value = PROFILE
    return mock


class TestAuthService:
    def test_login_sets_session_and_loads_profile(self, api, session):
        user = AuthService(api, session).login(email="a@b.c", password="pw")

        assert user == PROFILE
        assert session.token == "tok-1"
        assert session.user == PROFILE

    def test_login_without_token_fails(self, api, session):
        api.login.return_value = {}

        with pytest.raises(ApiError):
            AuthService(api, session).login(email="a@b.c", password="pw")

        assert session.is_authenticated is False

    def test_login_with_unusable_token_signs_out(self, api, session):
        api.get_profile.side_effect = ApiError("Unauthorized", status_code=401)

        with pytest.raises(ApiError):
            AuthService(api, session).login(email="a@b.c", password="pw")

        assert session.is_authenticated is False

    def test_restore_uses_remembered_token(self, api, session, tmp_path):
        session.login(token="tok-1", remember=True)
        fresh = SessionManager(store=JsonStore(str(tmp_path / "session.json")))

        assert AuthService(api, fresh).restore() is True
        assert fresh.user == PROFILE

    def test_restore_drops_rejected_token(self, api, session, tmp_path):
        session.login(token="tok-1", remember=True)
        api.get_profile.side_effect = ApiError("Unauthorized", status_code=401)
        fresh = SessionManager(store=JsonStore(str(tmp_path / "session.json")))

        assert AuthService(api, fresh).restore() is False
        assert fresh.is_authenticated is False

    def test_refresh_without_token_is_noop(self, api, session):
        assert AuthService(api, session).refresh_user() is None
        api.get_profile.assert_not_called()

    def test_signup_returns_server_message(self, api, session):
        api.signup.return_value = {"message": "Account created"}

        msg = AuthService(api, session).signup(
            username="u", email="a@b.c", password="pw1234", telegram_username="@u"
        )

        assert msg == "Account created"


class TestUserHelpers:
    def test_email_verified_flag(self):
        assert is_email_verified(PROFILE) is False
        assert is_email_verified({"userdata": {"isEmailVerified": True}}) is True
        assert is_email_verified(None) is False

    def test_profile_complete_needs_address_city_country(self):
        assert is_profile_complete({"userdata": {"Address": "x", "City": "y", "Country": "z"}})
        assert not is_profile_complete({"userdata": {"Address": "x", "City": "", "Country": "z"}})

    def test_balance_parses_numbers(self):
        assert balance(PROFILE) == 12.5
        assert balance({"userdata": {"Balance": "n/a"}}) == 0.0
        assert balance({}) == 0.0
