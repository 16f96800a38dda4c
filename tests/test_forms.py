"""Tests for pre-request form validation."""

import pytest

from publisher_app.utils.forms import (
    check_account_type,
    profile_payload,
    validate_login,
    validate_password_change,
    validate_profile,
    validate_signup,
    validate_site,
    validate_support_request,
    validate_withdrawal,
)
from publisher_app.utils.schemas import Network

NETWORKS = [Network.model_validate({"_id": "trc20", "Network": "TRC20", "MINWithdraw": 10, "MAXWithdraw": 500})]
WALLET = "TXYZ1234567890"


class TestAuthForms:
    def test_login_requires_both_fields(self):
        assert validate_login("a@b.c", "") == {"form": "Please enter email and password"}
        assert validate_login("a@b.c", "pw") == {}

    def test_signup_requires_all_fields(self):
        assert validate_signup(username="u", telegram_username="", email="a@b.c", password="x")
        assert validate_signup(username="u", telegram_username="@u", email="a@b.c", password="x") == {}


class TestSiteForm:
    def test_valid(self):
        assert validate_site(name="Blog", url="https://blog.io", app_url="https://t.me/blogbot") == {}

    def test_required_fields(self):
        errs = validate_site(name=" ", url="", app_url="")

        assert set(errs) == {"WebsiteName", "WebsiteURL", "WebAPPUrl"}

    def test_url_prefixes(self):
        errs = validate_site(name="Blog", url="http://blog.io", app_url="https://telegram.me/x")

        assert errs["WebsiteURL"] == "URL must start with https://"
        assert errs["WebAPPUrl"] == "URL must start with https://t.me/"


class TestProfileForm:
    def test_individual_fields(self):
        errs = validate_profile(account_type="Individual", city="c", address="a", country="IN")

        assert set(errs) == {"first_name", "last_name"}

    def test_company_fields(self):
        errs = validate_profile(account_type="Company", company_name="Acme", city="", address="a", country="")

        assert set(errs) == {"city", "country"}

    def test_account_type_lock(self):
        assert check_account_type("Company", "Individual").startswith("Account Type is locked")
        assert check_account_type("Individual", "Individual") is None
        assert check_account_type("Company", None) is None

    def test_payload_per_type(self):
        ind = profile_payload(account_type="Individual", first_name="A", last_name="B", city="c", address="a", country="IN")
        comp = profile_payload(account_type="Company", company_name="Acme", city="c", address="a", country="IN")

        assert ind["FirstName"] == "A" and "CompanyName" not in ind
        assert comp["CompanyName"] == "Acme" and "FirstName" not in comp


class TestPasswordChange:
    def test_rules(self):
        assert validate_password_change("", "n", "n")
        assert validate_password_change("o", "n1", "n2") == {"form": "New password and confirmation do not match"}
        assert validate_password_change("o", "n1", "n1") == {}


class TestWithdrawalForm:
    def _check(self, amount, balance=100.0, network_id="trc20", wallet=WALLET):
        return validate_withdrawal(
            network_id=network_id, wallet_address=wallet, amount=amount, balance=balance, networks=NETWORKS
        )

    def test_valid(self):
        assert self._check("50") == {}

    def test_network_and_wallet(self):
        errs = self._check("50", network_id="", wallet="short")

        assert errs["network_id"] == "Network is required"
        assert errs["wallet_address"] == "Please enter a valid wallet address"

    @pytest.mark.parametrize(
        "amount,balance,message",
        [
            ("50", 0, "Insufficient balance to make a withdrawal"),
            ("abc", 100, "Please enter a valid amount"),
            ("-1", 100, "Please enter a valid amount"),
            ("150", 100, "Amount exceeds your available balance (100 USDT)"),
            ("5", 100, "Amount must be at least 10 USDT for this network"),
            ("600", 1000, "Amount must not exceed 500 USDT for this network"),
        ],
    )
    def test_amount_rules(self, amount, balance, message):
        assert self._check(amount, balance=balance)["amount"] == message


class TestSupportForm:
    def test_rules(self):
        assert validate_support_request(" ", "m") == {"subject": "Please enter a subject."}
        assert validate_support_request("s", "") == {"message": "Please enter a message."}
        assert validate_support_request("s", "m") == {}
