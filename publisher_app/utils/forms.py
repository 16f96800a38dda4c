"""
Input checks run before any request is sent.

Each validator returns {field: message}; an empty dict means the form is good.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, Optional

from publisher_app.utils.schemas import Network

Errors = Dict[str, str]

ACCOUNT_INDIVIDUAL = "Individual"
ACCOUNT_COMPANY = "Company"
MIN_WALLET_LENGTH = 10


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


def validate_login(email: str, password: str) -> Errors:
    if not email or not password:
        return {"form": "Please enter email and password"}
    return {}


def validate_signup(*, username: str, telegram_username: str, email: str, password: str) -> Errors:
    if not all((username, telegram_username, email, password)):
        return {"form": "Please fill in all required fields"}
    return {}


def validate_site(*, name: str, url: str, app_url: str) -> Errors:
    errs: Errors = {}
    if _blank(name):
        errs["WebsiteName"] = "Website Name is required"
    if _blank(url):
        errs["WebsiteURL"] = "Website URL is required"
    elif not url.startswith("https://"):
        errs["WebsiteURL"] = "URL must start with https://"
    if _blank(app_url):
        errs["WebAPPUrl"] = "Web APP URL is required"
    elif not app_url.startswith("https://t.me/"):
        errs["WebAPPUrl"] = "URL must start with https://t.me/"
    return errs


def check_account_type(requested: str, locked: Optional[str]) -> Optional[str]:
    """Account type is fixed after the first save."""
    if locked and requested != locked:
        return f"Account Type is locked to {locked}. You can't switch to {requested}."
    return None


def validate_profile(
    *,
    account_type: str,
    first_name: str = "",
    last_name: str = "",
    company_name: str = "",
    city: str = "",
    address: str = "",
    country: str = "",
) -> Errors:
    errs: Errors = {}
    if account_type == ACCOUNT_INDIVIDUAL:
        if _blank(first_name):
            errs["first_name"] = "First Name is required"
        if _blank(last_name):
            errs["last_name"] = "Last Name is required"
    elif account_type == ACCOUNT_COMPANY:
        if _blank(company_name):
            errs["company_name"] = "Company Name is required"
    if _blank(city):
        errs["city"] = "City is required"
    if _blank(address):
        errs["address"] = "Address is required"
    if _blank(country):
        errs["country"] = "Country is required"
    return errs


def profile_payload(
    *,
    account_type: str,
    first_name: str = "",
    last_name: str = "",
    company_name: str = "",
    city: str = "",
    address: str = "",
    country: str = "",
) -> Dict[str, str]:
    payload = {"AccountType": account_type, "Address": address, "City": city, "Country": country}
    if account_type == ACCOUNT_INDIVIDUAL:
        payload.update(FirstName=first_name, LastName=last_name)
    else:
        payload["CompanyName"] = company_name
    return payload


def validate_password_change(current: str, new: str, confirm: str) -> Errors:
    if not current or not new or not confirm:
        return {"form": "Please fill in all password fields"}
    if new != confirm:
        return {"form": "New password and confirmation do not match"}
    return {}


def validate_withdrawal(
    *,
    network_id: str,
    wallet_address: str,
    amount: str,
    balance: float,
    networks: Iterable[Network] = (),
) -> Errors:
    errs: Errors = {}
    if not network_id:
        errs["network_id"] = "Network is required"
    if not wallet_address:
        errs["wallet_address"] = "Wallet address is required"
    elif len(wallet_address) < MIN_WALLET_LENGTH:
        errs["wallet_address"] = "Please enter a valid wallet address"

    selected = next((n for n in networks if n.id == network_id), None)
    min_withdraw = selected.min_withdraw if selected else None
    max_withdraw = selected.max_withdraw if selected else None

    try:
        amt = float(amount)
    except (TypeError, ValueError):
        amt = None

    if balance <= 0:
        errs["amount"] = "Insufficient balance to make a withdrawal"
    elif amt is None or math.isnan(amt) or amt <= 0:
        errs["amount"] = "Please enter a valid amount"
    elif amt > balance:
        errs["amount"] = f"Amount exceeds your available balance ({balance:g} USDT)"
    elif min_withdraw is not None and amt < min_withdraw:
        errs["amount"] = f"Amount must be at least {min_withdraw:g} USDT for this network"
    elif max_withdraw is not None and amt > max_withdraw:
        errs["amount"] = f"Amount must not exceed {max_withdraw:g} USDT for this network"
    return errs


def validate_support_request(subject: str, message: str) -> Errors:
    if _blank(subject):
        return {"subject": "Please enter a subject."}
    if _blank(message):
        return {"message": "Please enter a message."}
    return {}
