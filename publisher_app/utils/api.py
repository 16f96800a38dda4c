from __future__ import annotations

import os
from enum import Enum
from typing import Any, Dict, Optional

import requests
import urllib3

from publisher_app.utils.schemas import MessageResponse, OtpIssued, OtpVerified
from publisher_app.utils.storage import SessionManager


class ApiError(RuntimeError):
    """
    Any failed backend call.

    `message` is the server-supplied text (None when the server gave none or
    the request never reached it); `status_code` is None for transport errors.
    """

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message or (f"Request failed ({status_code})" if status_code else "Request failed"))


class OtpPurpose(str, Enum):
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"


def _base_url() -> str:
    return os.getenv("BACKEND_URL", "https://adsplatformback.strtesting.com/api").rstrip("/")


def _timeout() -> float:
    try:
        return float(os.getenv("API_TIMEOUT", "20"))
    except ValueError:
        return 20.0


def _verify_tls() -> bool:
    return os.getenv("API_VERIFY_TLS", "1").strip().lower() not in ("0", "false", "no")


def _raise(resp: requests.Response) -> None:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if resp.status_code >= 300:
        msg = None
        if isinstance(data, dict):
            msg = data.get("message") or data.get("detail")
        raise ApiError(msg, status_code=resp.status_code)


class ApiClient:
    """Thin wrapper over the publisher backend; every call returns the decoded JSON body."""

    def __init__(self, session: SessionManager, http: Optional[requests.Session] = None):
        self.session = session
        self.http = http or requests.Session()
        if not _verify_tls():
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _headers(self, auth: bool = True) -> Dict[str, str]:
        h = {"content-type": "application/json"}
        if auth and self.session.token:
            h["authorization"] = f"Bearer {self.session.token}"
        return h

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = True,
    ) -> Dict[str, Any]:
        try:
            r = self.http.request(
                method,
                f"{_base_url()}{path}",
                json=json,
                params=params,
                headers=self._headers(auth),
                timeout=_timeout(),
                verify=_verify_tls(),
            )
        except requests.RequestException as exc:
            raise ApiError(None) from exc
        _raise(r)
        try:
            data = r.json()
        except ValueError as exc:
            raise ApiError(None, status_code=r.status_code) from exc
        return data if isinstance(data, dict) else {"data": data}

    # ---------- auth ----------
    def login(self, *, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", json={"Email": email, "Password": password}, auth=False)

    def signup(
        self,
        *,
        username: str,
        email: str,
        password: str,
        telegram_username: str,
        role: str = "Publisher",
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/auth/signup",
            json={
                "Email": email,
                "Username": username,
                "Password": password,
                "TelegramUsername": telegram_username,
                "Role": role,
            },
            auth=False,
        )

    def send_otp(self, *, email: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/request-reset", json={"email": email}, auth=False)

    def verify_otp(self, *, email: str, otp: str, purpose: OtpPurpose) -> Dict[str, Any]:
        params = {"Verification": "EmailVerification"} if purpose == OtpPurpose.EMAIL_VERIFICATION else None
        # Backend stores codes as numbers.
        return self._request("POST", "/auth/verify-otp", json={"email": email, "otp": int(otp)}, params=params)

    def reset_password(self, *, token: str, new_password: str) -> Dict[str, Any]:
        return self._request(
            "PUT", "/auth/reset-password", json={"token": token, "newPassword": new_password}, auth=False
        )

    # ---------- profile ----------
    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/getprofile")

    def update_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", "/auth/updateprofile", json=profile)

    def change_password(self, *, old_password: str, new_password: str) -> Dict[str, Any]:
        return self._request(
            "PUT", "/auth/changepassword", json={"OldPassword": old_password, "NewPassword": new_password}
        )

    # ---------- sites ----------
    def get_user_websites(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "/user/getuserwebsites", params=params or {})

    def create_app_request(self, form: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/user/createappRequest", json=form)

    # ---------- withdrawals ----------
    def get_active_networks(self) -> Dict[str, Any]:
        return self._request("GET", "/user/getactivenetworks")

    def withdraw_request(self, *, network_id: str, wallet_address: str, amount: float) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/user/withdrawrequest",
            json={"NetworkId": network_id, "WalletAddress": wallet_address, "AmountInUSD": amount},
        )

    def get_user_withdrawals(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "/user/getuserwithdrawals", params=params or {})

    # ---------- statistics ----------
    def get_user_stats(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "/user/getuserstats", params=params or {})

    # ---------- support ----------
    def get_support_data(self) -> Dict[str, Any]:
        return self._request("GET", "/user/getSupportdata")

    def support_mail(self, *, subject: str, message: str) -> Dict[str, Any]:
        return self._request("POST", "/user/supportmail", json={"Subject": subject, "Message": message})


class ApiOtpService:
    """Remote OTP service backed by ApiClient, returning parsed response models."""

    def __init__(self, client: ApiClient):
        self.client = client

    def send_code(self, email: str) -> OtpIssued:
        return OtpIssued.model_validate(self.client.send_otp(email=email))

    def verify_code(self, email: str, code: str, purpose: OtpPurpose) -> OtpVerified:
        return OtpVerified.model_validate(self.client.verify_otp(email=email, otp=code, purpose=purpose))

    def reset_password(self, token: str, new_password: str) -> MessageResponse:
        return MessageResponse.model_validate(
            self.client.reset_password(token=token, new_password=new_password)
        )
