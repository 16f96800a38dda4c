from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MessageResponse(_ApiModel):
    message: str = ""


class OtpIssued(_ApiModel):
    expires_at: datetime = Field(alias="expiresAt")
    message: str = ""


class OtpVerified(_ApiModel):
    message: str = ""
    token: Optional[str] = None


class Page(_ApiModel):
    """mongoose-paginate style page envelope."""

    docs: List[Dict[str, Any]] = Field(default_factory=list)
    total_docs: int = Field(default=0, alias="totalDocs")
    limit: int = 10
    total_pages: int = Field(default=1, alias="totalPages")
    page: int = 1
    has_prev_page: bool = Field(default=False, alias="hasPrevPage")
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    prev_page: Optional[int] = Field(default=None, alias="prevPage")
    next_page: Optional[int] = Field(default=None, alias="nextPage")

    @classmethod
    def from_envelope(cls, data: Any, key: str) -> "Page":
        body = data.get(key) if isinstance(data, dict) else None
        if not isinstance(body, dict):
            return cls()
        # Servers send null for missing counters; drop them so defaults apply.
        return cls.model_validate({k: v for k, v in body.items() if v is not None})


class Network(_ApiModel):
    id: str = Field(alias="_id")
    name: str = Field(default="", alias="Network")
    min_withdraw: Optional[float] = Field(default=None, alias="MINWithdraw")
    max_withdraw: Optional[float] = Field(default=None, alias="MAXWithdraw")


class Faq(_ApiModel):
    id: str = Field(default="", alias="_id")
    question: str = Field(default="", alias="FAQ")
    answer: str = Field(default="", alias="Answer")
    active: bool = Field(default=False, alias="isFAqActive")


class SupportData(_ApiModel):
    faqs: List[Faq] = Field(default_factory=list, alias="FAQS")
    telegram_support: str = Field(default="", alias="TelegramSupport")
    company_name: str = Field(default="", alias="CompanyName")
    address: str = Field(default="", alias="Address")
    city: str = Field(default="", alias="City")
    country: str = Field(default="", alias="Country")

    def active_faqs(self) -> List[Faq]:
        return [faq for faq in self.faqs if faq.active]


class WithdrawalSummary(_ApiModel):
    """Account totals sent next to the payments page."""

    transferred_amount: float = Field(default=0, alias="TransferredAmount")
    balance: float = Field(default=0, alias="Balance")
    pending_amount: float = Field(default=0, alias="PendingAmount")
    total_amount: float = Field(default=0, alias="totalAmount")
    rejected_amount: float = Field(default=0, alias="rejectedAmount")

    @classmethod
    def from_response(cls, data: Any) -> "WithdrawalSummary":
        body = data.get("withdrawalData") if isinstance(data, dict) else None
        if not isinstance(body, dict):
            return cls()
        return cls.model_validate({k: v for k, v in body.items() if v is not None})
