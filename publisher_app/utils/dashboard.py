from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

ROWS_PER_PAGE_CHOICES = (5, 10, 20, 50)
WITHDRAWAL_STATUSES = ("PENDING", "TRANSFERRED", "REJECTED")

PageItem = Union[int, str]


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date_for_api(value: Optional[date]) -> Optional[str]:
    if not value:
        return None
    return value.strftime("%Y-%m-%d")


def format_date(value: Optional[str]) -> str:
    """ISO timestamp -> DD-MM-YYYY; unparseable input is shown as-is."""
    if not value:
        return ""
    parsed = _parse_iso(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%d-%m-%Y")


def format_created_at(value: Optional[str]) -> str:
    """ISO timestamp -> DD-MM-YY in UTC."""
    parsed = _parse_iso(value)
    if parsed is None:
        return "N/A"
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%d-%m-%y")


def shorten_wallet(address: Optional[str]) -> str:
    if not address or len(address) <= 12:
        return address or ""
    return f"{address[:6]}...{address[-6:]}"


def status_label(is_active: bool) -> str:
    return "Active" if is_active else "Inactive"


def format_amount(value: Any) -> str:
    try:
        return f"{float(value):,.2f}"
    except (TypeError, ValueError):
        return "0.00"


def pagination_pages(current: int, total: int, delta: int = 2) -> List[PageItem]:
    """
    Page buttons with ellipses: first, last and `delta` neighbours of the
    current page. A gap of exactly one page shows that page instead of "...".
    """
    pages = [
        i for i in range(1, total + 1)
        if i == 1 or i == total or current - delta <= i <= current + delta
    ]
    out: List[PageItem] = []
    last = None
    for i in pages:
        if last is not None:
            if i - last == 2:
                out.append(last + 1)
            elif i - last != 1:
                out.append("...")
        out.append(i)
        last = i
    return out


@dataclass
class SiteQuery:
    page: int = 1
    limit: int = 10
    search: str = ""
    created_on: Optional[date] = None
    # "all", "true" or "false", as picked in the status filter.
    status: str = "all"

    def params(self) -> Dict[str, Any]:
        p: Dict[str, Any] = {"page": self.page, "limit": self.limit}
        if self.search.strip():
            p["WebsiteName"] = self.search.strip()
        if self.created_on:
            p["createdAt"] = format_date_for_api(self.created_on)
        if self.status == "true":
            p["isActive"] = True
        elif self.status == "false":
            p["isActive"] = False
        return p


@dataclass
class WithdrawalQuery:
    page: int = 1
    limit: int = 10
    status: str = ""
    network: str = ""
    wallet: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def date_range_ready(self) -> bool:
        """Either both ends picked or neither; half a range does not refetch."""
        return bool(self.start_date) == bool(self.end_date)

    def params(self) -> Dict[str, Any]:
        p: Dict[str, Any] = {"page": self.page, "limit": self.limit}
        if self.status:
            p["status"] = self.status
        if self.network:
            p["network"] = self.network
        if self.wallet.strip():
            p["wallet"] = self.wallet.strip()
        if self.start_date and self.end_date:
            p["startDate"] = format_date_for_api(self.start_date)
            p["endDate"] = format_date_for_api(self.end_date)
        return p

    def clear(self) -> None:
        self.page = 1
        self.status = ""
        self.network = ""
        self.wallet = ""
        self.start_date = None
        self.end_date = None


PAYMENT_STATUS = "TRANSFERRED"


@dataclass
class PaymentQuery(WithdrawalQuery):
    """Payments are transferred withdrawals; the status filter is fixed."""

    status: str = PAYMENT_STATUS

    def params(self) -> Dict[str, Any]:
        p = super().params()
        p["status"] = PAYMENT_STATUS
        return p

    def clear(self) -> None:
        super().clear()
        self.status = PAYMENT_STATUS


@dataclass
class StatsQuery:
    page: int = 1
    limit: int = 10
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    website_id: str = ""

    def params(self) -> Dict[str, Any]:
        p: Dict[str, Any] = {"page": self.page, "limit": self.limit}
        if self.start_date:
            p["startDate"] = format_date_for_api(self.start_date)
        if self.end_date:
            p["endDate"] = format_date_for_api(self.end_date)
        if self.website_id:
            p["website_id"] = self.website_id
        return p

    def go_to(self, page: int, total_pages: int) -> bool:
        if page < 1 or page > total_pages:
            return False
        self.page = page
        return True


def parse_date_input(value: str) -> Optional[date]:
    """Typed YYYY-MM-DD filter value; blank or malformed input means no filter."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def site_row(item: Dict[str, Any]) -> List[str]:
    return [
        str(item.get("WebsiteName") or ""),
        str(item.get("WebsiteURL") or ""),
        str(item.get("WebAPPUrl") or ""),
        format_date(item.get("createdAt")),
        status_label(bool(item.get("isActive"))),
    ]


def _nested_name(value: Any, key: str, fallback: str) -> str:
    if isinstance(value, dict):
        return str(value.get(key) or fallback)
    return fallback


def stat_row(item: Dict[str, Any]) -> List[str]:
    return [
        format_date(item.get("createdAt")),
        _nested_name(item.get("website_id"), "WebsiteName", "Unknown"),
        f"{int(item.get('impressions') or 0):,}",
        f"{float(item.get('CPM') or 0):.2f}",
        format_amount(item.get("Profit") or 0),
    ]


def withdrawal_row(item: Dict[str, Any]) -> List[str]:
    return [
        format_created_at(item.get("createdAt")),
        _nested_name(item.get("NetworkId"), "Network", "-"),
        shorten_wallet(item.get("WalletAddress")),
        format_amount(item.get("AmountInUSD")),
        format_amount(item.get("FeeInUSD")),
        str(item.get("Status") or ""),
    ]


def match_website_id(docs: List[Dict[str, Any]], name: str) -> str:
    """
    Website filter on the statistics list: first loaded row whose website name
    contains `name` (case-insensitive). Blank name clears the filter.
    """
    needle = (name or "").strip().lower()
    if not needle:
        return ""
    for item in docs:
        site = item.get("website_id")
        if isinstance(site, dict) and needle in str(site.get("WebsiteName") or "").lower():
            return str(site.get("_id") or "")
    return ""


def _usd(item: Dict[str, Any], key: str) -> float:
    try:
        return float(item.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def payment_row(item: Dict[str, Any]) -> List[str]:
    amount = _usd(item, "AmountInUSD")
    fee = _usd(item, "FeeInUSD")
    return [
        format_created_at(item.get("createdAt")),
        shorten_wallet(item.get("WalletAddress")),
        _nested_name(item.get("NetworkId"), "Network", "-"),
        format_amount(amount + fee),
        format_amount(fee),
        format_amount(amount),
        str(item.get("Status") or ""),
    ]


def payment_totals(docs: List[Dict[str, Any]]) -> Dict[str, float]:
    """Footer sums for the loaded page: gross (amount + fee), fee and net."""
    fee = sum(_usd(d, "FeeInUSD") for d in docs)
    net = sum(_usd(d, "AmountInUSD") for d in docs)
    return {"total": net + fee, "fee": fee, "amount": net}
