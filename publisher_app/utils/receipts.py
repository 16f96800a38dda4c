from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from kivy.logger import Logger

from publisher_app.utils.auth import user_data
from publisher_app.utils.schemas import SupportData

SERVICE_DESCRIPTION = "Online advertising services"
RULE = "-" * 48


@dataclass
class Party:
    name: str = ""
    address: str = ""


@dataclass
class Receipt:
    transaction_id: str
    transaction_date: str
    network: str
    sender: Party
    recipient: Party
    items: List[Tuple[str, float]] = field(default_factory=list)
    total: float = 0.0
    wallet_address: str = ""


def _join_address(*parts: Optional[str]) -> str:
    return ", ".join(str(p) for p in parts if p)


def _transaction_date(value: Any) -> str:
    """createdAt as YYYY-MM-DD in UTC; unparseable input is kept as given."""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%d")


def _recipient(user: Optional[Dict[str, Any]]) -> Party:
    data = user_data(user)
    account_type = data.get("AccountType")
    if account_type == "Individual":
        name = f"{data.get('FirstName') or ''} {data.get('LastName') or ''}".strip()
    elif account_type == "Company":
        name = str(data.get("CompanyName") or "")
    else:
        # No account type yet: no recipient block at all.
        return Party()
    return Party(name=name, address=_join_address(data.get("Address"), data.get("City"), data.get("Country")))


def build_receipt(withdrawal: Dict[str, Any], user: Optional[Dict[str, Any]], support: SupportData) -> Receipt:
    """Receipt for one transferred withdrawal, issued by the support company to the user."""
    network = withdrawal.get("NetworkId")
    try:
        amount = float(withdrawal.get("AmountInUSD") or 0)
    except (TypeError, ValueError):
        amount = 0.0
    return Receipt(
        transaction_id=str(withdrawal.get("_id") or ""),
        transaction_date=_transaction_date(withdrawal.get("createdAt")),
        network=str(network.get("Network") or "") if isinstance(network, dict) else "",
        sender=Party(
            name=support.company_name,
            address=_join_address(support.address, support.city, support.country),
        ),
        recipient=_recipient(user),
        items=[(SERVICE_DESCRIPTION, amount)],
        total=amount,
        wallet_address=str(withdrawal.get("WalletAddress") or ""),
    )


def render_receipt(receipt: Receipt) -> str:
    lines = [
        "PAYMENT RECEIPT",
        RULE,
        f"Transaction Date: {receipt.transaction_date}",
        f"Transaction ID: {receipt.transaction_id}",
        f"Network: {receipt.network}",
        "",
        "FROM:",
        receipt.sender.name,
        receipt.sender.address,
        "",
        "TO:",
        receipt.recipient.name,
        receipt.recipient.address,
        "",
        f"{'Description':<32}{'Amount (USD)':>16}",
        RULE,
    ]
    for description, amount in receipt.items:
        lines.append(f"{description:<32}{amount:>16.2f}")
    lines += [
        RULE,
        f"{'Total':<32}{receipt.total:>16.2f}",
        "",
        "Wallet Address:",
        receipt.wallet_address,
    ]
    return "\n".join(lines) + "\n"


def receipt_filename(transaction_id: str) -> str:
    return f"payment_receipt_{transaction_id}.txt"


def save_receipt(receipt: Receipt, directory: str) -> str:
    """Write the rendered receipt into `directory` and return the file path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, receipt_filename(receipt.transaction_id))
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(render_receipt(receipt))
    Logger.info("Receipts: saved %s", path)
    return path
