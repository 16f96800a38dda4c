from __future__ import annotations

from typing import Any, Dict, List

from kivy.app import App
from kivy.logger import Logger
from kivy.properties import BooleanProperty, ListProperty, StringProperty
from kivy.uix.screenmanager import Screen

from publisher_app.utils.dashboard import (
    PaymentQuery,
    format_amount,
    format_created_at,
    parse_date_input,
    payment_row,
    payment_totals,
)
from publisher_app.utils.popup import show_message
from publisher_app.utils.receipts import build_receipt, save_receipt
from publisher_app.utils.schemas import Network, Page, SupportData, WithdrawalSummary
from publisher_app.utils.worker import run_in_background

PAYMENT_HEADERS = ("Date", "Wallet", "Network", "Total", "Fee", "Amount", "Status")
ALL = "All"


class PaymentsScreen(Screen):
    """Transferred withdrawals with account totals and per-payment text receipts."""

    transferred_text = StringProperty("0.00")
    balance_text = StringProperty("0.00")
    pending_text = StringProperty("0.00")
    total_text = StringProperty("0.00")
    rejected_text = StringProperty("0.00")
    footer_text = StringProperty("")
    network_names = ListProperty([])
    receipt_choices = ListProperty([])
    loading = BooleanProperty(False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.query = PaymentQuery()
        self.networks: List[Network] = []
        self.support = SupportData()
        self._payments: Dict[str, Dict[str, Any]] = {}

    def _app(self):
        return App.get_running_app()

    def _get(self, wid: str) -> str:
        w = self.ids.get(wid)
        return (w.text or "").strip() if w else ""

    def on_enter(self, *args):
        self.load_support_data()
        self.load_networks()
        self.fetch_payments()

    def load_support_data(self):
        api = self._app().api

        def done(data, err):
            if err is not None:
                Logger.warning("PaymentsScreen: support data failed (%s)", err)
                return
            self.support = SupportData.model_validate((data or {}).get("Supportdata") or {})

        run_in_background(api.get_support_data, done)

    def load_networks(self):
        api = self._app().api

        def done(data: Any, err):
            if err is not None:
                Logger.warning("PaymentsScreen: networks failed (%s)", err)
                return
            docs = ((data or {}).get("networks") or {}).get("docs") or []
            self.networks = [Network.model_validate(d) for d in docs]
            self.network_names = [n.name for n in self.networks]

        run_in_background(api.get_active_networks, done)

    # -----------------------
    # List
    # -----------------------
    def apply_filters(self):
        name = self._get("network_filter")
        net = next((n for n in self.networks if n.name == name), None)
        self.query.network = net.id if net else ""
        self.query.wallet = self._get("wallet_filter")
        self.query.start_date = parse_date_input(self._get("start_date_input"))
        self.query.end_date = parse_date_input(self._get("end_date_input"))
        if not self.query.date_range_ready:
            show_message("Date range", "Pick both a start and an end date.")
            return
        limit = self._get("limit_spinner")
        if limit.isdigit():
            self.query.limit = int(limit)
        self.query.page = 1
        self.fetch_payments()

    def clear_filters(self):
        self.query.clear()
        for wid in ("wallet_filter", "start_date_input", "end_date_input"):
            w = self.ids.get(wid)
            if w:
                w.text = ""
        w = self.ids.get("network_filter")
        if w:
            w.text = ALL
        self.fetch_payments()

    def go_to_page(self, page: int):
        self.query.page = page
        self.fetch_payments()

    def fetch_payments(self):
        if self.loading:
            return
        self.loading = True
        table = self.ids.get("payments_table")
        if table:
            table.show_message("Loading payments...")
        api = self._app().api
        params = self.query.params()

        def done(data: Any, err):
            self.loading = False
            if err is not None:
                Logger.warning("PaymentsScreen: load failed (%s)", err)
                if table:
                    table.show_message("Failed to load withdrawal data")
                return
            self._render(Page.from_envelope(data, "withdrawals"), WithdrawalSummary.from_response(data))

        run_in_background(lambda: api.get_user_withdrawals(params), done)

    def _render(self, page: Page, summary: WithdrawalSummary):
        self.transferred_text = format_amount(summary.transferred_amount)
        self.balance_text = format_amount(summary.balance)
        self.pending_text = format_amount(summary.pending_amount)
        self.total_text = format_amount(summary.total_amount)
        self.rejected_text = format_amount(summary.rejected_amount)

        table = self.ids.get("payments_table")
        if table:
            table.show(PAYMENT_HEADERS, [payment_row(d) for d in page.docs], empty_text="No withdrawals found")
        pager = self.ids.get("payments_pager")
        if pager:
            pager.show(page.page, page.total_pages, self.go_to_page)

        totals = payment_totals(page.docs)
        self.footer_text = (
            f"Page total: {format_amount(totals['total'])}  Fee: {format_amount(totals['fee'])}"
            if page.docs else ""
        )

        self._payments = {}
        for doc in page.docs:
            label = f"{format_created_at(doc.get('createdAt'))}  {format_amount(doc.get('AmountInUSD'))} USD  #{str(doc.get('_id') or '')[-6:]}"
            self._payments[label] = doc
        self.receipt_choices = list(self._payments)
        spinner = self.ids.get("receipt_spinner")
        if spinner:
            spinner.text = ""

    # -----------------------
    # Receipts
    # -----------------------
    def download_receipt(self):
        doc = self._payments.get(self._get("receipt_spinner"))
        if doc is None:
            show_message("Receipt", "Pick a payment first.")
            return
        app = self._app()
        receipt = build_receipt(doc, app.session.user, self.support)
        try:
            path = save_receipt(receipt, app.user_data_dir)
        except OSError as exc:
            Logger.warning("PaymentsScreen: receipt not saved (%s)", exc)
            show_message("Receipt", "Could not save the receipt.")
            return
        show_message("Receipt", f"Saved to\n{path}", dismiss_after=4)
