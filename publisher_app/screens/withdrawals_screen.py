from __future__ import annotations

from typing import Any, Dict, List

from kivy.app import App
from kivy.logger import Logger
from kivy.properties import BooleanProperty, ListProperty, StringProperty
from kivy.uix.screenmanager import Screen

from publisher_app.utils.auth import balance, is_profile_complete
from publisher_app.utils.dashboard import (
    WITHDRAWAL_STATUSES,
    WithdrawalQuery,
    format_amount,
    parse_date_input,
    withdrawal_row,
)
from publisher_app.utils.forms import validate_withdrawal
from publisher_app.utils.popup import show_confirm, show_message
from publisher_app.utils.schemas import Network, Page
from publisher_app.utils.worker import run_in_background

WITHDRAWAL_HEADERS = ("Date", "Network", "Wallet", "Amount", "Fee", "Status")
ALL = "All"


class WithdrawalsScreen(Screen):
    balance_text = StringProperty("0.00")
    network_names = ListProperty([])
    status_choices = ListProperty([ALL, *WITHDRAWAL_STATUSES])
    network_limits = StringProperty("")
    form_error = StringProperty("")
    loading = BooleanProperty(False)
    submitting = BooleanProperty(False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.query = WithdrawalQuery()
        self.networks: List[Network] = []

    def _app(self):
        return App.get_running_app()

    def _get(self, wid: str) -> str:
        w = self.ids.get(wid)
        return (w.text or "").strip() if w else ""

    def on_enter(self, *args):
        self._update_balance()
        self.load_networks()
        self.fetch_withdrawals()

    def _update_balance(self):
        self.balance_text = format_amount(balance(self._app().session.user))

    def _network_by_name(self, name: str):
        return next((n for n in self.networks if n.name == name), None)

    # -----------------------
    # Networks
    # -----------------------
    def load_networks(self):
        api = self._app().api

        def done(data: Any, err):
            if err is not None:
                Logger.warning("WithdrawalsScreen: networks failed (%s)", err)
                return
            docs = ((data or {}).get("networks") or {}).get("docs") or []
            self.networks = [Network.model_validate(d) for d in docs]
            self.network_names = [n.name for n in self.networks]

        run_in_background(api.get_active_networks, done)

    def on_network_selected(self, name: str):
        net = self._network_by_name(name)
        if net is None or net.min_withdraw is None or net.max_withdraw is None:
            self.network_limits = ""
            return
        self.network_limits = f"Min: {net.min_withdraw:g} USDT, Max: {net.max_withdraw:g} USDT"

    # -----------------------
    # Withdrawal request
    # -----------------------
    def submit(self):
        if self.submitting:
            return
        user = self._app().session.user
        if not is_profile_complete(user):
            show_message(
                "Profile incomplete",
                "Please verify and update your profile with\nAddress, City, and Country before withdrawing.",
                dismiss_after=4,
            )
            return

        network = self._network_by_name(self._get("network_spinner"))
        network_id = network.id if network else ""
        wallet = self._get("wallet_input")
        amount = self._get("amount_input")
        errs = validate_withdrawal(
            network_id=network_id,
            wallet_address=wallet,
            amount=amount,
            balance=balance(user),
            networks=self.networks,
        )
        if errs:
            self.form_error = "\n".join(errs.values())
            return

        self.form_error = ""
        summary = f"Network: {network.name}\nWallet: {wallet}\nAmount: {float(amount):g} USDT"
        show_confirm(
            "Confirm withdrawal",
            summary,
            lambda: self._send(network_id, wallet, float(amount)),
        )

    def _send(self, network_id: str, wallet: str, amount: float):
        self.submitting = True
        app = self._app()

        def work():
            data = app.api.withdraw_request(network_id=network_id, wallet_address=wallet, amount=amount)
            app.auth.refresh_user()
            return data

        def done(data: Dict[str, Any], err):
            self.submitting = False
            if err is not None:
                Logger.warning("WithdrawalsScreen: request failed (%s)", err)
                show_message("Error", "Something went wrong while submitting withdrawal")
                return
            show_message("Withdrawal", (data or {}).get("message") or "Withdrawal request submitted")
            for wid in ("wallet_input", "amount_input"):
                w = self.ids.get(wid)
                if w:
                    w.text = ""
            spinner = self.ids.get("network_spinner")
            if spinner:
                spinner.text = ""
            self.network_limits = ""
            self._update_balance()
            self.query.page = 1
            self.fetch_withdrawals()

        run_in_background(work, done)

    # -----------------------
    # History
    # -----------------------
    def apply_filters(self):
        status = self._get("status_filter")
        self.query.status = "" if status in ("", ALL) else status
        net = self._network_by_name(self._get("network_filter"))
        self.query.network = net.id if net else ""
        self.query.wallet = self._get("wallet_filter")
        self.query.start_date = parse_date_input(self._get("start_date_input"))
        self.query.end_date = parse_date_input(self._get("end_date_input"))
        if not self.query.date_range_ready:
            show_message("Date range", "Pick both a start and an end date.")
            return
        self.query.page = 1
        self.fetch_withdrawals()

    def clear_filters(self):
        self.query.clear()
        for wid in ("wallet_filter", "start_date_input", "end_date_input"):
            w = self.ids.get(wid)
            if w:
                w.text = ""
        for wid in ("status_filter", "network_filter"):
            w = self.ids.get(wid)
            if w:
                w.text = ALL
        self.fetch_withdrawals()

    def go_to_page(self, page: int):
        self.query.page = page
        self.fetch_withdrawals()

    def fetch_withdrawals(self):
        if self.loading:
            return
        self.loading = True
        table = self.ids.get("withdrawals_table")
        if table:
            table.show_message("Loading withdrawals...")
        api = self._app().api
        params = self.query.params()

        def done(data: Any, err):
            self.loading = False
            if err is not None:
                Logger.warning("WithdrawalsScreen: load failed (%s)", err)
                if table:
                    table.show_message("Failed to load withdrawals.")
                return
            page = Page.from_envelope(data, "withdrawals")
            if table:
                table.show(WITHDRAWAL_HEADERS, [withdrawal_row(d) for d in page.docs], empty_text="No withdrawals found")
            pager = self.ids.get("withdrawals_pager")
            if pager:
                pager.show(page.page, page.total_pages, self.go_to_page)

        run_in_background(lambda: api.get_user_withdrawals(params), done)
