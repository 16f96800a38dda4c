from __future__ import annotations

from typing import Any, Dict

from kivy.app import App
from kivy.logger import Logger
from kivy.properties import BooleanProperty, StringProperty
from kivy.uix.screenmanager import Screen

from publisher_app.utils.api import ApiError, OtpPurpose
from publisher_app.utils.auth import is_email_verified, user_data
from publisher_app.utils.dashboard import SiteQuery, parse_date_input, site_row
from publisher_app.utils.forms import validate_site
from publisher_app.utils.otp_flow import FlowState, OtpFlow
from publisher_app.utils.popup import show_message
from publisher_app.utils.schemas import Page
from publisher_app.utils.worker import KivyScheduler, run_in_background

SITE_HEADERS = ("Name", "Website", "Web App", "Created", "Status")
STATUS_CHOICES = {"All": "all", "Active": "true", "Inactive": "false"}


class MySitesScreen(Screen):
    """
    Publisher sites: filterable list, add-site form and, while the account
    email is unverified, the verification card in front of everything else.
    """

    loading = BooleanProperty(False)
    submitting = BooleanProperty(False)
    show_add_form = BooleanProperty(False)
    needs_verification = BooleanProperty(False)
    # email | code
    verify_step = StringProperty("email")
    verify_email = StringProperty("")
    verify_error = StringProperty("")
    verify_success = StringProperty("")
    countdown = StringProperty("")
    can_resend = BooleanProperty(True)
    verify_busy = BooleanProperty(False)
    form_error = StringProperty("")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.query = SiteQuery()
        self.flow = None

    def _app(self):
        return App.get_running_app()

    def on_enter(self, *args):
        self._check_verification()
        self.fetch_sites()

    def on_leave(self, *args):
        if self.flow is not None:
            self.flow.teardown()

    # -----------------------
    # Site list
    # -----------------------
    def apply_filters(self):
        self.query.search = self._text("search_input")
        self.query.created_on = parse_date_input(self._text("created_input"))
        status = self.ids.get("status_spinner")
        self.query.status = STATUS_CHOICES.get(status.text, "all") if status else "all"
        limit = self.ids.get("limit_spinner")
        if limit and limit.text.isdigit():
            self.query.limit = int(limit.text)
        self.query.page = 1
        self.fetch_sites()

    def clear_filters(self):
        for wid in ("search_input", "created_input"):
            w = self.ids.get(wid)
            if w:
                w.text = ""
        status = self.ids.get("status_spinner")
        if status:
            status.text = "All"
        self.query = SiteQuery(limit=self.query.limit)
        self.fetch_sites()

    def go_to_page(self, page: int):
        self.query.page = page
        self.fetch_sites()

    def fetch_sites(self):
        if self.loading:
            return
        self.loading = True
        table = self.ids.get("sites_table")
        if table:
            table.show_message("Loading sites...")
        api = self._app().api
        params = self.query.params()

        def done(data: Any, err):
            self.loading = False
            if err is not None:
                Logger.warning("MySitesScreen: load failed (%s)", err)
                if table:
                    table.show_message("Failed to load sites.")
                return
            self._render(Page.from_envelope(data, "usersites"))

        run_in_background(lambda: api.get_user_websites(params), done)

    def _render(self, page: Page):
        table = self.ids.get("sites_table")
        if table:
            table.show(SITE_HEADERS, [site_row(doc) for doc in page.docs], empty_text="No sites yet")
        pager = self.ids.get("sites_pager")
        if pager:
            pager.show(page.page, page.total_pages, self.go_to_page)

    # -----------------------
    # Add site
    # -----------------------
    def open_add_form(self):
        if self.needs_verification:
            show_message("Verify email", "Please verify your email before adding a site.")
            return
        self.form_error = ""
        self.show_add_form = True

    def close_add_form(self):
        self.show_add_form = False
        self.form_error = ""
        for wid in ("site_name_input", "site_url_input", "app_url_input"):
            w = self.ids.get(wid)
            if w:
                w.text = ""

    def submit_site(self):
        if self.submitting:
            return
        form: Dict[str, str] = {
            "WebsiteName": self._text("site_name_input"),
            "WebsiteURL": self._text("site_url_input"),
            "WebAPPUrl": self._text("app_url_input"),
        }
        errs = validate_site(name=form["WebsiteName"], url=form["WebsiteURL"], app_url=form["WebAPPUrl"])
        if errs:
            self.form_error = "\n".join(errs.values())
            return

        self.form_error = ""
        self.submitting = True
        api = self._app().api

        def done(data: Any, err):
            self.submitting = False
            if err is not None:
                self.form_error = (err.message if isinstance(err, ApiError) else None) or "Failed to create app"
                return
            show_message("Success", (data or {}).get("message") or "App created successfully!")
            self.close_add_form()
            self.fetch_sites()

        run_in_background(lambda: api.create_app_request(form), done)

    # -----------------------
    # Email verification
    # -----------------------
    def _check_verification(self):
        user = self._app().session.user
        self.needs_verification = not is_email_verified(user)
        if not self.needs_verification:
            return
        flow = self._ensure_flow()
        if flow.state == FlowState.EMAIL_ENTRY:
            flow.set_email(str(user_data(user).get("Email") or ""))
        self._sync(flow)

    def _ensure_flow(self) -> OtpFlow:
        if self.flow is None:
            self.flow = OtpFlow(
                self._app().otp_service,
                OtpPurpose.EMAIL_VERIFICATION,
                runner=run_in_background,
                scheduler=KivyScheduler(),
                on_change=self._sync,
                on_verified=self._on_verified,
                on_complete=self._verification_done,
            )
        return self.flow

    def send_verification(self):
        self._ensure_flow().submit_email()

    def resend_verification(self):
        self._ensure_flow().resend()

    def verify_code(self):
        self._ensure_flow().submit_code()

    def back_to_email(self):
        self._ensure_flow().back()

    def _on_verified(self, _result):
        auth = self._app().auth
        run_in_background(auth.refresh_user, lambda _user, _err: self._check_verification())

    def _verification_done(self):
        self._check_verification()

    def _sync(self, flow: OtpFlow) -> None:
        self.verify_step = "email" if flow.state == FlowState.EMAIL_ENTRY else "code"
        self.verify_email = flow.email
        self.verify_error = flow.error
        self.verify_success = flow.success
        self.countdown = flow.countdown
        self.can_resend = flow.can_resend
        self.verify_busy = flow.busy

        otp_input = self.ids.get("verify_otp_input")
        if otp_input is not None:
            if otp_input.buffer is not flow.buffer:
                otp_input.bind_buffer(flow.buffer)
            otp_input.refresh(focus=flow.state == FlowState.CODE_SENT and not flow.busy)
            otp_input.set_disabled(flow.verifying or flow.completed)

    def _text(self, wid: str) -> str:
        w = self.ids.get(wid)
        return (w.text or "").strip() if w else ""
