from __future__ import annotations

import webbrowser

from kivy.app import App
from kivy.logger import Logger
from kivy.metrics import dp
from kivy.properties import BooleanProperty, StringProperty
from kivy.uix.label import Label
from kivy.uix.screenmanager import Screen

from publisher_app.utils.api import ApiError
from publisher_app.utils.forms import validate_support_request
from publisher_app.utils.schemas import SupportData
from publisher_app.utils.worker import run_in_background


class SupportScreen(Screen):
    telegram_link = StringProperty("")
    submit_error = StringProperty("")
    submit_success = StringProperty("")
    submitting = BooleanProperty(False)

    def _get(self, wid: str) -> str:
        w = self.ids.get(wid)
        return (w.text or "").strip() if w else ""

    def on_enter(self, *args):
        self.load_support_data()

    def load_support_data(self):
        api = App.get_running_app().api

        def done(data, err):
            if err is not None:
                Logger.warning("SupportScreen: support data failed (%s)", err)
                self._render_faqs(SupportData())
                return
            body = (data or {}).get("Supportdata") or {}
            self._render_faqs(SupportData.model_validate(body))

        run_in_background(api.get_support_data, done)

    def _render_faqs(self, support: SupportData):
        self.telegram_link = support.telegram_support
        box = self.ids.get("faq_box")
        if box is None:
            return
        box.clear_widgets()
        faqs = support.active_faqs()
        if not faqs:
            box.add_widget(Label(text="No FAQs available.", size_hint_y=None, height=dp(32)))
            return
        for faq in faqs:
            lbl = Label(
                text=f"[b]{faq.question}[/b]\n{faq.answer}",
                markup=True,
                size_hint_y=None,
                halign="left",
                valign="top",
            )
            lbl.bind(width=lambda w, v: setattr(w, "text_size", (v, None)))
            lbl.bind(texture_size=lambda w, s: setattr(w, "height", s[1] + dp(12)))
            box.add_widget(lbl)

    def open_telegram(self):
        if self.telegram_link:
            webbrowser.open(self.telegram_link)

    def submit_request(self):
        if self.submitting:
            return
        self.submit_error = ""
        self.submit_success = ""
        subject = self._get("subject_input")
        message = self._get("message_input")
        errs = validate_support_request(subject, message)
        if errs:
            self.submit_error = next(iter(errs.values()))
            return

        self.submitting = True
        api = App.get_running_app().api

        def done(_data, err):
            self.submitting = False
            if err is not None:
                self.submit_error = (
                    err.message if isinstance(err, ApiError) else None
                ) or "Error sending request. Please try again."
                return
            self.submit_success = "Request sent successfully!"
            for wid in ("subject_input", "message_input"):
                w = self.ids.get(wid)
                if w:
                    w.text = ""

        run_in_background(lambda: api.support_mail(subject=subject, message=message), done)
