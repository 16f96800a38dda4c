from __future__ import annotations

from typing import Callable

from kivy.clock import Clock
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.label import Label
from kivy.uix.popup import Popup


def show_message(title: str, msg: str, *, dismiss_after: float = 2.5) -> None:
    """Non-blocking popup, safe to call from worker threads."""

    def _open(*_):
        popup = Popup(
            title=title,
            content=Label(text=str(msg)),
            size_hint=(0.75, 0.35),
            auto_dismiss=True,
        )
        popup.open()
        Clock.schedule_once(lambda _dt: popup.dismiss(), dismiss_after)

    Clock.schedule_once(_open, 0)


def show_confirm(title: str, msg: str, on_confirm: Callable[[], None], *, confirm_text: str = "Confirm") -> Popup:
    content = BoxLayout(orientation="vertical", spacing=10, padding=10)
    content.add_widget(Label(text=str(msg)))

    buttons = BoxLayout(orientation="horizontal", spacing=10, size_hint_y=None, height=44)
    cancel_btn = Button(text="Cancel")
    confirm_btn = Button(text=confirm_text, background_color=(0.3, 0.2, 0.8, 1))
    buttons.add_widget(cancel_btn)
    buttons.add_widget(confirm_btn)
    content.add_widget(buttons)

    popup = Popup(title=title, content=content, size_hint=(0.85, 0.45), auto_dismiss=False)
    cancel_btn.bind(on_release=popup.dismiss)

    def _confirm(_btn):
        popup.dismiss()
        on_confirm()

    confirm_btn.bind(on_release=_confirm)
    popup.open()
    return popup
