from __future__ import annotations

from typing import Callable, List, Sequence

from kivy.metrics import dp
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.button import Button
from kivy.uix.gridlayout import GridLayout
from kivy.uix.label import Label

from publisher_app.utils.dashboard import pagination_pages


class DataTable(GridLayout):
    """Header row plus one Label per cell; meant to sit inside a ScrollView."""

    def __init__(self, **kwargs):
        kwargs.setdefault("size_hint_y", None)
        kwargs.setdefault("row_default_height", dp(36))
        kwargs.setdefault("row_force_default", True)
        kwargs.setdefault("spacing", dp(2))
        super().__init__(**kwargs)
        self.bind(minimum_height=self.setter("height"))

    def _cell(self, text: str, bold: bool = False) -> Label:
        lbl = Label(text=text, bold=bold, shorten=True, shorten_from="right")
        lbl.bind(size=lambda w, s: setattr(w, "text_size", s))
        lbl.halign = "center"
        lbl.valign = "middle"
        return lbl

    def show(self, headers: Sequence[str], rows: List[List[str]], empty_text: str = "No data found") -> None:
        self.clear_widgets()
        self.cols = max(1, len(headers))
        for h in headers:
            self.add_widget(self._cell(h, bold=True))
        if not rows:
            self.cols = 1
            self.add_widget(self._cell(empty_text))
            return
        for row in rows:
            for value in row:
                self.add_widget(self._cell(value))

    def show_message(self, text: str) -> None:
        self.clear_widgets()
        self.cols = 1
        self.add_widget(self._cell(text))


class Pager(BoxLayout):
    """Prev / numbered pages / Next."""

    def __init__(self, **kwargs):
        kwargs.setdefault("orientation", "horizontal")
        kwargs.setdefault("size_hint_y", None)
        kwargs.setdefault("height", dp(40))
        kwargs.setdefault("spacing", dp(4))
        super().__init__(**kwargs)

    def show(self, current: int, total: int, on_page: Callable[[int], None]) -> None:
        self.clear_widgets()
        if total <= 1:
            return

        prev_btn = Button(text="<", disabled=current <= 1)
        prev_btn.bind(on_release=lambda *_: on_page(current - 1))
        self.add_widget(prev_btn)

        for item in pagination_pages(current, total):
            if item == "...":
                self.add_widget(Label(text="..."))
                continue
            btn = Button(text=str(item), disabled=item == current)
            btn.bind(on_release=lambda _b, p=item: on_page(p))
            self.add_widget(btn)

        next_btn = Button(text=">", disabled=current >= total)
        next_btn.bind(on_release=lambda *_: on_page(current + 1))
        self.add_widget(next_btn)
