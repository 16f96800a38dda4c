from __future__ import annotations

from typing import List, Optional

from kivy.core.clipboard import Clipboard
from kivy.metrics import dp
from kivy.properties import NumericProperty
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.textinput import TextInput

from publisher_app.utils.otp_buffer import OTP_LENGTH, OtpInputBuffer


class OtpCell(TextInput):
    """
    One digit of the code.

    Keystrokes are not written directly; they go through the owning
    OtpInput's buffer, which decides what the cell shows afterwards.
    """

    index = NumericProperty(0)

    def __init__(self, owner: "OtpInput", **kwargs):
        kwargs.setdefault("multiline", False)
        kwargs.setdefault("halign", "center")
        kwargs.setdefault("write_tab", False)
        kwargs.setdefault("input_type", "number")
        super().__init__(**kwargs)
        self._owner = owner
        self.bind(focus=self._focus_changed)

    def insert_text(self, substring, from_undo=False):
        self._owner.on_cell_input(self.index, self.text, substring)

    def paste(self):
        self._owner.on_paste(Clipboard.paste() or "")

    def _focus_changed(self, _instance, value):
        if value:
            self._owner.on_cell_focus(self.index)

    def keyboard_on_key_down(self, window, keycode, text, modifiers):
        if keycode[1] == "backspace":
            self._owner.on_backspace(self.index)
            return True
        return super().keyboard_on_key_down(window, keycode, text, modifiers)


class OtpInput(BoxLayout):
    """Six OtpCell widgets mirroring an OtpInputBuffer."""

    def __init__(self, **kwargs):
        kwargs.setdefault("orientation", "horizontal")
        kwargs.setdefault("spacing", dp(8))
        super().__init__(**kwargs)
        self.buffer: Optional[OtpInputBuffer] = None
        self._applied_requests = 0
        self.cells: List[OtpCell] = []
        for i in range(OTP_LENGTH):
            cell = OtpCell(self, index=i)
            self.cells.append(cell)
            self.add_widget(cell)

    def bind_buffer(self, buffer: OtpInputBuffer) -> None:
        self.buffer = buffer
        self._applied_requests = buffer.focus_requests
        self.refresh(focus=False)

    def on_cell_input(self, index: int, current: str, substring: str) -> None:
        if self.buffer and self.buffer.handle_input(index, current, substring):
            self.refresh()

    def on_cell_focus(self, index: int) -> None:
        if self.buffer:
            self.buffer.focus_at(index)

    def on_backspace(self, index: int) -> None:
        if not self.buffer:
            return
        if self.buffer.cells[index]:
            self.buffer.set_digit(index, "")
            self.buffer.focus_at(index)
            self.refresh(focus=False)
        elif self.buffer.handle_backspace(index):
            self.refresh()

    def on_paste(self, raw: str) -> None:
        if self.buffer and self.buffer.handle_paste(raw):
            self.refresh()

    def refresh(self, focus: bool = True) -> None:
        """
        Redraw the cells. Keyboard focus moves only for a focus request the
        buffer has not had applied yet; with focus=False it stays pending.
        """
        if not self.buffer:
            return
        for cell, digit in zip(self.cells, self.buffer.cells):
            if cell.text != digit:
                cell.text = digit
        if focus and self.buffer.focus_requests != self._applied_requests:
            self._applied_requests = self.buffer.focus_requests
            self.cells[self.buffer.focus_index].focus = True

    def set_disabled(self, value: bool) -> None:
        for cell in self.cells:
            cell.disabled = value
