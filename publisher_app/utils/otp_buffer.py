from __future__ import annotations

import re
from typing import List

OTP_LENGTH = 6

_CELL_RE = re.compile(r"[0-9]?")
_PASTE_RE = re.compile(r"[0-9]{%d}" % OTP_LENGTH)


class OtpInputBuffer:
    """
    Six single-digit cells presented as one logical code.

    The widget layer forwards raw cell text, backspaces and pastes here and
    reads back `cells` / `focus_index` to redraw itself. `focus_requests`
    counts the moves the buffer itself asked for (advance, backspace, paste,
    clear); the widget only moves keyboard focus when that counter changes, so
    redraws caused by anything else leave focus where the user put it.
    """

    def __init__(self) -> None:
        self.cells: List[str] = [""] * OTP_LENGTH
        self.focus_index = 0
        self.focus_requests = 0

    def _request_focus(self, index: int) -> None:
        self.focus_index = index
        self.focus_requests += 1

    def focus_at(self, index: int) -> None:
        """The user put focus on a cell directly (tap, tab)."""
        if 0 <= index < OTP_LENGTH:
            self.focus_index = index

    def set_digit(self, index: int, raw: str) -> bool:
        # Full-cell text: a filled cell receiving another key becomes two chars and is refused.
        if not 0 <= index < OTP_LENGTH:
            return False
        if not isinstance(raw, str) or not _CELL_RE.fullmatch(raw):
            return False

        self.cells[index] = raw
        if raw and index < OTP_LENGTH - 1:
            self._request_focus(index + 1)
        return True

    def handle_input(self, index: int, current: str, substring: str) -> bool:
        """
        Text typed into a cell. More than one character at once is a keyboard
        paste or an autofilled code and is handled as a paste.
        """
        if len(substring or "") > 1:
            return self.handle_paste(substring)
        return self.set_digit(index, (current or "") + (substring or ""))

    def handle_backspace(self, index: int) -> bool:
        """Move focus back one cell when the current one is already empty."""
        if not 0 <= index < OTP_LENGTH:
            return False
        if self.cells[index] or index == 0:
            return False
        self._request_focus(index - 1)
        return True

    def handle_paste(self, raw: str) -> bool:
        text = (raw or "").strip()
        if not _PASTE_RE.fullmatch(text):
            return False
        self.cells = list(text)
        self._request_focus(OTP_LENGTH - 1)
        return True

    def value(self) -> str:
        return "".join(self.cells)

    @property
    def is_complete(self) -> bool:
        return len(self.value()) == OTP_LENGTH

    def clear(self) -> None:
        self.cells = [""] * OTP_LENGTH
        self._request_focus(0)
