import time
from typing import Optional

import win32clipboard as wc
import win32con

from extended_copy.clipboard.base import Pasteboard
from extended_copy.exceptions import PasteboardUnavailableError


class WindowsPasteboard(Pasteboard):
    _OPEN_ATTEMPTS = 3

    def _open(self) -> None:
        # Another process may hold the clipboard for a moment.
        deadline = time.monotonic() + self.timeout
        last_error: Optional[Exception] = None
        for _ in range(self._OPEN_ATTEMPTS):
            try:
                wc.OpenClipboard()
                return
            except Exception as e:
                last_error = e
                if time.monotonic() >= deadline:
                    break
                time.sleep(0.05)
        raise PasteboardUnavailableError("Clipboard is locked by another process", last_error)

    def _read_text(self) -> Optional[str]:
        self._open()
        try:
            if not wc.IsClipboardFormatAvailable(win32con.CF_UNICODETEXT):
                return None
            return wc.GetClipboardData(win32con.CF_UNICODETEXT)
        finally:
            wc.CloseClipboard()

    def _write_text(self, text: str) -> None:
        self._open()
        try:
            wc.EmptyClipboard()
            wc.SetClipboardData(win32con.CF_UNICODETEXT, text)
        finally:
            wc.CloseClipboard()
