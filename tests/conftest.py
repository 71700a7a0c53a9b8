from typing import Callable, Dict, List, Optional

import pytest

from extended_copy.clipboard.base import Pasteboard
from extended_copy.exceptions import PasteboardUnavailableError
from extended_copy.services import AccumulativeClipboard, ClipboardCoordinator, NotificationManager


class FakePasteboard(Pasteboard):

    def __init__(self, text: Optional[str] = None):
        super().__init__()
        self.text = text
        self.read_failures = 0
        self.write_failures = 0
        self.reads = 0
        self.writes: List[str] = []

    def _read_text(self) -> Optional[str]:
        self.reads += 1
        if self.read_failures:
            self.read_failures -= 1
            raise PasteboardUnavailableError("pasteboard busy")
        return self.text

    def _write_text(self, text: str) -> None:
        if self.write_failures:
            self.write_failures -= 1
            raise OSError("pasteboard busy")
        self.writes.append(text)
        self.text = text


class FakeKeyboard:
    """Stands in for the ``keyboard`` module's hotkey API."""

    def __init__(self):
        self.hotkeys: Dict[int, tuple] = {}
        self.sent: List[str] = []
        self.restored: List[list] = []
        self._next = 0

    def add_hotkey(self, hotkey: str, callback: Callable[[], None], suppress: bool = False):
        self._next += 1
        self.hotkeys[self._next] = (hotkey, callback)
        return self._next

    def remove_hotkey(self, handle):
        del self.hotkeys[handle]

    def press(self, hotkey: str) -> None:
        for registered, callback in list(self.hotkeys.values()):
            if registered == hotkey:
                callback()

    def stash_state(self):
        return [42]

    def send(self, hotkey: str) -> None:
        self.sent.append(hotkey)
        self.press(hotkey)

    def restore_modifiers(self, scan_codes):
        self.restored.append(scan_codes)


@pytest.fixture
def pasteboard():
    return FakePasteboard()


@pytest.fixture
def notifier():
    return NotificationManager()


@pytest.fixture
def buffer():
    return AccumulativeClipboard(separator="\n")


@pytest.fixture
def coordinator(buffer, pasteboard, notifier):
    return ClipboardCoordinator(buffer=buffer, pasteboard=pasteboard, notifier=notifier)


@pytest.fixture
def keyboard_backend():
    return FakeKeyboard()
