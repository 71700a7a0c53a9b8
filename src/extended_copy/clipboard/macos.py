from typing import Optional

try:
    from AppKit import NSPasteboard, NSPasteboardTypeString
    HAS_APPKIT = True
except ImportError:
    HAS_APPKIT = False

from extended_copy.clipboard.base import Pasteboard
from extended_copy.exceptions import PasteboardUnavailableError


class MacOSPasteboard(Pasteboard):

    def _general(self):
        if not HAS_APPKIT:
            raise PasteboardUnavailableError("pyobjc AppKit is not installed")
        return NSPasteboard.generalPasteboard()

    def _read_text(self) -> Optional[str]:
        pasteboard = self._general()
        types = pasteboard.types() or []
        if NSPasteboardTypeString not in types:
            return None
        text = pasteboard.stringForType_(NSPasteboardTypeString)
        return str(text) if text else None

    def _write_text(self, text: str) -> None:
        pasteboard = self._general()
        pasteboard.clearContents()
        if not pasteboard.setString_forType_(text, NSPasteboardTypeString):
            raise PasteboardUnavailableError("NSPasteboard refused the string")
