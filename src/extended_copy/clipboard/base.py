import logging
from abc import ABC, abstractmethod
from typing import Optional

from extended_copy.exceptions import ExtendedCopyError, PasteboardUnavailableError

logger = logging.getLogger(__name__)


class Pasteboard(ABC):
    """Plain-text slot of the OS clipboard.

    Platform subclasses implement ``_read_text`` and ``_write_text``; any
    unexpected error they raise is reported as ``PasteboardUnavailableError``.
    """

    def __init__(self, timeout: float = 0.5):
        self.timeout = timeout

    @abstractmethod
    def _read_text(self) -> Optional[str]:
        pass

    @abstractmethod
    def _write_text(self, text: str) -> None:
        pass

    def get_text(self) -> Optional[str]:
        """Return the current text, or ``None`` when the pasteboard holds no text."""
        try:
            text = self._read_text()
        except ExtendedCopyError:
            raise
        except Exception as e:
            raise PasteboardUnavailableError("Could not read the pasteboard", e)
        return text or None

    def set_text(self, text: str) -> None:
        try:
            self._write_text(text)
        except ExtendedCopyError:
            raise
        except Exception as e:
            raise PasteboardUnavailableError("Could not write the pasteboard", e)
        logger.debug("Pasteboard updated (%d chars)", len(text))
