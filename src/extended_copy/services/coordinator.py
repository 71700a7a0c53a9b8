"""State machine tying the copy chords and system events to the buffer.

States are ``Normal`` and ``Accumulating(n)``:

* accumulate chord: read the pasteboard, append to the buffer, write the
  joined buffer back, ``Normal -> Accumulating(1)`` or ``n -> n + 1``;
* normal copy chord: ``Accumulating(n) -> Normal``, the OS does the copy;
* app switch, wake from sleep, inactivity timeout: always ``Normal``.

Every handler runs under one lock because key, poller and timer callbacks
arrive on different threads.
"""

import logging
import threading
import time
from typing import Callable, Iterable, Optional, TypeVar, Union

from extended_copy.clipboard.base import Pasteboard
from extended_copy.exceptions import PasteboardUnavailableError, ValidationError
from extended_copy.models import ClipboardState
from extended_copy.services.accumulative_clipboard import AccumulativeClipboard
from extended_copy.services.keyboard_monitor import KeyEvent, KeyEventKind
from extended_copy.services.notifications import NotificationManager
from extended_copy.services.system_events import SystemEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClipboardCoordinator:

    def __init__(
        self,
        buffer: AccumulativeClipboard,
        pasteboard: Pasteboard,
        notifier: NotificationManager,
        on_activity: Optional[Callable[[], None]] = None,
        copy_trigger: Optional[Callable[[], None]] = None,
        capture_delay: float = 0.0,
    ) -> None:
        self.buffer = buffer
        self.pasteboard = pasteboard
        self.notifier = notifier
        self._on_activity = on_activity
        self._copy_trigger = copy_trigger
        self.capture_delay = capture_delay
        self._lock = threading.RLock()
        self._permission_granted = True
        self._retries_left = 0

    @property
    def state(self) -> ClipboardState:
        return self.buffer.state

    @property
    def intercepting(self) -> bool:
        return self._permission_granted

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def handle(self, event: Union[KeyEvent, SystemEvent]) -> ClipboardState:
        if isinstance(event, SystemEvent):
            return self.handle_system_event(event)
        return self.handle_key_event(event)

    def handle_key_event(self, event: KeyEvent) -> ClipboardState:
        with self._lock:
            if not self._permission_granted:
                logger.debug("Dropping %s: input monitoring permission denied", event.kind.value)
                return self.state
            if event.kind is KeyEventKind.ACCUMULATE:
                return self.on_accumulate()
            if event.kind is KeyEventKind.NORMAL_COPY:
                return self.on_normal_copy()
            return self.state

    def handle_system_event(self, event: SystemEvent) -> ClipboardState:
        with self._lock:
            return self._reset(event.value)

    def run(self, events: Iterable[Union[KeyEvent, SystemEvent]]) -> None:
        """Handle ``events`` until the iterable ends."""
        for event in events:
            try:
                self.handle(event)
            except Exception as e:
                logger.exception("Unexpected error while handling %s", event)
                self.notifier.error("Extended Copy", f"Unexpected error: {e}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def on_accumulate(self) -> ClipboardState:
        with self._lock:
            self._capture_selection()
            # One pasteboard retry per event, shared by the read and the write-back.
            self._retries_left = 1

            try:
                text = self._with_retry(self.pasteboard.get_text, "read")
            except PasteboardUnavailableError as e:
                self.notifier.warning("Clipboard unavailable", str(e))
                return self.state

            if not text:
                self.notifier.warning("Nothing to copy", "The clipboard holds no text")
                return self.state

            try:
                count = self.buffer.add_item(text)
            except ValidationError as e:
                self.notifier.warning("Text not added", str(e))
                return self.state

            content = self.buffer.get_all_content()
            try:
                self._with_retry(lambda: self.pasteboard.set_text(content), "write")
            except PasteboardUnavailableError as e:
                self.notifier.error("Clipboard unavailable", f"Accumulated text was not written back: {e}")

            logger.info("Accumulated %d item(s)", count)
            self._activity()
            return self.state

    def on_normal_copy(self) -> ClipboardState:
        with self._lock:
            if not self.buffer.state.is_accumulating:
                return self.state
            self._reset("normal copy")
            self._activity()
            return self.state

    def _reset(self, reason: str) -> ClipboardState:
        if self.buffer.reset():
            logger.info("Accumulation reset (%s)", reason)
        return self.state

    def reset(self) -> ClipboardState:
        with self._lock:
            return self._reset("manual")

    # ------------------------------------------------------------------
    # Permission gate
    # ------------------------------------------------------------------
    def set_permission(self, granted: bool) -> None:
        with self._lock:
            if granted == self._permission_granted:
                return
            self._permission_granted = granted
            if granted:
                self.notifier.info("Extended Copy", "Input monitoring permission granted, copy chords active")
            else:
                self._reset("permission denied")
                self.notifier.error(
                    "Permission denied",
                    "Extended Copy needs input monitoring permission to watch the copy chords")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _capture_selection(self) -> None:
        if self._copy_trigger is None:
            return
        try:
            self._copy_trigger()
        except Exception as e:
            logger.exception("Could not send the copy chord")
            self.notifier.warning("Copy chord failed", f"Reading the clipboard as is: {e}")
            return
        if self.capture_delay:
            time.sleep(self.capture_delay)

    def _with_retry(self, operation: Callable[[], T], description: str) -> T:
        try:
            return operation()
        except PasteboardUnavailableError as e:
            if self._retries_left < 1:
                raise
            self._retries_left -= 1
            logger.warning("Pasteboard %s failed, retrying once: %s", description, e)
        return operation()

    def _activity(self) -> None:
        if self._on_activity:
            self._on_activity()
