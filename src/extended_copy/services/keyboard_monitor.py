"""Global copy-chord monitor built on the ``keyboard`` library.

Hotkey callbacks arrive on the library's listener thread and are turned into
``KeyEvent`` objects on a queue. ``events()`` drains that queue as a lazy,
infinite iterator which ends only when the monitor is stopped.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional

from extended_copy.exceptions import MonitorStateError, PermissionDeniedError

logger = logging.getLogger(__name__)

# How long the copy chord sent by trigger_copy() may take to reach the hook.
SYNTHETIC_COPY_WINDOW = 0.5


class KeyEventKind(Enum):
    ACCUMULATE = "accumulate"
    NORMAL_COPY = "normal_copy"
    OTHER = "other"


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyEventKind
    timestamp: float = field(default_factory=time.monotonic)


class MonitorStatus(Enum):
    NEW = "new"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


_STOP = object()


class KeyboardEventMonitor:

    def __init__(
        self,
        accumulate_hotkey: str,
        copy_hotkey: str,
        permission_check: Optional[Callable[[], bool]] = None,
        backend: Any = None,
    ) -> None:
        """
        Args:
            accumulate_hotkey: chord that appends to the buffer, e.g. ``ctrl+shift+c``.
            copy_hotkey: plain copy chord, e.g. ``ctrl+c``.
            permission_check: returns whether global key events may be read.
            backend: object with the ``keyboard`` module's hotkey API.
        """
        self.accumulate_hotkey = accumulate_hotkey
        self.copy_hotkey = copy_hotkey
        self._permission_check = permission_check or (lambda: True)
        self._backend = backend
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._lock = threading.RLock()
        self._handles: List[Any] = []
        self._status = MonitorStatus.NEW
        self._stream_taken = False
        self._synthetic_pending = 0
        self._synthetic_deadline = 0.0

    @property
    def status(self) -> MonitorStatus:
        return self._status

    def _get_backend(self):
        if self._backend is None:
            import keyboard
            self._backend = keyboard
        return self._backend

    # ------------------------------------------------------------------
    # Lifecycle management
    # ------------------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._status is MonitorStatus.RUNNING:
                return
            if self._status is MonitorStatus.STOPPED:
                raise MonitorStateError("A stopped keyboard monitor cannot be restarted")
            if self._status is MonitorStatus.PAUSED:
                raise MonitorStateError("Monitor is paused, use resume()")
            self._hook()
            self._status = MonitorStatus.RUNNING
            logger.info("Watching %s (accumulate) and %s (copy)", self.accumulate_hotkey, self.copy_hotkey)

    def pause(self) -> None:
        """Stop intercepting keys while keeping the event stream open."""
        with self._lock:
            if self._status is not MonitorStatus.RUNNING:
                return
            self._unhook()
            self._status = MonitorStatus.PAUSED
            logger.info("Keyboard monitor paused")

    def resume(self) -> None:
        with self._lock:
            if self._status is not MonitorStatus.PAUSED:
                return
            self._hook()
            self._status = MonitorStatus.RUNNING
            logger.info("Keyboard monitor resumed")

    def stop(self) -> None:
        with self._lock:
            if self._status is MonitorStatus.STOPPED:
                return
            self._unhook()
            self._status = MonitorStatus.STOPPED
            self._queue.put(_STOP)
            logger.info("Keyboard monitor stopped")

    def _hook(self) -> None:
        if not self._permission_check():
            raise PermissionDeniedError("Input monitoring permission is required to watch the copy chords")

        backend = self._get_backend()
        try:
            for hotkey, callback in ((self.accumulate_hotkey, self._on_accumulate), (self.copy_hotkey, self._on_copy)):
                self._handles.append(backend.add_hotkey(hotkey, callback, suppress=False))
        except ImportError as e:
            # keyboard raises ImportError when it cannot open the input devices.
            self._unhook()
            raise PermissionDeniedError("Global keyboard hook was refused", e)
        except ValueError as e:
            self._unhook()
            raise MonitorStateError(f"Invalid hotkey: {e}", e)

    def _unhook(self) -> None:
        backend = self._backend
        for handle in self._handles:
            try:
                backend.remove_hotkey(handle)
            except (KeyError, ValueError):
                logger.debug("Hotkey %r was already removed", handle)
        self._handles = []

    # ------------------------------------------------------------------
    # Event production
    # ------------------------------------------------------------------
    def _on_accumulate(self) -> None:
        self._queue.put(KeyEvent(KeyEventKind.ACCUMULATE))

    def _on_copy(self) -> None:
        with self._lock:
            synthetic = self._synthetic_pending > 0 and time.monotonic() < self._synthetic_deadline
            self._synthetic_pending = 0
        if synthetic:
            logger.debug("Ignoring copy chord sent by trigger_copy()")
            return
        self._queue.put(KeyEvent(KeyEventKind.NORMAL_COPY))

    def emit(self, kind: KeyEventKind) -> None:
        """Push an event into the stream as if the chord had been pressed."""
        self._queue.put(KeyEvent(kind))

    def trigger_copy(self) -> None:
        """Send the plain copy chord so the focused app copies its selection.

        The user is still holding the accumulate chord, so pressed keys are
        stashed while the chord is sent and restored afterwards.
        """
        backend = self._get_backend()
        with self._lock:
            self._synthetic_pending = 1
            self._synthetic_deadline = time.monotonic() + SYNTHETIC_COPY_WINDOW
        pressed = backend.stash_state()
        try:
            backend.send(self.copy_hotkey)
        finally:
            backend.restore_modifiers(pressed)

    def events(self) -> Iterator[KeyEvent]:
        """Return the event stream. It can be taken only once."""
        with self._lock:
            if self._stream_taken:
                raise MonitorStateError("The keyboard event stream was already taken")
            self._stream_taken = True
        return self._iter_events()

    def _iter_events(self) -> Iterator[KeyEvent]:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            yield item

    def __enter__(self) -> "KeyboardEventMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
