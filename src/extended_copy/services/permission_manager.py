import logging
import os
import platform
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

PermissionCallback = Callable[[bool], None]


def _macos_checker() -> bool:
    from ApplicationServices import AXIsProcessTrusted
    return bool(AXIsProcessTrusted())


def _macos_requester() -> None:
    from ApplicationServices import AXIsProcessTrustedWithOptions, kAXTrustedCheckOptionPrompt
    AXIsProcessTrustedWithOptions({kAXTrustedCheckOptionPrompt: True})


def _linux_checker() -> bool:
    # The keyboard library reads /dev/input directly and needs root for it.
    return os.geteuid() == 0


def _linux_requester() -> None:
    logger.warning("Global hotkeys on Linux need root: restart Extended Copy with sudo")


def _default_backend():
    system = platform.system()
    if system == "Darwin":
        return _macos_checker, _macos_requester
    if system == "Linux":
        return _linux_checker, _linux_requester
    return (lambda: True), (lambda: None)


class PermissionManager:
    """Checks and requests the OS permission needed to watch global key events."""

    def __init__(
        self,
        checker: Optional[Callable[[], bool]] = None,
        requester: Optional[Callable[[], None]] = None,
        poll_interval: float = 2.0,
    ) -> None:
        default_checker, default_requester = _default_backend()
        self._checker = checker or default_checker
        self._requester = requester or default_requester
        self.poll_interval = poll_interval
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._watch_thread: Optional[threading.Thread] = None
        self._callbacks: list = []
        self._last_known: Optional[bool] = None

    def has_permission(self) -> bool:
        try:
            granted = bool(self._checker())
        except Exception:
            logger.exception("Permission check failed, treating as denied")
            granted = False
        return granted

    def request_permission(self) -> None:
        """Ask the OS for permission without waiting for the answer."""
        def _request() -> None:
            try:
                self._requester()
            except Exception:
                logger.exception("Permission request failed")

        logger.info("Requesting input monitoring permission")
        threading.Thread(target=_request, daemon=True).start()

    def wait_for_permission(self, timeout: Optional[float] = None) -> bool:
        """Poll until permission is granted, ``timeout`` elapses or ``stop()`` is called."""
        waited = 0.0
        while not self._stop_event.is_set():
            if self.has_permission():
                return True
            if timeout is not None and waited >= timeout:
                return False
            self._stop_event.wait(self.poll_interval)
            waited += self.poll_interval
        return self.has_permission()

    # ------------------------------------------------------------------
    # Change watching
    # ------------------------------------------------------------------
    def watch(self, callback: PermissionCallback) -> None:
        """Call ``callback(granted)`` now and on every later change."""
        with self._lock:
            self._callbacks.append(callback)
            if self._last_known is None:
                self._last_known = self.has_permission()
            current = self._last_known
            if self._watch_thread is None:
                self._stop_event.clear()
                self._watch_thread = threading.Thread(target=self._watch_loop, daemon=True)
                self._watch_thread.start()
        callback(current)

    def poll_once(self) -> bool:
        granted = self.has_permission()
        with self._lock:
            changed = granted != self._last_known
            self._last_known = granted
            callbacks = list(self._callbacks) if changed else []

        if changed:
            logger.info("Input monitoring permission %s", "granted" if granted else "revoked")
        for callback in callbacks:
            try:
                callback(granted)
            except Exception:
                logger.exception("Permission callback failed")
        return granted

    def _watch_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            self.poll_once()

    def stop(self) -> None:
        self._stop_event.set()
        with self._lock:
            thread, self._watch_thread = self._watch_thread, None
        if thread is not None:
            thread.join(timeout=1.0)
