"""System events that end an accumulation session.

App switches are found by polling the frontmost application; a wake from
sleep shows up as a wall clock jump between two polls; inactivity is a single
timer rearmed on every qualifying action.
"""

import logging
import platform
import subprocess
import threading
import time
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class SystemEvent(Enum):
    APP_SWITCHED = "app_switched"
    INACTIVITY_TIMEOUT = "inactivity_timeout"
    SYSTEM_WOKE = "system_woke"


SystemEventCallback = Callable[[SystemEvent], None]


def _macos_frontmost_app() -> Optional[str]:
    from AppKit import NSWorkspace
    app = NSWorkspace.sharedWorkspace().frontmostApplication()
    if app is None:
        return None
    return str(app.bundleIdentifier() or app.localizedName())


def _windows_frontmost_app() -> Optional[str]:
    import win32gui
    import win32process
    hwnd = win32gui.GetForegroundWindow()
    if not hwnd:
        return None
    _, pid = win32process.GetWindowThreadProcessId(hwnd)
    return str(pid)


def _linux_frontmost_app() -> Optional[str]:
    try:
        result = subprocess.run(
            ["xdotool", "getactivewindow", "getwindowpid"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
            timeout=0.5,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
        return None
    return result.stdout.decode("utf-8", errors="ignore").strip() or None


def get_frontmost_app_provider() -> Callable[[], Optional[str]]:
    system = platform.system()
    if system == "Darwin":
        return _macos_frontmost_app
    elif system == "Windows":
        return _windows_frontmost_app
    elif system == "Linux":
        return _linux_frontmost_app
    else:
        raise NotImplementedError(f"Platform '{system}' is not supported")


class InactivityTimer:
    """Single timer that fires ``on_timeout`` unless rearmed in time."""

    def __init__(self, timeout: float, on_timeout: Callable[[], None]) -> None:
        self.timeout = timeout
        self._on_timeout = on_timeout
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

    @property
    def enabled(self) -> bool:
        return self.timeout > 0

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    def rearm(self) -> None:
        """Cancel any pending countdown and start a new one."""
        if not self.enabled:
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = threading.Timer(self.timeout, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A rearm may have raced with this timer's expiry.
            if generation != self._generation:
                return
            self._timer = None
        logger.debug("Inactivity timeout after %.1fs", self.timeout)
        self._on_timeout()


class SystemEventManager:

    def __init__(
        self,
        inactivity_timeout: float = 300.0,
        poll_interval: float = 0.5,
        app_provider: Optional[Callable[[], Optional[str]]] = None,
        wake_threshold: float = 30.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.poll_interval = poll_interval
        self.wake_threshold = wake_threshold
        self._app_provider = app_provider
        self._clock = clock
        self._callbacks: List[SystemEventCallback] = []
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None
        self._is_running = False
        self._last_app: Optional[str] = None
        self._last_tick: Optional[float] = None
        self.timer = InactivityTimer(inactivity_timeout, lambda: self._emit(SystemEvent.INACTIVITY_TIMEOUT))

    def subscribe(self, callback: SystemEventCallback) -> Callable[[], None]:
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def _emit(self, event: SystemEvent) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        logger.debug("System event: %s", event.value)
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("System event callback failed for %s", event.value)

    def notify_activity(self) -> None:
        """Rearm the inactivity timer after an accumulate or copy action."""
        self.timer.rearm()

    # ------------------------------------------------------------------
    # Lifecycle management
    # ------------------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._is_running:
                return
            if self._app_provider is None:
                self._app_provider = get_frontmost_app_provider()

            self._stop_event.clear()
            self._is_running = True
            self._last_app = self._read_app()
            self._last_tick = self._clock()
            self._poll_thread = threading.Thread(target=self._poll_loop, daemon=True)
            self._poll_thread.start()
            logger.info("Watching app switches every %ss", self.poll_interval)

    def stop(self) -> None:
        with self._lock:
            if not self._is_running:
                return
            self._is_running = False
            self._stop_event.set()

        self.timer.cancel()
        if self._poll_thread is not None:
            self._poll_thread.join(timeout=1.0)
            self._poll_thread = None

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------
    def _read_app(self) -> Optional[str]:
        try:
            return self._app_provider() if self._app_provider else None
        except Exception:
            logger.exception("Could not read the frontmost application")
            return None

    def poll_once(self) -> List[SystemEvent]:
        """Check for a wake or an app switch since the previous poll."""
        events: List[SystemEvent] = []

        now = self._clock()
        if self._last_tick is not None and now - self._last_tick > self.poll_interval + self.wake_threshold:
            logger.info("Wall clock jumped %.0fs, assuming the system woke from sleep", now - self._last_tick)
            events.append(SystemEvent.SYSTEM_WOKE)
        self._last_tick = now

        app = self._read_app()
        if app is not None:
            if self._last_app is not None and app != self._last_app:
                logger.debug("Frontmost app changed: %s -> %s", self._last_app, app)
                events.append(SystemEvent.APP_SWITCHED)
            self._last_app = app

        for event in events:
            self._emit(event)
        return events

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            self.poll_once()

    def __enter__(self) -> "SystemEventManager":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
