#!/usr/bin/env python3

import argparse
import logging
import signal
import sys
import threading
import time
from typing import Any, Callable, List, Optional

from extended_copy.clipboard import Pasteboard, get_pasteboard
from extended_copy.config import AppConfig, decode_separator
from extended_copy.exceptions import ExtendedCopyError, PermissionDeniedError
from extended_copy.models import ClipboardItem
from extended_copy.services import (
    AccumulativeClipboard,
    ClipboardCoordinator,
    KeyboardEventMonitor,
    NotificationManager,
    PermissionManager,
    StatusBarController,
    SystemEventManager,
)
from extended_copy.services.keyboard_monitor import MonitorStatus

logger = logging.getLogger(__name__)


class ExtendedCopyApp:

    def __init__(
        self,
        config: AppConfig,
        pasteboard: Optional[Pasteboard] = None,
        keyboard_backend: Any = None,
        app_provider: Optional[Callable[[], Optional[str]]] = None,
        permission_checker: Optional[Callable[[], bool]] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.config = config
        self.notifier = NotificationManager()
        self.status_bar = StatusBarController(on_render=on_status or self._print_status)
        self.buffer = AccumulativeClipboard.from_config(config, on_evict=self._on_evict)
        self.buffer.subscribe(self.status_bar.update)
        self.pasteboard = pasteboard or get_pasteboard(timeout=config.pasteboard_timeout)
        self.permissions = PermissionManager(
            checker=permission_checker,
            poll_interval=config.permission_poll_interval,
        )
        self.monitor = KeyboardEventMonitor(
            accumulate_hotkey=config.accumulate_hotkey,
            copy_hotkey=config.copy_hotkey,
            permission_check=self.permissions.has_permission,
            backend=keyboard_backend,
        )
        self.system_events = SystemEventManager(
            inactivity_timeout=config.inactivity_timeout,
            poll_interval=config.app_poll_interval,
            app_provider=app_provider,
        )
        self.coordinator = ClipboardCoordinator(
            buffer=self.buffer,
            pasteboard=self.pasteboard,
            notifier=self.notifier,
            on_activity=self.system_events.notify_activity,
            copy_trigger=self.monitor.trigger_copy if config.capture_delay > 0 else None,
            capture_delay=config.capture_delay,
        )
        self._consumer: Optional[threading.Thread] = None
        self._unsubscribe: List[Callable[[], None]] = []
        self.running = False

    @staticmethod
    def _print_status(title: str) -> None:
        print(f"Extended Copy {title}")

    def _on_evict(self, items: List[ClipboardItem]) -> None:
        self.notifier.warning(
            "Oldest items dropped",
            f"Memory limit reached, {len(items)} oldest item(s) removed from the accumulated text")

    def _on_permission_change(self, granted: bool) -> None:
        self.coordinator.set_permission(granted)
        if not granted:
            self.monitor.pause()
            self.permissions.request_permission()
            return

        try:
            if self.monitor.status is MonitorStatus.NEW:
                self.monitor.start()
            elif self.monitor.status is MonitorStatus.PAUSED:
                self.monitor.resume()
        except PermissionDeniedError as e:
            self.notifier.error("Permission denied", str(e))
            self.coordinator.set_permission(False)

    def start(self):
        if self.running:
            return

        print(f"Starting Extended Copy - accumulate: {self.config.accumulate_hotkey}, "
              f"copy: {self.config.copy_hotkey}")
        self.running = True

        self._unsubscribe.append(self.system_events.subscribe(self.coordinator.handle_system_event))

        self._consumer = threading.Thread(
            target=self.coordinator.run, args=(self.monitor.events(),), daemon=True)
        self._consumer.start()

        self.permissions.watch(self._on_permission_change)
        self.system_events.start()

        print("Extended Copy running. Press Ctrl+C to stop")

    def stop(self):
        if not self.running:
            return

        self.running = False

        self.permissions.stop()
        self.system_events.stop()
        self.monitor.stop()

        if self._consumer is not None:
            self._consumer.join(timeout=2.0)
            self._consumer = None

        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()

        # Accumulated text lives in memory only.
        self.coordinator.reset()
        print("Extended Copy stopped")

    def run_forever(self):
        self.start()

        try:
            while self.running:
                time.sleep(1.0)
        except KeyboardInterrupt:
            print("\nStopping...")
        finally:
            self.stop()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Extended Copy - accumulate clipboard text with a modified copy chord"
    )

    parser.add_argument(
        "-s", "--separator",
        type=str,
        default=None,
        help="Text placed between accumulated items, \\n and \\t are expanded (default: newline)"
    )

    parser.add_argument(
        "-t", "--timeout",
        type=float,
        default=None,
        help="Seconds of inactivity before accumulation resets, 0 disables (default: 300)"
    )

    parser.add_argument(
        "--accumulate-hotkey",
        type=str,
        default=None,
        help="Chord that appends to the accumulated text (default: ctrl+shift+c, command+shift+c on macOS)"
    )

    parser.add_argument(
        "--copy-hotkey",
        type=str,
        default=None,
        help="Plain copy chord that resets accumulation (default: ctrl+c, command+c on macOS)"
    )

    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Path to a .env file with EXTCOPY_* settings"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    separator = decode_separator(args.separator) if args.separator is not None else None

    try:
        config = AppConfig.from_env(
            env_path=args.env_file,
            separator=separator,
            inactivity_timeout=args.timeout,
            accumulate_hotkey=args.accumulate_hotkey,
            copy_hotkey=args.copy_hotkey,
        )
    except ExtendedCopyError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)

    app = ExtendedCopyApp(config)

    def signal_handler(signum, frame):
        app.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.run_forever()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
