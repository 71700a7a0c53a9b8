"""Service layer for Extended Copy."""

from extended_copy.services.accumulative_clipboard import AccumulativeClipboard
from extended_copy.services.coordinator import ClipboardCoordinator
from extended_copy.services.keyboard_monitor import KeyboardEventMonitor, KeyEvent, KeyEventKind
from extended_copy.services.notifications import NotificationManager, StatusBarController
from extended_copy.services.permission_manager import PermissionManager
from extended_copy.services.system_events import InactivityTimer, SystemEvent, SystemEventManager

__all__ = [
    "AccumulativeClipboard",
    "ClipboardCoordinator",
    "InactivityTimer",
    "KeyEvent",
    "KeyEventKind",
    "KeyboardEventMonitor",
    "NotificationManager",
    "PermissionManager",
    "StatusBarController",
    "SystemEvent",
    "SystemEventManager",
]
