import platform
from typing import Type

from extended_copy.clipboard.base import Pasteboard


def get_pasteboard_class() -> Type[Pasteboard]:
    system = platform.system()

    if system == "Windows":
        from extended_copy.clipboard.windows import WindowsPasteboard
        return WindowsPasteboard
    elif system == "Linux":
        from extended_copy.clipboard.linux import LinuxPasteboard
        return LinuxPasteboard
    elif system == "Darwin":
        from extended_copy.clipboard.macos import MacOSPasteboard
        return MacOSPasteboard
    else:
        raise NotImplementedError(f"Platform '{system}' is not supported")


def get_pasteboard(timeout: float = 0.5) -> Pasteboard:
    pasteboard_class = get_pasteboard_class()
    return pasteboard_class(timeout=timeout)
