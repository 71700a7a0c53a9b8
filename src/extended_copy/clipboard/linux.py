import os
import shutil
import subprocess
from typing import List, Optional, Tuple

from extended_copy.clipboard.base import Pasteboard
from extended_copy.exceptions import PasteboardUnavailableError


class LinuxPasteboard(Pasteboard):
    """Text pasteboard backed by ``wl-clipboard`` on Wayland or ``xclip`` on X11."""

    def _commands(self) -> Tuple[List[str], List[str]]:
        if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-paste") and shutil.which("wl-copy"):
            return (
                ["wl-paste", "--no-newline", "--type", "text/plain"],
                ["wl-copy", "--type", "text/plain"],
            )
        if shutil.which("xclip"):
            return (
                ["xclip", "-selection", "clipboard", "-t", "UTF8_STRING", "-o"],
                ["xclip", "-selection", "clipboard", "-t", "UTF8_STRING", "-i"],
            )
        raise PasteboardUnavailableError("Neither wl-clipboard nor xclip is installed")

    def _read_text(self) -> Optional[str]:
        read_cmd, _ = self._commands()
        try:
            result = subprocess.run(
                read_cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError:
            # Both tools exit non-zero when the selection has no text target.
            return None
        except (subprocess.TimeoutExpired, OSError) as e:
            raise PasteboardUnavailableError(f"{read_cmd[0]} did not answer", e)
        return result.stdout.decode("utf-8", errors="replace")

    def _write_text(self, text: str) -> None:
        _, write_cmd = self._commands()
        try:
            # xclip forks to serve the selection, so stdout must not be a pipe.
            subprocess.run(
                write_cmd,
                input=text.encode("utf-8"),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
                timeout=self.timeout,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            raise PasteboardUnavailableError(f"{write_cmd[0]} failed", e)
