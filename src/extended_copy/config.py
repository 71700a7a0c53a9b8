from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from extended_copy.exceptions import ConfigurationError

ENV_PREFIX = "EXTCOPY_"


def _default_modifier() -> str:
    return "command" if platform.system() == "Darwin" else "ctrl"


def _default_copy_hotkey() -> str:
    return f"{_default_modifier()}+c"


def _default_accumulate_hotkey() -> str:
    return f"{_default_modifier()}+shift+c"


def decode_separator(value: str) -> str:
    # .env files cannot hold a bare newline, so accept the usual escapes.
    return value.replace("\\n", "\n").replace("\\t", "\t")


@dataclass(frozen=True)
class AppConfig:
    separator: str = "\n"
    max_total_bytes: int = 10 * 1024 * 1024
    max_item_bytes: int = 1024 * 1024
    max_items: int = 1000
    inactivity_timeout: float = 300.0
    accumulate_hotkey: str = field(default_factory=_default_accumulate_hotkey)
    copy_hotkey: str = field(default_factory=_default_copy_hotkey)
    pasteboard_timeout: float = 0.5
    app_poll_interval: float = 0.5
    permission_poll_interval: float = 2.0
    capture_delay: float = 0.15

    def __post_init__(self):
        if self.max_item_bytes <= 0 or self.max_total_bytes <= 0:
            raise ConfigurationError("Size limits must be positive")
        if self.max_item_bytes > self.max_total_bytes:
            raise ConfigurationError(
                f"max_item_bytes ({self.max_item_bytes}) exceeds max_total_bytes ({self.max_total_bytes})")
        if self.max_items < 1:
            raise ConfigurationError("max_items must be at least 1")
        if self.inactivity_timeout < 0:
            raise ConfigurationError("inactivity_timeout cannot be negative")
        if not 0 < self.pasteboard_timeout < 1:
            raise ConfigurationError("pasteboard_timeout must be below one second")
        if self.app_poll_interval <= 0 or self.permission_poll_interval <= 0:
            raise ConfigurationError("Poll intervals must be positive")
        if self.capture_delay < 0:
            raise ConfigurationError("capture_delay cannot be negative")
        if not self.accumulate_hotkey or not self.copy_hotkey:
            raise ConfigurationError("Hotkeys cannot be empty")
        if self.accumulate_hotkey == self.copy_hotkey:
            raise ConfigurationError("Accumulate and copy hotkeys must differ")

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None, **overrides: Any) -> "AppConfig":
        """Build the configuration from ``EXTCOPY_*`` variables.

        A ``.env`` file is loaded first without overriding variables that are
        already set. Keyword overrides that are not ``None`` win over the
        environment.
        """
        load_dotenv(dotenv_path=env_path, override=False)

        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            values[f.name] = cls._parse(f.name, f.type, raw)

        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration option: {e}", e)

    @staticmethod
    def _parse(name: str, type_name: Any, raw: str) -> Any:
        type_name = getattr(type_name, "__name__", type_name)
        try:
            if type_name == "int":
                return int(raw)
            if type_name == "float":
                return float(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}", e)
        if name == "separator":
            return decode_separator(raw)
        return raw.strip()

