from dataclasses import dataclass
from enum import Enum


class StateMode(Enum):
    NORMAL = "normal"
    ACCUMULATING = "accumulating"


@dataclass(frozen=True)
class ClipboardState:
    """Either ``Normal`` or ``Accumulating(count)`` with ``count >= 1``."""
    mode: StateMode = StateMode.NORMAL
    count: int = 0

    def __post_init__(self):
        if self.mode is StateMode.NORMAL and self.count != 0:
            raise ValueError("Normal state carries no item count")
        if self.mode is StateMode.ACCUMULATING and self.count < 1:
            raise ValueError("Accumulating state needs at least one item")

    @classmethod
    def normal(cls) -> "ClipboardState":
        return cls()

    @classmethod
    def accumulating(cls, count: int) -> "ClipboardState":
        return cls(StateMode.ACCUMULATING, count)

    @classmethod
    def for_count(cls, count: int) -> "ClipboardState":
        return cls.accumulating(count) if count else cls.normal()

    @property
    def is_accumulating(self) -> bool:
        return self.mode is StateMode.ACCUMULATING

    def __str__(self) -> str:
        if self.is_accumulating:
            return f"Accumulating({self.count})"
        return "Normal"
