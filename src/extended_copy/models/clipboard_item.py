from dataclasses import dataclass, field
from datetime import datetime

from ulid import ULID


@dataclass(frozen=True)
class ClipboardItem:
    """Immutable text fragment captured by the accumulate chord."""
    text: str
    created_at: datetime = field(default_factory=datetime.now)
    item_id: str = field(default_factory=lambda: f"i_{ULID()}")

    @property
    def size(self) -> int:
        return len(self.text.encode("utf-8"))
