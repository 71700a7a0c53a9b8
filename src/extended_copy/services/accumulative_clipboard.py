"""Ordered buffer of captured text fragments.

The buffer owns the live ``ClipboardState``: the state is derived from the
number of items under the same lock, so ``Accumulating(n)`` always pairs with
exactly ``n`` buffered items.
"""

import logging
import threading
from typing import Callable, List, Optional

from extended_copy.exceptions import EmptyTextError, TextTooLargeError, TooManyItemsError
from extended_copy.models import ClipboardItem, ClipboardState

logger = logging.getLogger(__name__)

StateObserver = Callable[[ClipboardState], None]
EvictionHandler = Callable[[List[ClipboardItem]], None]


class AccumulativeClipboard:

    def __init__(
        self,
        separator: str = "\n",
        max_total_bytes: int = 10 * 1024 * 1024,
        max_item_bytes: int = 1024 * 1024,
        max_items: int = 1000,
        on_evict: Optional[EvictionHandler] = None,
    ) -> None:
        self.separator = separator
        self.max_total_bytes = max_total_bytes
        self.max_item_bytes = max_item_bytes
        self.max_items = max_items
        self._on_evict = on_evict
        self._separator_size = len(separator.encode("utf-8"))
        self._items: List[ClipboardItem] = []
        self._items_size = 0
        self._observers: List[StateObserver] = []
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config, on_evict: Optional[EvictionHandler] = None) -> "AccumulativeClipboard":
        return cls(
            separator=config.separator,
            max_total_bytes=config.max_total_bytes,
            max_item_bytes=config.max_item_bytes,
            max_items=config.max_items,
            on_evict=on_evict,
        )

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Register ``observer`` for state changes and return an unsubscribe function."""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def _publish(self) -> None:
        state = self.state
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                logger.exception("State observer failed")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> ClipboardState:
        with self._lock:
            return ClipboardState.for_count(len(self._items))

    @property
    def items(self) -> List[ClipboardItem]:
        with self._lock:
            return list(self._items)

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def total_size(self) -> int:
        """UTF-8 size of ``get_all_content()``, separators included."""
        with self._lock:
            return self._joined_size(len(self._items), self._items_size)

    def _joined_size(self, count: int, items_size: int) -> int:
        if count == 0:
            return 0
        return items_size + self._separator_size * (count - 1)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add_item(self, text: str) -> int:
        """Append ``text`` and return the new item count.

        When the joined content grows past ``max_total_bytes`` the oldest half
        of the buffer is dropped, repeatedly, until it fits again. The item
        just added is never dropped.
        """
        if not text:
            raise EmptyTextError("Nothing to accumulate: text is empty")

        item = ClipboardItem(text=text)
        if item.size > self.max_item_bytes:
            raise TextTooLargeError(item.size, self.max_item_bytes)

        with self._lock:
            if len(self._items) >= self.max_items:
                raise TooManyItemsError(self.max_items)

            self._items.append(item)
            self._items_size += item.size
            evicted = self._evict_over_budget()

            count = len(self._items)
            logger.debug("Accumulated item %s (%d bytes), %d in buffer", item.item_id, item.size, count)

            if evicted:
                logger.warning(
                    "Memory ceiling of %d bytes reached, dropped %d oldest item(s)",
                    self.max_total_bytes, len(evicted))
                if self._on_evict:
                    try:
                        self._on_evict(evicted)
                    except Exception:
                        logger.exception("Eviction handler failed")

            self._publish()
            return count

    def _evict_over_budget(self) -> List[ClipboardItem]:
        evicted: List[ClipboardItem] = []
        while len(self._items) > 1 and self._joined_size(len(self._items), self._items_size) > self.max_total_bytes:
            drop = min(max(1, len(self._items) // 2), len(self._items) - 1)
            dropped = self._items[:drop]
            del self._items[:drop]
            self._items_size -= sum(i.size for i in dropped)
            evicted.extend(dropped)
        return evicted

    def get_all_content(self) -> str:
        with self._lock:
            return self.separator.join(item.text for item in self._items)

    def reset(self) -> bool:
        """Clear the buffer. Returns ``False`` when it was already empty."""
        with self._lock:
            if not self._items:
                return False
            cleared = len(self._items)
            self._items.clear()
            self._items_size = 0
            logger.debug("Buffer reset, %d item(s) cleared", cleared)
            self._publish()
            return True
