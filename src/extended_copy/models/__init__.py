from extended_copy.models.clipboard_item import ClipboardItem
from extended_copy.models.state import ClipboardState, StateMode

__all__ = [
    'ClipboardItem',
    'ClipboardState',
    'StateMode',
]
