from extended_copy.clipboard.base import Pasteboard
from extended_copy.clipboard.factory import get_pasteboard_class, get_pasteboard

__all__ = [
    'Pasteboard',
    'get_pasteboard_class',
    'get_pasteboard',
]
