"""Exceptions raised by Extended Copy."""

import time
from typing import Optional


class ExtendedCopyError(Exception):
    """Base exception for all Extended Copy errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error
        self.timestamp = time.time()

    def __str__(self):
        base_msg = super().__str__()
        if self.original_error:
            return f"{base_msg} (Caused by: {type(self.original_error).__name__}: {self.original_error})"
        return base_msg


class ValidationError(ExtendedCopyError):
    """Text was rejected before reaching the buffer."""
    pass


class EmptyTextError(ValidationError):
    pass


class TextTooLargeError(ValidationError):

    def __init__(self, size: int, limit: int):
        super().__init__(f"Text is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit


class TooManyItemsError(ValidationError):

    def __init__(self, limit: int):
        super().__init__(f"Buffer already holds the maximum of {limit} items")
        self.limit = limit


class PermissionDeniedError(ExtendedCopyError):
    """Input monitoring permission is missing."""
    pass


class PasteboardUnavailableError(ExtendedCopyError):
    """The OS pasteboard could not be read or written."""
    pass


class ConfigurationError(ExtendedCopyError):
    pass


class MonitorStateError(ExtendedCopyError):
    """Invalid keyboard monitor lifecycle transition."""
    pass
