"""Extended Copy: accumulate clipboard text with a modified copy chord."""

__version__ = "0.1.0"
