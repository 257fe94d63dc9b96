"""
Error types raised by the content moderation layer.

- ValidationError: malformed input to a mutating operation (empty word,
  unknown severity). Raised synchronously, never retried.
- StoreUnavailable: the backing word or settings store failed. Reads fail
  open and only log it; writes let it reach the caller.
"""


class ModerationError(Exception):
    """Base class for content moderation errors."""


class ValidationError(ModerationError, ValueError):
    """Raised when a word, severity or settings value is malformed."""


class StoreUnavailable(ModerationError):
    """Raised when the backing store cannot be read from or written to."""
