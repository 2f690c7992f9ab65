"""Error kinds raised by record stores and reported by the scheduler."""

from enum import Enum


class ErrorKind(Enum):
    INVALID_INTERVAL = "invalid_interval"
    STORE_UNAVAILABLE = "store_unavailable"
    NOT_FOUND = "not_found"


class ReminderError(Exception):
    kind: ErrorKind


class InvalidInterval(ReminderError):
    """Interval is non-numeric or outside the allowed range."""

    kind = ErrorKind.INVALID_INTERVAL


class StoreUnavailable(ReminderError):
    """A store read or write failed. Retryable."""

    kind = ErrorKind.STORE_UNAVAILABLE


class NotFound(ReminderError):
    kind = ErrorKind.NOT_FOUND


class DuplicateKey(ReminderError):
    """Insert hit an existing chat_id. Never surfaces past the scheduler."""

    kind = ErrorKind.STORE_UNAVAILABLE
