"""Error kinds raised by the XP tracker core.

Validation errors come from the manual minutes input and are recoverable:
the window reports them and keeps the text for correction.  Store errors
wrap ``OSError`` from the log file so the window can report them without
losing the in-memory run.
"""
from __future__ import annotations

from typing import Optional


class XPTrackerError(Exception):
    """Base class for every error raised by ``xptracker``."""


class ValidationError(XPTrackerError, ValueError):
    """Raised when manually entered minutes are not acceptable."""

    NOT_A_NUMBER = "NOT_A_NUMBER"
    OUT_OF_RANGE = "OUT_OF_RANGE"

    reason: str = ""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class NotANumberError(ValidationError):
    reason = ValidationError.NOT_A_NUMBER


class OutOfRangeError(ValidationError):
    reason = ValidationError.OUT_OF_RANGE


class InvalidUsernameError(ValidationError):
    reason = "INVALID_USERNAME"


class StoreError(XPTrackerError):
    """Failure touching the log file at ``path``."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class StoreWriteError(StoreError):
    """Appending a session to the log file failed."""


class StoreReadError(StoreError):
    """Reading the log file failed."""
