"""
Error types raised by the gesture engines.

Every engine validates before it mutates, so catching one of these always
leaves the library, the capture sequence and any practice session as they
were before the call.
"""
from typing import Optional


class GestureError(Exception):
    """Base class for all recoverable engine errors."""


class InputRejected(GestureError):
    """The caller asked for something the current state does not allow."""


class SequenceAborted(InputRejected):
    """The caller declined to save a sequence after a consistency warning."""

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report


class QualityRejected(GestureError):
    """A captured frame failed the validity or quality gates."""

    def __init__(self, reason: str, quality: Optional[float] = None):
        super().__init__(reason)
        self.reason = reason
        self.quality = quality


class GestureNotFound(GestureError):
    def __init__(self, gesture_id):
        super().__init__(f"Gesture not found: {gesture_id}")
        self.gesture_id = gesture_id


class StorageError(GestureError):
    """The backing store could not be read or written."""


class ConfigError(GestureError, ValueError):
    pass
