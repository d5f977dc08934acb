"""
Lifecycle error classifications.

Raised when an operation is attempted in a mode that forbids it. These never
mutate state, so the caller can simply ignore the keypress or report it.
"""

from typing import Optional

from .base import SpeedrunError


class LifecycleError(SpeedrunError):
    """Base class for attempt lifecycle misuse."""

    def __init__(self, message: str, current_mode: Optional[str] = None,
                 attempted_operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_mode = current_mode
        self.attempted_operation = attempted_operation


class InvalidStateError(LifecycleError):
    """Operation not allowed in the current attempt mode."""
