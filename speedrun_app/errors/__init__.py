"""
Error classification for the speedrun core.

Every failure is surfaced synchronously to the caller as one of three typed
errors: lifecycle misuse, persistence failure, or malformed import input.
"""

from .base import SpeedrunError
from .input import InputError, MalformedInputError
from .lifecycle import InvalidStateError, LifecycleError
from .system_failures import PersistenceFailureError, SystemFailureError

__all__ = [
    "SpeedrunError",
    # Lifecycle errors
    "LifecycleError",
    "InvalidStateError",
    # Input errors
    "InputError",
    "MalformedInputError",
    # System failures
    "SystemFailureError",
    "PersistenceFailureError",
]
