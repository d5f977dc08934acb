"""
System failure error classifications.

These exceptions represent failures of the storage layer. The triggering
operation is always aborted and rolled back; retrying is up to the caller.
"""

from typing import Optional

from .base import SpeedrunError


class SystemFailureError(SpeedrunError):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.recoverable = False


class PersistenceFailureError(SystemFailureError):
    """A transaction could not begin, execute a statement, or commit."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
