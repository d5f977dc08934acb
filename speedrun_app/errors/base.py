"""Root of the speedrun error hierarchy."""

from typing import Any, Optional


class SpeedrunError(Exception):
    """Base class for all errors raised by the speedrun core."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True
