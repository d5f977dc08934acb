"""
Input error classifications for configuration imports.

These describe documents or time strings that cannot be turned into a
configuration. They are raised before any write happens.
"""

from typing import Optional

from .base import SpeedrunError


class InputError(SpeedrunError):
    """Base class for rejected external input."""


class MalformedInputError(InputError):
    """Input exists but is in an incorrect format."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format
