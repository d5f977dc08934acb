"""
Parsers for configuration import documents.

This module turns an untrusted import document (already decoded from JSON or
YAML into plain Python objects) into a validated ImportDocument. Personal
best split times arrive as cumulative clock strings and are converted into
per-segment nanosecond durations.
"""

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from ..errors import MalformedInputError
from .models import ImportDocument, ImportedPersonalBest

CLOCK_FORMAT = "m:ss.fff or ss.fff"

# Largest value an SQLite INTEGER column holds.
MAX_STORED_INT = 2**63 - 1

_NANOS = Decimal(1_000_000_000)
_SIXTY = Decimal(60)
_MAX_DECIMAL = Decimal(MAX_STORED_INT)


def _parse_decimal(text: str, raw: str) -> Decimal:
    """Parse one numeric component of a clock string."""
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise MalformedInputError(
            f"Invalid split time: {raw!r}",
            raw_data=raw,
            expected_format=CLOCK_FORMAT
        ) from e

    if not value.is_finite() or value < 0 or value > _MAX_DECIMAL:
        raise MalformedInputError(
            f"Invalid split time: {raw!r}",
            raw_data=raw,
            expected_format=CLOCK_FORMAT
        )
    return value


def parse_clock_time(raw: Any) -> int:
    """
    Parse a cumulative clock string into nanoseconds.

    Accepts "minutes:seconds.fraction" or "seconds.fraction".

    Args:
        raw: Clock string such as "2:46.000" or "49.5"

    Returns:
        Cumulative time in nanoseconds

    Raises:
        MalformedInputError: If the value is not a well-formed clock string
    """
    if not isinstance(raw, str):
        raise MalformedInputError(
            f"Split time must be a string, got {type(raw).__name__}",
            raw_data=repr(raw),
            expected_format=CLOCK_FORMAT
        )

    text = raw.strip()
    parts = text.split(":")
    if not text or len(parts) > 2 or any(not part.strip() for part in parts):
        raise MalformedInputError(
            f"Invalid split time: {raw!r}",
            raw_data=raw,
            expected_format=CLOCK_FORMAT
        )

    if len(parts) == 2:
        minutes = _parse_decimal(parts[0].strip(), raw)
        seconds = _parse_decimal(parts[1].strip(), raw)
        if minutes != minutes.to_integral_value() or seconds >= _SIXTY:
            raise MalformedInputError(
                f"Invalid split time: {raw!r}",
                raw_data=raw,
                expected_format=CLOCK_FORMAT
            )
    else:
        minutes = Decimal(0)
        seconds = _parse_decimal(parts[0].strip(), raw)

    total = (minutes * _SIXTY + seconds) * _NANOS
    nanos = int(total.to_integral_value(rounding=ROUND_HALF_UP))
    if nanos > MAX_STORED_INT:
        raise MalformedInputError(
            f"Split time out of range: {raw!r}",
            raw_data=raw,
            expected_format=CLOCK_FORMAT
        )
    return nanos


def cumulative_to_segments(cumulative_ns: Sequence[int]) -> tuple[int, ...]:
    """
    Convert cumulative split times into per-segment durations.

    The first segment is its own cumulative value; every later segment is its
    cumulative value minus the previous cumulative value.

    Raises:
        MalformedInputError: If a cumulative value is lower than the previous one
    """
    segments = []
    previous = 0
    for index, value in enumerate(cumulative_ns):
        if value < previous:
            raise MalformedInputError(
                f"Cumulative split time at index {index} is earlier than the previous split",
                raw_data=str(value),
                expected_format="non-decreasing cumulative times"
            )
        segments.append(value - previous)
        previous = value
    return tuple(segments)


def _require_str(payload: Mapping, field: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str):
        raise MalformedInputError(
            f"Field '{field}' must be a string",
            raw_data=repr(value),
            expected_format="string"
        )
    return value


def _optional_count(payload: Mapping, field: str) -> int:
    value = payload.get(field, 0)
    if (isinstance(value, bool) or not isinstance(value, int)
            or not 0 <= value <= MAX_STORED_INT):
        raise MalformedInputError(
            f"Field '{field}' must be a non-negative integer",
            raw_data=repr(value),
            expected_format="non-negative integer"
        )
    return value


def _split_time_text(entry: Any) -> Any:
    """Split entries are either {"time": "..."} objects or bare strings."""
    if isinstance(entry, Mapping):
        if "time" not in entry:
            raise MalformedInputError(
                "Personal best split is missing 'time'",
                raw_data=repr(entry),
                expected_format='{"time": "m:ss.fff"}'
            )
        return entry["time"]
    return entry


def parse_personal_best(block: Any, split_count: int) -> Optional[ImportedPersonalBest]:
    """
    Parse the optional personal best block.

    A missing block, or one without split times, means no personal best.
    """
    if block is None:
        return None

    if not isinstance(block, Mapping):
        raise MalformedInputError(
            "Field 'personal_best' must be an object",
            raw_data=repr(block),
            expected_format="object"
        )

    splits = block.get("splits") or []
    if not isinstance(splits, Sequence) or isinstance(splits, str):
        raise MalformedInputError(
            "Field 'personal_best.splits' must be a list",
            raw_data=repr(splits),
            expected_format="list"
        )

    if not splits:
        return None

    if len(splits) > split_count:
        raise MalformedInputError(
            f"Personal best has {len(splits)} splits but only {split_count} split names",
            raw_data=repr(splits),
            expected_format="at most one time per split name"
        )

    attempt_num = _optional_count(block, "attempt")
    cumulative = [parse_clock_time(_split_time_text(entry)) for entry in splits]

    return ImportedPersonalBest(
        attempt_num=attempt_num,
        durations_ns=cumulative_to_segments(cumulative),
    )


def parse_import_document(payload: Any) -> ImportDocument:
    """
    Validate a decoded import document.

    Args:
        payload: Mapping with title, category, attempts, completed,
            split_names and an optional personal_best block. Unknown keys
            (such as golds) are ignored.

    Returns:
        Validated ImportDocument

    Raises:
        MalformedInputError: On the first invalid field
    """
    if not isinstance(payload, Mapping):
        raise MalformedInputError(
            "Import document must be an object",
            raw_data=repr(payload)[:200],
            expected_format="object"
        )

    title = _require_str(payload, "title")
    category = _require_str(payload, "category")
    attempts = _optional_count(payload, "attempts")
    completed = _optional_count(payload, "completed")

    split_names = payload.get("split_names")
    if (not isinstance(split_names, Sequence) or isinstance(split_names, str)
            or not split_names
            or not all(isinstance(name, str) for name in split_names)):
        raise MalformedInputError(
            "Field 'split_names' must be a non-empty list of strings",
            raw_data=repr(split_names),
            expected_format="list of strings"
        )

    personal_best = parse_personal_best(payload.get("personal_best"), len(split_names))

    return ImportDocument(
        title=title,
        category=category,
        attempts=attempts,
        completed=completed,
        split_names=tuple(split_names),
        personal_best=personal_best,
    )
