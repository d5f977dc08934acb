"""
Core data models for runs, splits and configuration.

All records are immutable; the store builds them from rows and the run
manager replaces them wholesale after every reload.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Split:
    """A single recorded segment of a run."""
    index: int                                   # 0-based position in the run
    name: str                                    # Split name as snapshotted at save time
    duration_ns: int                             # Time spent on this segment, not cumulative
    best_segment_ns: Optional[int] = None        # Best ever duration at this index (PB only)

    def with_best_segment(self, best_segment_ns: Optional[int]) -> 'Split':
        """Return a copy annotated with a best segment value."""
        return replace(self, best_segment_ns=best_segment_ns)


@dataclass(frozen=True)
class Run:
    """A finished or abandoned attempt as stored in history."""
    id: int
    title: str
    category: str
    start_time: datetime
    end_time: Optional[datetime]
    completed: bool
    is_pb: bool
    attempt_num: int
    splits: tuple[Split, ...] = ()

    @property
    def total_ns(self) -> int:
        """Sum of all segment durations."""
        return sum((split.duration_ns for split in self.splits), 0)

    def split_at(self, index: int) -> Optional[Split]:
        """Index-aligned lookup; out-of-range indices have no data."""
        if 0 <= index < len(self.splits):
            return self.splits[index]
        return None


@dataclass(frozen=True)
class RunConfig:
    """Singleton configuration: naming, counters and split names."""
    title: str
    category: str
    attempts: int
    completed: int
    split_names: tuple[str, ...]

    @property
    def split_count(self) -> int:
        return len(self.split_names)


@dataclass(frozen=True)
class ImportedPersonalBest:
    """Personal best block of an import document, converted to segments."""
    attempt_num: int
    durations_ns: tuple[int, ...]

    @property
    def total_ns(self) -> int:
        return sum(self.durations_ns, 0)


@dataclass(frozen=True)
class ImportDocument:
    """Validated configuration import document."""
    title: str
    category: str
    attempts: int
    completed: int
    split_names: tuple[str, ...]
    personal_best: Optional[ImportedPersonalBest] = None
