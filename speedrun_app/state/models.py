"""
Attempt state models.

The attempt in progress is exactly one of Idle, Running or Completed. Each is
an immutable value; transitions build a new value instead of flipping flags,
so combinations such as "completed while running" cannot be represented.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class AttemptMode(str, Enum):
    """Attempt lifecycle modes."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Idle:
    """No attempt in progress."""

    mode = AttemptMode.IDLE

    @property
    def durations(self) -> tuple[int, ...]:
        return ()


@dataclass(frozen=True)
class Running:
    """Attempt being timed."""

    started_at_ns: int                           # Clock reading at start
    split_started_at_ns: int                     # Clock reading when the current split began
    split_index: int = 0                         # Index of the split being timed
    durations: tuple[int, ...] = ()              # Recorded segment durations so far

    mode = AttemptMode.RUNNING

    def with_split(self, now_ns: int) -> 'Running':
        """Record the current split and move on to the next one."""
        return Running(
            started_at_ns=self.started_at_ns,
            split_started_at_ns=now_ns,
            split_index=self.split_index + 1,
            durations=self.durations + (now_ns - self.split_started_at_ns,)
        )

    def with_undo(self, now_ns: int) -> 'Running':
        """Drop the last recorded split and time it again from now."""
        return Running(
            started_at_ns=self.started_at_ns,
            split_started_at_ns=now_ns,
            split_index=self.split_index - 1,
            durations=self.durations[:-1]
        )

    def completed(self, now_ns: int) -> 'Completed':
        """Record the final split."""
        return Completed(
            started_at_ns=self.started_at_ns,
            ended_at_ns=now_ns,
            durations=self.durations + (now_ns - self.split_started_at_ns,)
        )


@dataclass(frozen=True)
class Completed:
    """Attempt that reached the final split; timing is frozen."""

    started_at_ns: int
    ended_at_ns: int
    durations: tuple[int, ...]
    run_id: Optional[int] = None                 # Stored run id once saved
    promoted: bool = False                       # Whether the save made it the PB

    mode = AttemptMode.COMPLETED

    @property
    def total_ns(self) -> int:
        return sum(self.durations, 0)

    def with_saved(self, run_id: int, promoted: bool) -> 'Completed':
        """Attach the stored run identity."""
        return Completed(
            started_at_ns=self.started_at_ns,
            ended_at_ns=self.ended_at_ns,
            durations=self.durations,
            run_id=run_id,
            promoted=promoted
        )


AttemptState = Union[Idle, Running, Completed]


@dataclass(frozen=True)
class SaveResult:
    """Outcome of persisting one attempt."""

    run_id: int
    attempt_num: int
    completed: bool
    promoted: bool
