"""
Core attempt state machine logic.

Pure functions computing the next attempt state for each lifecycle operation
and the derived timing queries. Nothing here touches the store; the run
manager applies the returned state only after any required save succeeded.
"""

from typing import Optional

from ..data.models import Run
from ..errors import InvalidStateError
from ..logging.config import get_state_logger
from .models import AttemptState, Completed, Running

state_logger = get_state_logger(__name__)


def _reject(state: AttemptState, operation: str, message: str) -> InvalidStateError:
    state_logger.warning(
        "Operation rejected",
        operation=operation,
        mode=state.mode.value,
        reason=message
    )
    return InvalidStateError(
        message,
        current_mode=state.mode.value,
        attempted_operation=operation
    )


def start_attempt(now_ns: int) -> Running:
    """
    Begin timing a fresh attempt.

    Allowed from any mode; whatever was in progress is discarded.
    """
    return Running(started_at_ns=now_ns, split_started_at_ns=now_ns)


def record_split(state: AttemptState, now_ns: int, split_count: int) -> AttemptState:
    """
    Record the split currently being timed.

    Args:
        state: Current attempt state
        now_ns: Clock reading
        split_count: Number of splits in the configuration (N)

    Returns:
        Running for an intermediate split, Completed (unsaved) for the last

    Raises:
        InvalidStateError: If not running or every split is already recorded
    """
    if not isinstance(state, Running):
        raise _reject(state, "split", "cannot split: run not active")

    if not 0 <= state.split_index < split_count:
        raise _reject(state, "split", "cannot split: all splits completed")

    if state.split_index == split_count - 1:
        return state.completed(now_ns)

    return state.with_split(now_ns)


def undo_split(state: AttemptState, now_ns: int) -> Running:
    """
    Rewind to the previous split.

    Raises:
        InvalidStateError: If not running or no split has been recorded
    """
    if not isinstance(state, Running):
        raise _reject(state, "undo", "cannot undo: run not active")

    if not state.durations:
        raise _reject(state, "undo", "cannot undo: no splits recorded")

    return state.with_undo(now_ns)


def elapsed_ns(state: AttemptState, now_ns: int) -> int:
    """Total elapsed time of the attempt."""
    if isinstance(state, Running):
        return now_ns - state.started_at_ns
    if isinstance(state, Completed):
        return state.total_ns
    return 0


def current_split_elapsed_ns(state: AttemptState, now_ns: int, split_count: int) -> int:
    """Elapsed time on the split being timed; zero unless running."""
    if isinstance(state, Running) and state.split_index < split_count:
        return now_ns - state.split_started_at_ns
    return 0


def should_promote(total_ns: int, pb_total_ns: Optional[int]) -> bool:
    """
    PB promotion rule for a completed attempt.

    No PB means promote unconditionally; otherwise only a strictly lower
    total promotes. Ties keep the existing PB.
    """
    if pb_total_ns is None:
        return True
    return total_ns < pb_total_ns


def is_better_than_pb(state: AttemptState, pb: Optional[Run]) -> bool:
    """
    Whether the finished attempt beats the personal best.

    False unless the attempt is completed. True when there is no PB or when
    this very attempt became the PB.
    """
    if not isinstance(state, Completed):
        return False

    if pb is None:
        return True

    if state.run_id is not None and pb.id == state.run_id:
        return True

    return state.total_ns < pb.total_ns

