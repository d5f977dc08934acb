"""
Runtime management for the attempt being timed.

This module owns the in-memory attempt state, applies the lifecycle
transitions from the state machine, and saves finished or abandoned attempts
to the run store inside a single transaction together with the counter
update and the personal best decision.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from ..config.defaults import RunDefaults
from ..config.loader import ConfigLoader
from ..config.validation import ConfigValidator
from ..data.importer import ConfigurationImporter, load_import_file
from ..data.models import ImportDocument, Run, RunConfig
from ..errors import InvalidStateError, MalformedInputError, PersistenceFailureError
from ..history.aggregator import HistoryAggregator
from ..logging.config import get_state_logger, log_mode_transition
from ..persistence.run_store import RunStore
from ..utils.time import ns_to_datetime
from . import machine
from .models import AttemptMode, AttemptState, Completed, Idle, Running, SaveResult

logger = structlog.get_logger(__name__)
state_logger = get_state_logger(__name__)

Clock = Callable[[], int]


class RunManager:
    """Lifecycle state machine and persistence coordinator for one timer.

    Mutating operations (start, split, undo, reset, save_as_pb, promote_run,
    update_config, update_split_names, import_config) must be called from a
    single control path; the manager does no locking of its own. Timing
    queries only read state and may run on a separate presentation loop.
    """

    def __init__(
        self,
        store: RunStore,
        clock: Clock = time.time_ns,
        synthetic_start_offset_hours: int = 24
    ):
        self.logger = logger
        self.store = store
        self.clock = clock
        self.aggregator = HistoryAggregator(store)
        self.importer = ConfigurationImporter(store, synthetic_start_offset_hours)

        self._config: RunConfig = store.load_config()
        self._state: AttemptState = Idle()
        self._pb: Optional[Run] = None
        self._best_segments: list[Optional[int]] = [None] * self._config.split_count

        self._reload_personal_best()

        self.logger.info(
            "Run manager initialized",
            title=self._config.title,
            category=self._config.category,
            attempts=self._config.attempts,
            split_count=self._config.split_count,
            personal_best_run_id=self._pb.id if self._pb else None
        )

    @classmethod
    def from_config(
        cls,
        config_dir: Optional[Path] = None,
        overrides: Optional[dict[str, Any]] = None,
        clock: Clock = time.time_ns
    ) -> "RunManager":
        """
        Build a manager from merged settings.

        Raises:
            ValueError: If the merged settings fail validation
        """
        config = ConfigLoader.create(config_dir).merge_config(overrides)

        errors = ConfigValidator.validate_config(config)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            raise ValueError("Invalid configuration: " + "; ".join(error_msgs))

        defaults = config["defaults"]
        store = RunStore(
            db_path=config["store"]["db_path"],
            timeout_seconds=config["store"]["timeout_seconds"],
            defaults=RunDefaults(
                title=defaults["title"],
                category=defaults["category"],
                split_names=tuple(defaults["split_names"])
            )
        )
        return cls(
            store,
            clock=clock,
            synthetic_start_offset_hours=config["importer"]["synthetic_start_offset_hours"]
        )

    # ------------------------------------------------------------------
    # Presentation accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> RunConfig:
        return self._config

    @property
    def title(self) -> str:
        return self._config.title

    @property
    def category(self) -> str:
        return self._config.category

    @property
    def attempts(self) -> int:
        return self._config.attempts

    @property
    def completed_runs(self) -> int:
        return self._config.completed

    @property
    def split_names(self) -> tuple[str, ...]:
        return self._config.split_names

    @property
    def state(self) -> AttemptState:
        return self._state

    @property
    def mode(self) -> AttemptMode:
        return self._state.mode

    @property
    def is_running(self) -> bool:
        return isinstance(self._state, Running)

    @property
    def is_completed(self) -> bool:
        return isinstance(self._state, Completed)

    @property
    def current_split_index(self) -> int:
        """Split being timed; the final split's index once completed."""
        if isinstance(self._state, Running):
            return self._state.split_index
        if isinstance(self._state, Completed):
            return len(self._state.durations) - 1
        return 0

    @property
    def current_durations(self) -> tuple[int, ...]:
        return self._state.durations

    @property
    def personal_best(self) -> Optional[Run]:
        """The PB with best segment annotations, or None."""
        return self._pb

    @property
    def best_segments(self) -> list[Optional[int]]:
        return list(self._best_segments)

    def elapsed_ns(self) -> int:
        """Total elapsed time of the current attempt."""
        return machine.elapsed_ns(self._state, self.clock())

    def current_split_elapsed_ns(self) -> int:
        """Elapsed time on the split being timed."""
        return machine.current_split_elapsed_ns(
            self._state, self.clock(), self._config.split_count
        )

    def is_better_than_pb(self) -> bool:
        return machine.is_better_than_pb(self._state, self._pb)

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start timing a fresh attempt."""
        if isinstance(self._state, Running):
            self.logger.warning(
                "Discarding unsaved attempt",
                recorded_splits=len(self._state.durations)
            )

        self._transition(machine.start_attempt(self.clock()), "start")

    def split(self) -> bool:
        """
        Record the current split.

        Returns:
            True if this was the final split and the attempt was saved

        Raises:
            InvalidStateError: If not running or all splits are recorded
            PersistenceFailureError: If saving the finished attempt failed;
                the attempt stays running with the final split unrecorded
        """
        new_state = machine.record_split(self._state, self.clock(), self._config.split_count)

        if isinstance(new_state, Completed):
            result = self._save_attempt(
                new_state.durations,
                new_state.started_at_ns,
                new_state.ended_at_ns,
                completed=True
            )
            self._transition(
                new_state.with_saved(result.run_id, result.promoted),
                "split",
                {
                    "run_id": result.run_id,
                    "total_ns": new_state.total_ns,
                    "promoted": result.promoted
                }
            )
            return True

        self._transition(new_state, "split", {"split_index": new_state.split_index})
        return False

    def undo(self) -> None:
        """
        Remove the last recorded split and time it again from now.

        Raises:
            InvalidStateError: If not running or no split is recorded
        """
        new_state = machine.undo_split(self._state, self.clock())
        self._transition(new_state, "undo", {"split_index": new_state.split_index})

    def reset(self) -> None:
        """
        Clear the attempt, saving it as unfinished if it was running.

        Raises:
            PersistenceFailureError: If saving the abandoned attempt failed;
                the attempt stays running
        """
        state = self._state
        if isinstance(state, Running):
            self._save_attempt(
                state.durations,
                state.started_at_ns,
                self.clock(),
                completed=False
            )

        self._transition(Idle(), "reset")

    # ------------------------------------------------------------------
    # Personal best overrides
    # ------------------------------------------------------------------

    def save_as_pb(self) -> int:
        """
        Force the most recently saved completed run to become the PB.

        The run is chosen by insertion order at the time of this call, not by
        the identity of the attempt that just finished. If another completed
        run were saved in between, that one would be promoted instead; use
        promote_run() to name the run explicitly.

        Returns:
            Id of the promoted run

        Raises:
            InvalidStateError: If the current attempt is not completed
        """
        state = self._state
        if not isinstance(state, Completed):
            raise InvalidStateError(
                "cannot save as PB: run not completed",
                current_mode=state.mode.value,
                attempted_operation="save_as_pb"
            )

        with self.store.transaction("save_as_pb") as conn:
            self.store.clear_personal_best(conn)
            run_id = self.store.latest_completed_run_id(conn)
            self.store.mark_personal_best(conn, run_id)

        state_logger.info("Personal best overridden", run_id=run_id, trigger="save_as_pb")

        if state.run_id == run_id:
            self._state = state.with_saved(run_id, promoted=True)

        self._reload_personal_best()
        return run_id

    def promote_run(self, run_id: int) -> None:
        """
        Make a specific completed run the PB.

        Raises:
            InvalidStateError: If the run does not exist or is unfinished
            PersistenceFailureError: If the transaction failed
        """
        with self.store.transaction("promote_run") as conn:
            completed = self.store.run_completed(conn, run_id)
            if not completed:
                reason = "no such run" if completed is None else "run not completed"
                state_logger.warning(
                    "Operation rejected",
                    operation="promote_run",
                    run_id=run_id,
                    reason=reason
                )
                raise InvalidStateError(
                    f"cannot promote run {run_id}: {reason}",
                    current_mode=self._state.mode.value,
                    attempted_operation="promote_run"
                )

            self.store.clear_personal_best(conn)
            self.store.mark_personal_best(conn, run_id)

        state_logger.info("Personal best overridden", run_id=run_id, trigger="promote_run")
        self._reload_personal_best()

    # ------------------------------------------------------------------
    # Configuration mutators
    # ------------------------------------------------------------------

    def update_config(self, title: str, category: str) -> None:
        """Rename the title and category used for future runs."""
        with self.store.transaction("update_config") as conn:
            self.store.write_title(conn, title, category)

        self._config = replace(self._config, title=title, category=category)
        self.logger.info("Config updated", title=title, category=category)

    def update_split_names(self, names: Sequence[str]) -> None:
        """
        Replace the split-name list as a whole.

        Raises:
            InvalidStateError: If an attempt is running
            MalformedInputError: If names is empty or not all strings
        """
        self._require_not_running("update_split_names")

        if (isinstance(names, str) or not names
                or not all(isinstance(name, str) for name in names)):
            raise MalformedInputError(
                "Split names must be a non-empty list of strings",
                raw_data=repr(names),
                expected_format="list of strings"
            )

        names = tuple(names)
        with self.store.transaction("update_split_names") as conn:
            self.store.replace_split_names(conn, names)

        self._config = replace(self._config, split_names=names)
        self.logger.info("Split names updated", split_count=len(names))
        self._reload_personal_best()

    def import_config(self, document: Union[ImportDocument, dict[str, Any]]) -> Optional[int]:
        """
        Replace configuration, split names and PB from an import document.

        Returns:
            Id of the imported PB run, or None if the document had no PB

        Raises:
            InvalidStateError: If an attempt is running
            MalformedInputError: If the document is invalid; nothing is written
            PersistenceFailureError: If the transaction failed; nothing is kept
        """
        self._require_not_running("import_config")

        document = self.importer.prepare(document)
        pb_run_id = self.importer.apply(document, self.clock())

        self._config = RunConfig(
            title=document.title,
            category=document.category,
            attempts=document.attempts,
            completed=document.completed,
            split_names=document.split_names
        )
        self._reload_personal_best()
        return pb_run_id

    def import_from_file(self, path: Union[str, Path]) -> Optional[int]:
        """Import a JSON or YAML document from disk."""
        self._require_not_running("import_config")
        return self.import_config(load_import_file(path))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_not_running(self, operation: str) -> None:
        if isinstance(self._state, Running):
            raise InvalidStateError(
                f"cannot {operation.replace('_', ' ')}: run in progress",
                current_mode=self._state.mode.value,
                attempted_operation=operation
            )

    def _transition(
        self,
        new_state: AttemptState,
        trigger: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        old_state = self._state
        self._state = new_state
        log_mode_transition(
            state_logger,
            from_mode=old_state.mode.value,
            to_mode=new_state.mode.value,
            trigger=trigger,
            context=context
        )

    def _save_attempt(
        self,
        durations: tuple[int, ...],
        started_at_ns: int,
        ended_at_ns: int,
        completed: bool
    ) -> SaveResult:
        """
        Persist one attempt atomically.

        Counters, the run row, the PB decision and the split rows are written
        in one transaction. In-memory counters change only after commit.
        """
        config = self._config
        attempts = config.attempts + 1
        completed_count = config.completed + (1 if completed else 0)
        promoted = False

        try:
            with self.store.transaction("save_run") as conn:
                self.store.write_counters(conn, attempts, completed_count)

                run_id = self.store.insert_run(
                    conn,
                    title=config.title,
                    category=config.category,
                    start_time=ns_to_datetime(started_at_ns),
                    end_time=ns_to_datetime(ended_at_ns),
                    completed=completed,
                    attempt_num=attempts
                )

                if completed:
                    pb_total = self.store.personal_best_total(conn)
                    promoted = machine.should_promote(sum(durations, 0), pb_total)
                    if promoted:
                        self.store.clear_personal_best(conn)
                        self.store.mark_personal_best(conn, run_id)

                self.store.insert_splits(conn, run_id, config.split_names, durations)
        except PersistenceFailureError as e:
            self.logger.error(
                "Failed to save run",
                completed=completed,
                attempt_num=attempts,
                error=str(e)
            )
            raise

        self._config = replace(config, attempts=attempts, completed=completed_count)

        self.logger.info(
            "Run saved",
            run_id=run_id,
            attempt_num=attempts,
            completed=completed,
            split_count=len(durations),
            total_ns=sum(durations, 0)
        )
        if promoted:
            state_logger.info("New personal best", run_id=run_id, total_ns=sum(durations, 0))

        if completed:
            # The run is committed; a failed reload must not undo the transition.
            try:
                self._reload_personal_best()
            except PersistenceFailureError as e:
                self.logger.error(
                    "Failed to reload personal best after save",
                    run_id=run_id,
                    error=str(e)
                )

        return SaveResult(
            run_id=run_id,
            attempt_num=attempts,
            completed=completed,
            promoted=promoted
        )

    def _reload_personal_best(self) -> None:
        """Reload the PB and its best segments from the store."""
        pb, best_segments = self.aggregator.load_annotated_personal_best(
            self._config.split_count
        )
        self._pb = pb
        self._best_segments = best_segments
