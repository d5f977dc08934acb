"""
Derived facts over stored run history.

The personal best is the single completed run flagged is_pb. Best segments
are the minimum duration recorded at each split index across every
completed run, computed by a full scan whenever history may have changed.
"""

from dataclasses import replace
from typing import Optional

from ..data.models import Run
from ..logging.config import get_logger
from ..persistence.run_store import RunStore

logger = get_logger(__name__)


class HistoryAggregator:
    """Computes the personal best and best segments from a RunStore."""

    def __init__(self, store: RunStore):
        self.store = store
        self.logger = logger

    def load_personal_best(self) -> Optional[Run]:
        """
        Load the current personal best.

        Returns:
            The PB run with splits ordered by index, or None if there is no PB
        """
        with self.store.read("load_personal_best") as conn:
            row = conn.execute("""
                SELECT * FROM runs
                WHERE is_pb = 1 AND completed = 1
                LIMIT 1
            """).fetchone()

            if row is None:
                return None

            return self.store.row_to_run(conn, row)

    def compute_best_segments(self, num_splits: int) -> list[Optional[int]]:
        """
        Minimum recorded duration per split index over all completed runs.

        Args:
            num_splits: Number of split indices to report (current N)

        Returns:
            List of length num_splits; None where no completed run has data
        """
        best: list[Optional[int]] = [None] * num_splits

        with self.store.read("compute_best_segments") as conn:
            rows = conn.execute("""
                SELECT splits.split_index, MIN(splits.duration_ns) AS best_ns
                FROM splits
                JOIN runs ON splits.run_id = runs.id
                WHERE runs.completed = 1
                GROUP BY splits.split_index
            """).fetchall()

        for row in rows:
            index = row["split_index"]
            if 0 <= index < num_splits:
                best[index] = row["best_ns"]

        self.logger.debug(
            "Computed best segments",
            num_splits=num_splits,
            indices_with_data=sum(1 for value in best if value is not None)
        )
        return best

    @staticmethod
    def annotate(pb: Run, best_segments: list[Optional[int]]) -> Run:
        """Return the PB with each split carrying its best segment."""
        splits = tuple(
            split.with_best_segment(
                best_segments[split.index] if 0 <= split.index < len(best_segments) else None
            )
            for split in pb.splits
        )
        return replace(pb, splits=splits)

    def load_annotated_personal_best(
        self, num_splits: int
    ) -> tuple[Optional[Run], list[Optional[int]]]:
        """
        Load the PB and annotate it with freshly computed best segments.

        Returns:
            (pb, best_segments); best segments are all None when there is no PB
        """
        pb = self.load_personal_best()
        if pb is None:
            return None, [None] * num_splits

        best_segments = self.compute_best_segments(num_splits)
        return self.annotate(pb, best_segments), best_segments
