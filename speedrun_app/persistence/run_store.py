"""Run persistence layer: configuration, split names and run history."""

import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..config.defaults import RunDefaults
from ..data.models import Run, RunConfig, Split
from ..errors import PersistenceFailureError
from ..logging.config import get_store_logger
from ..utils.time import format_timestamp, parse_timestamp

SCHEMA = """
    CREATE TABLE IF NOT EXISTS config (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        title TEXT NOT NULL,
        category TEXT NOT NULL,
        attempts INTEGER NOT NULL DEFAULT 0 CHECK (attempts >= 0),
        completed INTEGER NOT NULL DEFAULT 0 CHECK (completed >= 0)
    );

    CREATE TABLE IF NOT EXISTS split_names (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        display_order INTEGER NOT NULL UNIQUE
    );

    CREATE TABLE IF NOT EXISTS runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        category TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT,
        completed INTEGER NOT NULL DEFAULT 0,
        is_pb INTEGER NOT NULL DEFAULT 0,
        attempt_num INTEGER NOT NULL,
        CHECK (is_pb = 0 OR completed = 1)
    );

    CREATE UNIQUE INDEX IF NOT EXISTS idx_runs_single_pb ON runs(is_pb) WHERE is_pb = 1;

    CREATE TABLE IF NOT EXISTS splits (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id INTEGER NOT NULL REFERENCES runs(id) ON DELETE CASCADE,
        split_index INTEGER NOT NULL,
        split_name TEXT NOT NULL,
        duration_ns INTEGER NOT NULL,
        UNIQUE(run_id, split_index)
    );

    CREATE INDEX IF NOT EXISTS idx_splits_split_index ON splits(split_index);
"""


class RunStore:
    """SQLite-based store for configuration and run history.

    Read helpers open their own connection. Writes go through
    :meth:`transaction`, which yields a connection inside ``BEGIN IMMEDIATE``
    and commits on exit or rolls back on any exception. The row-level write
    methods take that connection so callers can compose several of them into
    one atomic unit.
    """

    def __init__(
        self,
        db_path: str = "speedrun.db",
        timeout_seconds: float = 30.0,
        defaults: Optional[RunDefaults] = None
    ):
        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds
        self.defaults = defaults or RunDefaults()
        self.logger = get_store_logger(__name__)

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection("init_schema") as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _get_connection(self, operation: str = "query") -> Iterator[sqlite3.Connection]:
        """Get database connection, translating sqlite errors."""
        conn = None
        try:
            conn = sqlite3.connect(
                self.db_path,
                timeout=self.timeout_seconds,
                isolation_level=None
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        except sqlite3.Error as e:
            self.logger.error(
                "Database error",
                operation=operation,
                db_path=str(self.db_path),
                error=str(e)
            )
            raise PersistenceFailureError(
                f"{operation} failed: {e}",
                operation=operation,
                target=str(self.db_path)
            ) from e
        finally:
            if conn:
                conn.close()

    @contextmanager
    def transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """
        Run a block of statements as one atomic transaction.

        Args:
            operation: Name used in logs and in PersistenceFailureError

        Raises:
            PersistenceFailureError: If begin, any statement or commit fails
        """
        with self._get_connection(operation) as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                self.logger.warning("Transaction rolled back", operation=operation)
                raise

    @contextmanager
    def read(self, operation: str = "query") -> Iterator[sqlite3.Connection]:
        """Connection for read-only queries."""
        with self._get_connection(operation) as conn:
            yield conn

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def load_config(self) -> RunConfig:
        """
        Load configuration and split names, creating defaults on first access.

        Returns:
            Current RunConfig
        """
        with self.transaction("load_config") as conn:
            row = conn.execute(
                "SELECT title, category, attempts, completed FROM config WHERE id = 1"
            ).fetchone()

            if row is None:
                conn.execute(
                    "INSERT INTO config (id, title, category, attempts, completed) "
                    "VALUES (1, ?, ?, 0, 0)",
                    (self.defaults.title, self.defaults.category)
                )
                title, category, attempts, completed = (
                    self.defaults.title, self.defaults.category, 0, 0
                )
                self.logger.info("Created default config", title=title, category=category)
            else:
                title, category = row["title"], row["category"]
                attempts, completed = row["attempts"], row["completed"]

            names = [r["name"] for r in conn.execute(
                "SELECT name FROM split_names ORDER BY display_order"
            )]

            if not names:
                names = list(self.defaults.split_names)
                self.replace_split_names(conn, names)
                self.logger.info("Created default split names", split_count=len(names))

        return RunConfig(
            title=title,
            category=category,
            attempts=attempts,
            completed=completed,
            split_names=tuple(names),
        )

    def write_config(
        self,
        conn: sqlite3.Connection,
        title: str,
        category: str,
        attempts: int,
        completed: int
    ) -> None:
        """Create or overwrite the configuration row."""
        conn.execute("""
            INSERT INTO config (id, title, category, attempts, completed)
            VALUES (1, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                category = excluded.category,
                attempts = excluded.attempts,
                completed = excluded.completed
        """, (title, category, attempts, completed))

    def write_counters(self, conn: sqlite3.Connection, attempts: int, completed: int) -> None:
        """Overwrite the attempt counters."""
        cursor = conn.execute(
            "UPDATE config SET attempts = ?, completed = ? WHERE id = 1",
            (attempts, completed)
        )
        self._require_config_row(cursor, "write_counters")

    def write_title(self, conn: sqlite3.Connection, title: str, category: str) -> None:
        """Overwrite title and category."""
        cursor = conn.execute(
            "UPDATE config SET title = ?, category = ? WHERE id = 1",
            (title, category)
        )
        self._require_config_row(cursor, "write_title")

    def _require_config_row(self, cursor: sqlite3.Cursor, operation: str) -> None:
        if cursor.rowcount != 1:
            raise PersistenceFailureError(
                "Configuration row missing; call load_config first",
                operation=operation,
                target="config"
            )

    def replace_split_names(self, conn: sqlite3.Connection, names: Sequence[str]) -> None:
        """Replace the whole split-name list."""
        conn.execute("DELETE FROM split_names")
        conn.executemany(
            "INSERT INTO split_names (name, display_order) VALUES (?, ?)",
            [(name, order) for order, name in enumerate(names)]
        )

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def insert_run(
        self,
        conn: sqlite3.Connection,
        title: str,
        category: str,
        start_time: datetime,
        end_time: datetime,
        completed: bool,
        attempt_num: int,
        is_pb: bool = False
    ) -> int:
        """Insert a run row and return its id."""
        cursor = conn.execute("""
            INSERT INTO runs
            (title, category, start_time, end_time, completed, is_pb, attempt_num)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            title,
            category,
            format_timestamp(start_time),
            format_timestamp(end_time),
            int(completed),
            int(is_pb),
            attempt_num
        ))
        return cursor.lastrowid  # type: ignore[return-value]

    def insert_splits(
        self,
        conn: sqlite3.Connection,
        run_id: int,
        split_names: Sequence[str],
        durations_ns: Sequence[int]
    ) -> None:
        """Insert one split row per duration, index-aligned to split_names."""
        if len(durations_ns) > len(split_names):
            raise PersistenceFailureError(
                f"Run has {len(durations_ns)} splits but only {len(split_names)} split names",
                operation="insert_splits",
                target="splits"
            )

        conn.executemany("""
            INSERT INTO splits (run_id, split_index, split_name, duration_ns)
            VALUES (?, ?, ?, ?)
        """, [
            (run_id, index, split_names[index], duration)
            for index, duration in enumerate(durations_ns)
        ])

    def clear_personal_best(self, conn: sqlite3.Connection) -> None:
        """Clear the PB flag on every run."""
        conn.execute("UPDATE runs SET is_pb = 0 WHERE is_pb = 1")

    def mark_personal_best(self, conn: sqlite3.Connection, run_id: int) -> None:
        """Set the PB flag on one run. Call clear_personal_best first."""
        cursor = conn.execute(
            "UPDATE runs SET is_pb = 1 WHERE id = ? AND completed = 1", (run_id,)
        )
        if cursor.rowcount != 1:
            raise PersistenceFailureError(
                f"Run {run_id} is not a completed run",
                operation="mark_personal_best",
                target="runs"
            )

    def personal_best_total(self, conn: sqlite3.Connection) -> Optional[int]:
        """
        Total duration of the current PB, or None when there is no PB.

        A PB without any split rows totals zero.
        """
        row = conn.execute("""
            SELECT runs.id AS id, COALESCE(SUM(splits.duration_ns), 0) AS total_ns
            FROM runs
            LEFT JOIN splits ON splits.run_id = runs.id
            WHERE runs.is_pb = 1 AND runs.completed = 1
            GROUP BY runs.id
        """).fetchone()

        if row is None:
            return None
        return row["total_ns"]

    def run_completed(self, conn: sqlite3.Connection, run_id: int) -> Optional[bool]:
        """Completed flag of a run, or None if the run does not exist."""
        row = conn.execute("SELECT completed FROM runs WHERE id = ?", (run_id,)).fetchone()
        if row is None:
            return None
        return bool(row["completed"])

    def latest_completed_run_id(self, conn: sqlite3.Connection) -> int:
        """Id of the most recently inserted completed run."""
        row = conn.execute("""
            SELECT id FROM runs WHERE completed = 1 ORDER BY id DESC LIMIT 1
        """).fetchone()

        if row is None:
            raise PersistenceFailureError(
                "No completed run found",
                operation="latest_completed_run_id",
                target="runs"
            )
        return row["id"]

    def load_splits(self, conn: sqlite3.Connection, run_id: int) -> tuple[Split, ...]:
        """Splits of one run ordered by index."""
        rows = conn.execute("""
            SELECT split_index, split_name, duration_ns
            FROM splits
            WHERE run_id = ?
            ORDER BY split_index
        """, (run_id,)).fetchall()

        return tuple(
            Split(
                index=row["split_index"],
                name=row["split_name"],
                duration_ns=row["duration_ns"]
            )
            for row in rows
        )

    def row_to_run(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Run:
        """Convert a runs row (plus its splits) into a Run."""
        return Run(
            id=row["id"],
            title=row["title"],
            category=row["category"],
            start_time=parse_timestamp(row["start_time"]),  # type: ignore[arg-type]
            end_time=parse_timestamp(row["end_time"]),
            completed=bool(row["completed"]),
            is_pb=bool(row["is_pb"]),
            attempt_num=row["attempt_num"],
            splits=self.load_splits(conn, row["id"])
        )

    # ------------------------------------------------------------------
    # History browsing
    # ------------------------------------------------------------------

    def get_run(self, run_id: int) -> Optional[Run]:
        """Get a run by id."""
        with self.read("get_run") as conn:
            row = conn.execute("SELECT * FROM runs WHERE id = ?", (run_id,)).fetchone()
            if row is None:
                return None
            return self.row_to_run(conn, row)

    def list_runs(self, completed_only: bool = False, limit: int = 100) -> list[Run]:
        """Get runs newest first."""
        query = "SELECT * FROM runs"
        if completed_only:
            query += " WHERE completed = 1"
        query += " ORDER BY id DESC LIMIT ?"

        with self.read("list_runs") as conn:
            rows = conn.execute(query, (limit,)).fetchall()
            return [self.row_to_run(conn, row) for row in rows]

    def get_stats(self) -> dict[str, Any]:
        """Get history statistics."""
        with self.read("get_stats") as conn:
            total = conn.execute("SELECT COUNT(*) FROM runs").fetchone()[0]
            completed = conn.execute(
                "SELECT COUNT(*) FROM runs WHERE completed = 1"
            ).fetchone()[0]
            pb_row = conn.execute("SELECT id FROM runs WHERE is_pb = 1").fetchone()

        return {
            "total_runs": total,
            "completed_runs": completed,
            "personal_best_run_id": pb_row[0] if pb_row else None,
        }
