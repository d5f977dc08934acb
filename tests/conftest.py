"""Pytest configuration and shared fixtures."""

import pytest
from typing import Any, Callable, Sequence

from speedrun_app.config.defaults import RunDefaults
from speedrun_app.persistence.run_store import RunStore
from speedrun_app.state.runtime import RunManager
from speedrun_app.utils.time import NANOS_PER_SECOND


class FakeClock:
    """Deterministic nanosecond clock driven by the test."""

    def __init__(self, start_ns: int = 1_700_000_000 * NANOS_PER_SECOND):
        self.now_ns = start_ns

    def __call__(self) -> int:
        return self.now_ns

    def advance(self, seconds: float) -> None:
        self.now_ns += int(round(seconds * NANOS_PER_SECOND))


def seconds(value: float) -> int:
    """Seconds to nanoseconds."""
    return int(round(value * NANOS_PER_SECOND))


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock shared by the store and manager under test."""
    return FakeClock()


@pytest.fixture
def db_path(tmp_path) -> str:
    """Path to a fresh SQLite database."""
    return str(tmp_path / "speedrun.db")


@pytest.fixture
def make_store(db_path) -> Callable[..., RunStore]:
    """Factory for stores whose default split names can be chosen."""
    def _make(split_names: Sequence[str] = ("A", "B")) -> RunStore:
        return RunStore(db_path, defaults=RunDefaults(split_names=tuple(split_names)))
    return _make


@pytest.fixture
def make_manager(make_store, clock) -> Callable[..., RunManager]:
    """Factory for managers on the shared database and fake clock."""
    def _make(split_names: Sequence[str] = ("A", "B")) -> RunManager:
        return RunManager(make_store(split_names), clock=clock)
    return _make


@pytest.fixture
def manager(make_manager) -> RunManager:
    """Manager with two splits named A and B."""
    return make_manager()


@pytest.fixture
def sample_import_document() -> dict[str, Any]:
    """Import document with a two-split personal best."""
    return {
        "title": "Super Metroid",
        "category": "Any%",
        "attempts": 120,
        "completed": 35,
        "split_names": ["Ceres", "Brinstar"],
        "golds": [],
        "personal_best": {
            "attempt": 97,
            "splits": [
                {"time": "0:49.000"},
                {"time": "2:46.000"},
            ],
        },
    }


def play_run(manager: RunManager, clock: FakeClock, split_seconds: Sequence[float]) -> bool:
    """Start an attempt and record one split per entry; returns the last split result."""
    manager.start()
    result = False
    for value in split_seconds:
        clock.advance(value)
        result = manager.split()
    return result
