#!/usr/bin/env python3
"""
Basic Usage Example - Speedrun Split Timer

This script demonstrates the run manager against a temporary database with a
simulated clock. It shows how to:
- Initialize the manager and rename the run
- Time attempts split by split, including undo and reset
- Watch personal best promotion and best segments
- Import a configuration with a personal best

Run: python examples/basic_usage.py
"""

import tempfile
from pathlib import Path
from typing import Optional, Sequence

from speedrun_app.config.loader import ConfigLoader
from speedrun_app.logging import configure_logging_from_config
from speedrun_app.state.runtime import RunManager
from speedrun_app.utils.time import (
    NANOS_PER_SECOND, format_duration, format_duration_long
)


class SimulatedClock:
    """Clock that only moves when the demo tells it to."""

    def __init__(self) -> None:
        self.now_ns = 1_700_000_000 * NANOS_PER_SECOND

    def __call__(self) -> int:
        return self.now_ns

    def advance(self, seconds: float) -> None:
        self.now_ns += int(seconds * NANOS_PER_SECOND)


def fmt(ns: Optional[int]) -> str:
    return format_duration(ns) if ns is not None else "-"


def print_splits(manager: RunManager) -> None:
    """Print the split table the way a timer window would."""
    pb = manager.personal_best
    best = manager.best_segments
    durations = manager.current_durations

    print(f"   {'Split':<12}{'Time':>10}{'PB':>10}{'Best':>10}")
    for index, name in enumerate(manager.split_names):
        current = durations[index] if index < len(durations) else None
        pb_split = pb.split_at(index) if pb else None
        print(
            f"   {name:<12}{fmt(current):>10}"
            f"{fmt(pb_split.duration_ns if pb_split else None):>10}"
            f"{fmt(best[index]):>10}"
        )
    print(f"   Elapsed: {format_duration_long(manager.elapsed_ns())}")


def play(manager: RunManager, clock: SimulatedClock, segments: Sequence[float]) -> None:
    """Start an attempt and split after each segment."""
    manager.start()
    for seconds in segments:
        clock.advance(seconds)
        manager.split()


def main():
    """Main demonstration function."""
    print("Speedrun Split Timer - Basic Usage Demo")
    print("=" * 60)

    configure_logging_from_config(ConfigLoader.create().merge_config())

    with tempfile.TemporaryDirectory() as tmp_dir:
        clock = SimulatedClock()
        manager = RunManager.from_config(
            overrides={"store": {"db_path": str(Path(tmp_dir) / "demo.db")}},
            clock=clock
        )

        print("1. Initializing the run manager...")
        manager.update_config("Celeste", "Any%")
        manager.update_split_names(["Forsaken City", "Old Site", "Celestial Resort"])
        print(f"   {manager.title} / {manager.category}, {len(manager.split_names)} splits")
        print()

        print("2. First attempt...")
        play(manager, clock, [95.4, 140.2, 210.9])
        print(f"   Mode: {manager.mode.value}, new PB: {manager.is_better_than_pb()}")
        print_splits(manager)
        print()

        print("3. Second attempt with an undone split...")
        manager.start()
        clock.advance(90.1)
        manager.split()
        clock.advance(2.0)
        manager.split()
        print(f"   Split by mistake, undoing (split index {manager.current_split_index})")
        manager.undo()
        clock.advance(138.0)
        manager.split()
        clock.advance(205.3)
        manager.split()
        print(f"   Mode: {manager.mode.value}, new PB: {manager.is_better_than_pb()}")
        print_splits(manager)
        print()

        print("4. Abandoned attempt...")
        manager.start()
        clock.advance(120.0)
        manager.split()
        manager.reset()
        print(f"   Attempts: {manager.attempts}, completed: {manager.completed_runs}")
        print()

        print("5. Importing a configuration...")
        manager.import_config({
            "title": "Celeste",
            "category": "Any%",
            "attempts": 250,
            "completed": 80,
            "split_names": ["Forsaken City", "Old Site", "Celestial Resort"],
            "personal_best": {
                "attempt": 212,
                "splits": [
                    {"time": "1:25.000"},
                    {"time": "3:40.500"},
                    {"time": "7:01.250"},
                ],
            },
        })
        print(f"   Attempts: {manager.attempts}, completed: {manager.completed_runs}")
        print_splits(manager)
        print()

        stats = manager.store.get_stats()
        print("6. History stats:")
        print(f"   Stored runs: {stats['total_runs']}")
        print(f"   Completed runs: {stats['completed_runs']}")
        print(f"   PB run id: {stats['personal_best_run_id']}")
        print()

    print("Demo completed successfully!")


if __name__ == "__main__":
    main()
