"""Tests for personal best promotion and manual overrides."""

import pytest

from conftest import play_run, seconds
from speedrun_app.errors import InvalidStateError


def pb_flag_count(manager) -> int:
    """Number of runs flagged as PB in the store."""
    with manager.store.read() as conn:
        return conn.execute("SELECT COUNT(*) FROM runs WHERE is_pb = 1").fetchone()[0]


class TestAutomaticPromotion:
    """Test PB promotion on completed saves."""

    def test_first_completed_run_becomes_pb(self, manager, clock):
        """With no PB, any completed run is promoted."""
        play_run(manager, clock, [100, 200])

        assert manager.personal_best is not None
        assert manager.personal_best.total_ns == seconds(300)
        assert manager.is_better_than_pb() is True
        assert pb_flag_count(manager) == 1

    def test_slower_run_not_promoted(self, manager, clock):
        """A strictly slower run keeps the existing PB."""
        play_run(manager, clock, [10, 5])
        first_pb = manager.personal_best.id

        play_run(manager, clock, [10, 6])

        assert manager.personal_best.id == first_pb
        assert manager.state.promoted is False
        assert manager.is_better_than_pb() is False
        assert pb_flag_count(manager) == 1

    def test_tie_not_promoted(self, manager, clock):
        """Equal totals do not replace the PB."""
        play_run(manager, clock, [10, 5])
        first_pb = manager.personal_best.id

        play_run(manager, clock, [7, 8])

        assert manager.personal_best.id == first_pb
        assert manager.is_better_than_pb() is False

    def test_faster_run_promoted_and_old_pb_demoted(self, manager, clock):
        """A strictly faster run becomes the only PB."""
        play_run(manager, clock, [10, 5])
        first_pb = manager.personal_best.id

        play_run(manager, clock, [9, 5])

        new_pb = manager.personal_best
        assert new_pb.id != first_pb
        assert new_pb.total_ns == seconds(14)
        assert manager.is_better_than_pb() is True
        assert manager.store.get_run(first_pb).is_pb is False
        assert pb_flag_count(manager) == 1

    def test_unfinished_run_never_promoted(self, manager, clock):
        """Reset runs are never PB even when no PB exists."""
        manager.start()
        clock.advance(1)
        manager.split()
        manager.reset()

        assert manager.personal_best is None
        assert pb_flag_count(manager) == 0

    def test_pb_loaded_on_startup(self, make_manager, clock):
        """A new manager on the same database sees the PB and best segments."""
        manager = make_manager()
        play_run(manager, clock, [10, 5])
        play_run(manager, clock, [8, 9])

        reopened = make_manager()

        assert reopened.personal_best.id == manager.personal_best.id
        assert reopened.best_segments == [seconds(8), seconds(5)]
        assert reopened.attempts == 2
        assert reopened.completed_runs == 2


class TestSaveAsPb:
    """Test the manual PB override."""

    def test_override_promotes_latest_completed_run(self, manager, clock):
        """A slower finished attempt can be forced to PB."""
        play_run(manager, clock, [10, 5])
        play_run(manager, clock, [20, 20])
        slow_run_id = manager.state.run_id

        promoted = manager.save_as_pb()

        assert promoted == slow_run_id
        assert manager.personal_best.id == slow_run_id
        assert manager.personal_best.total_ns == seconds(40)
        assert manager.is_better_than_pb() is True
        assert pb_flag_count(manager) == 1

    def test_override_refreshes_best_segments(self, manager, clock):
        """Best segments stay annotated on the new PB."""
        play_run(manager, clock, [10, 5])
        play_run(manager, clock, [20, 20])

        manager.save_as_pb()

        assert [s.best_segment_ns for s in manager.personal_best.splits] == [seconds(10), seconds(5)]

    def test_override_requires_completed_attempt(self, manager, clock):
        """Override while idle or running is an invalid state."""
        with pytest.raises(InvalidStateError):
            manager.save_as_pb()

        manager.start()
        with pytest.raises(InvalidStateError):
            manager.save_as_pb()

    def test_override_uses_recency_at_call_time(self, manager, clock):
        """The most recent completed run wins even if it is not this attempt."""
        play_run(manager, clock, [10, 5])
        play_run(manager, clock, [20, 20])
        finished_attempt = manager.state.run_id

        # Another completed run saved behind the manager's back
        with manager.store.transaction("test_insert") as conn:
            other_id = manager.store.insert_run(
                conn, "X", "Y",
                start_time=manager.store.get_run(finished_attempt).start_time,
                end_time=manager.store.get_run(finished_attempt).end_time,
                completed=True,
                attempt_num=99
            )
            manager.store.insert_splits(conn, other_id, ["A", "B"], [seconds(30), seconds(30)])

        promoted = manager.save_as_pb()

        assert promoted == other_id
        assert promoted != finished_attempt
        assert manager.state.promoted is False


class TestPromoteRun:
    """Test promoting an explicit run id."""

    def test_promote_specific_run(self, manager, clock):
        play_run(manager, clock, [20, 20])
        slow_id = manager.state.run_id
        play_run(manager, clock, [10, 5])

        manager.promote_run(slow_id)

        assert manager.personal_best.id == slow_id
        assert pb_flag_count(manager) == 1

    def test_promote_unfinished_run_rolls_back(self, manager, clock):
        """Promoting an abandoned run fails and keeps the old PB flag."""
        play_run(manager, clock, [10, 5])
        pb_id = manager.personal_best.id
        manager.start()
        clock.advance(1)
        manager.reset()
        abandoned_id = manager.store.list_runs()[0].id

        with pytest.raises(InvalidStateError, match="run not completed"):
            manager.promote_run(abandoned_id)

        assert manager.store.get_stats()["personal_best_run_id"] == pb_id
        assert manager.personal_best.id == pb_id

    def test_promote_unknown_run_rejected(self, manager, clock):
        play_run(manager, clock, [10, 5])
        pb_id = manager.personal_best.id

        with pytest.raises(InvalidStateError, match="no such run") as exc_info:
            manager.promote_run(pb_id + 100)

        assert exc_info.value.attempted_operation == "promote_run"
        assert manager.store.get_stats()["personal_best_run_id"] == pb_id
        assert pb_flag_count(manager) == 1
