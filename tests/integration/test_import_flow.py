"""Integration tests for configuration import through the run manager."""

import json
import pytest

from speedrun_app.errors import InvalidStateError, MalformedInputError
from speedrun_app.state.models import AttemptMode
from conftest import play_run, seconds


@pytest.mark.integration
class TestImportFlow:
    """Import replaces configuration and the personal best."""

    def test_import_sets_config_and_pb(self, manager, sample_import_document):
        pb_id = manager.import_config(sample_import_document)

        assert manager.title == "Super Metroid"
        assert manager.attempts == 120
        assert manager.completed_runs == 35
        assert manager.split_names == ("Ceres", "Brinstar")
        assert manager.personal_best.id == pb_id
        assert manager.personal_best.attempt_num == 97
        assert [s.duration_ns for s in manager.personal_best.splits] == [seconds(49), seconds(117)]
        assert manager.best_segments == [seconds(49), seconds(117)]

    def test_import_demotes_earned_pb(self, manager, clock, sample_import_document):
        play_run(manager, clock, [10, 5])
        earned_id = manager.personal_best.id
        manager.reset()

        imported_id = manager.import_config(sample_import_document)

        assert manager.store.get_run(earned_id).is_pb is False
        assert manager.store.get_stats()["personal_best_run_id"] == imported_id

    def test_best_segments_mix_history_and_import(self, manager, clock, sample_import_document):
        """Earlier completed runs still count towards best segments."""
        play_run(manager, clock, [10, 500])
        manager.reset()

        manager.import_config(sample_import_document)

        assert manager.best_segments == [seconds(10), seconds(117)]

    def test_import_without_pb_clears_pb(self, manager, clock, sample_import_document):
        play_run(manager, clock, [10, 5])
        manager.reset()
        payload = dict(sample_import_document, personal_best=None)

        assert manager.import_config(payload) is None

        assert manager.personal_best is None
        assert manager.best_segments == [None, None]

    def test_next_run_compares_against_imported_pb(self, manager, clock, sample_import_document):
        manager.import_config(sample_import_document)

        play_run(manager, clock, [50, 120])

        assert manager.is_better_than_pb() is False
        assert manager.attempts == 121
        assert manager.completed_runs == 36

        play_run(manager, clock, [40, 100])

        assert manager.is_better_than_pb() is True
        assert manager.state.promoted is True

    def test_malformed_import_changes_nothing(self, manager, clock, sample_import_document):
        play_run(manager, clock, [10, 5])
        manager.reset()
        config_before = manager.config
        pb_before = manager.personal_best
        payload = dict(sample_import_document)
        payload["personal_best"] = {"splits": [{"time": "2:46.000"}, {"time": "0:49.000"}]}

        with pytest.raises(MalformedInputError):
            manager.import_config(payload)

        assert manager.config == config_before
        assert manager.store.load_config() == config_before
        assert manager.personal_best == pb_before

    @pytest.mark.parametrize("field,value", [
        ("personal_best", {"splits": [{"time": "10000000000.000"}]}),
        ("attempts", 10**20),
    ])
    def test_oversized_values_rejected_before_write(self, manager, sample_import_document,
                                                    field, value):
        config_before = manager.config
        payload = dict(sample_import_document)
        payload[field] = value

        with pytest.raises(MalformedInputError):
            manager.import_config(payload)

        assert manager.store.load_config() == config_before
        assert manager.store.list_runs() == []

    def test_import_from_json_file(self, manager, tmp_path, sample_import_document):
        path = tmp_path / "export.json"
        path.write_text(json.dumps(sample_import_document), encoding="utf-8")

        manager.import_from_file(path)

        assert manager.title == "Super Metroid"
        assert manager.mode is AttemptMode.IDLE

    def test_import_from_file_while_running(self, manager, tmp_path, sample_import_document):
        path = tmp_path / "export.json"
        path.write_text(json.dumps(sample_import_document), encoding="utf-8")
        manager.start()

        with pytest.raises(InvalidStateError):
            manager.import_from_file(path)

        assert manager.title == "New Speedrun"
