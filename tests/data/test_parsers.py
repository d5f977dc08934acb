"""Tests for import document parsing."""

import pytest

from speedrun_app.data.models import ImportDocument
from speedrun_app.data.parsers import (
    MAX_STORED_INT,
    cumulative_to_segments,
    parse_clock_time,
    parse_import_document,
    parse_personal_best,
)
from speedrun_app.errors import MalformedInputError
from conftest import seconds


class TestParseClockTime:
    """Test cumulative clock string parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("0:49.000", seconds(49)),
        ("2:46.000", seconds(166)),
        ("49.5", seconds(49.5)),
        ("1:00.25", seconds(60.25)),
        ("12:03", seconds(723)),
        ("0", 0),
        (" 1:02.5 ", seconds(62.5)),
    ])
    def test_valid_times(self, raw, expected):
        assert parse_clock_time(raw) == expected

    def test_sub_microsecond_precision_kept(self):
        assert parse_clock_time("0.000000001") == 1

    @pytest.mark.parametrize("raw", [
        "",
        "   ",
        "abc",
        "1:2:3",
        ":30",
        "1:",
        "-5",
        "1:-5",
        "1.5:00",
        "1:60.0",
        "nan",
        "inf",
    ])
    def test_invalid_times(self, raw):
        with pytest.raises(MalformedInputError) as exc_info:
            parse_clock_time(raw)
        assert exc_info.value.expected_format is not None

    @pytest.mark.parametrize("raw", [None, 49, 49.0, ["0:49"]])
    def test_non_string_rejected(self, raw):
        with pytest.raises(MalformedInputError):
            parse_clock_time(raw)

    def test_largest_storable_time_accepted(self):
        assert parse_clock_time("9223372036.854775807") == MAX_STORED_INT

    @pytest.mark.parametrize("raw", [
        "9223372036.854775808",
        "10000000000.000",
        "153722867281:00",
        "1e30",
        "99999999999999999999999999999999999999",
    ])
    def test_times_beyond_storage_range_rejected(self, raw):
        with pytest.raises(MalformedInputError):
            parse_clock_time(raw)


class TestCumulativeToSegments:
    """Test cumulative to per-segment conversion."""

    def test_differences(self):
        assert cumulative_to_segments([seconds(49), seconds(166)]) == (seconds(49), seconds(117))

    def test_equal_neighbours_give_zero_segment(self):
        assert cumulative_to_segments([5, 5, 9]) == (5, 0, 4)

    def test_empty(self):
        assert cumulative_to_segments([]) == ()

    def test_decreasing_rejected(self):
        with pytest.raises(MalformedInputError):
            cumulative_to_segments([10, 5])


class TestParsePersonalBest:
    """Test the personal best block."""

    def test_missing_block(self):
        assert parse_personal_best(None, 2) is None

    def test_empty_splits_means_no_pb(self):
        assert parse_personal_best({"attempt": 3, "splits": []}, 2) is None
        assert parse_personal_best({"attempt": 3}, 2) is None

    def test_object_and_bare_entries(self):
        pb = parse_personal_best({"attempt": 4, "splits": [{"time": "10.0"}, "25.0"]}, 2)

        assert pb.attempt_num == 4
        assert pb.durations_ns == (seconds(10), seconds(15))
        assert pb.total_ns == seconds(25)

    def test_fewer_splits_than_names(self):
        pb = parse_personal_best({"splits": ["10.0"]}, 3)

        assert pb.durations_ns == (seconds(10),)
        assert pb.attempt_num == 0

    def test_more_splits_than_names_rejected(self):
        with pytest.raises(MalformedInputError):
            parse_personal_best({"splits": ["1", "2", "3"]}, 2)

    def test_entry_without_time_rejected(self):
        with pytest.raises(MalformedInputError):
            parse_personal_best({"splits": [{"t": "1"}]}, 2)

    @pytest.mark.parametrize("block", ["pb", 5, {"splits": "0:49"}])
    def test_malformed_block(self, block):
        with pytest.raises(MalformedInputError):
            parse_personal_best(block, 2)


class TestParseImportDocument:
    """Test whole-document validation."""

    def test_sample_document(self, sample_import_document):
        document = parse_import_document(sample_import_document)

        assert isinstance(document, ImportDocument)
        assert document.title == "Super Metroid"
        assert document.attempts == 120
        assert document.completed == 35
        assert document.split_names == ("Ceres", "Brinstar")
        assert document.personal_best.attempt_num == 97
        assert document.personal_best.durations_ns == (seconds(49), seconds(117))

    def test_counters_default_to_zero(self):
        document = parse_import_document({
            "title": "G", "category": "C", "split_names": ["A"]
        })

        assert (document.attempts, document.completed) == (0, 0)
        assert document.personal_best is None

    @pytest.mark.parametrize("field,value", [
        ("title", None),
        ("title", 5),
        ("category", ["x"]),
        ("attempts", -1),
        ("attempts", "10"),
        ("completed", True),
        ("split_names", []),
        ("split_names", "Ceres"),
        ("split_names", ["Ceres", 2]),
    ])
    def test_invalid_fields(self, sample_import_document, field, value):
        payload = dict(sample_import_document)
        payload[field] = value

        with pytest.raises(MalformedInputError):
            parse_import_document(payload)

    @pytest.mark.parametrize("field", ["attempts", "completed"])
    def test_counters_beyond_storage_range_rejected(self, sample_import_document, field):
        payload = dict(sample_import_document)
        payload[field] = 10**20

        with pytest.raises(MalformedInputError):
            parse_import_document(payload)

        payload[field] = MAX_STORED_INT
        assert getattr(parse_import_document(payload), field) == MAX_STORED_INT

    def test_pb_attempt_beyond_storage_range_rejected(self, sample_import_document):
        payload = dict(sample_import_document)
        payload["personal_best"] = dict(payload["personal_best"], attempt=2**63)

        with pytest.raises(MalformedInputError):
            parse_import_document(payload)

    def test_non_object_rejected(self):
        with pytest.raises(MalformedInputError):
            parse_import_document(["not", "an", "object"])
