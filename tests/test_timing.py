"""Tests for splitter.sharding.timing."""

from __future__ import annotations

import logging
import random

import pytest

from splitter.sharding.timing import (
    TestRecord,
    aggregate_file_timings,
    average_file_time,
    reconcile_timings,
)


def test_record_type_is_not_collected_as_tests() -> None:
    assert TestRecord.__test__ is False


class TestAggregateFileTimings:
    def test_sums_tests_per_file(self) -> None:
        records = [
            TestRecord("spec/a_spec.rb", "one", 4.0),
            TestRecord("spec/a_spec.rb", "two", 6.0),
            TestRecord("spec/b_spec.rb", "one", 1.5),
        ]
        assert aggregate_file_timings(records) == {"spec/a_spec.rb": 10.0, "spec/b_spec.rb": 1.5}

    def test_empty(self) -> None:
        assert aggregate_file_timings([]) == {}

    def test_independent_of_record_order(self) -> None:
        rng = random.Random(7)
        records = [
            TestRecord(f"spec/f{i % 5}_spec.rb", f"t{i}", rng.uniform(0, 3)) for i in range(200)
        ]
        shuffled = list(records)
        rng.shuffle(shuffled)
        assert aggregate_file_timings(records) == aggregate_file_timings(shuffled)


class TestAverageFileTime:
    def test_mean_of_known_files(self) -> None:
        assert average_file_time({"a": 2.0, "b": 4.0}) == pytest.approx(3.0)

    def test_no_files_is_zero(self) -> None:
        assert average_file_time({}) == 0.0


class TestReconcileTimings:
    def test_new_file_gets_average(self) -> None:
        records = [TestRecord("fileA", "t1", 4.0), TestRecord("fileA", "t2", 6.0)]
        result = reconcile_timings(records, ["fileA", "fileB"])
        assert result == {"fileA": 10.0, "fileB": 10.0}

    def test_stale_file_dropped(self) -> None:
        records = [TestRecord("fileX", "t", 5.0), TestRecord("fileY", "t", 1.0)]
        result = reconcile_timings(records, ["fileY"])
        assert result == {"fileY": 1.0}

    def test_average_includes_stale_files(self) -> None:
        # The average is taken over everything history knows, before dropping.
        records = [TestRecord("old", "t", 9.0), TestRecord("kept", "t", 3.0)]
        result = reconcile_timings(records, ["kept", "new"])
        assert result["new"] == pytest.approx(6.0)

    def test_average_not_recomputed_after_insertions(self) -> None:
        records = [TestRecord("a", "t", 2.0), TestRecord("b", "t", 4.0)]
        result = reconcile_timings(records, ["a", "b", "n1", "n2", "n3"])
        assert result["n1"] == result["n2"] == result["n3"] == pytest.approx(3.0)

    def test_empty_history_gives_zero(self) -> None:
        result = reconcile_timings([], ["f1", "f2", "f3"])
        assert result == {"f1": 0.0, "f2": 0.0, "f3": 0.0}

    def test_empty_input(self) -> None:
        assert reconcile_timings([TestRecord("a", "t", 1.0)], []) == {}

    def test_keys_match_input_exactly(self) -> None:
        records = [TestRecord(f"f{i}", "t", float(i)) for i in range(10)]
        input_files = ["f2", "f4", "g1", "g2"]
        assert set(reconcile_timings(records, input_files)) == set(input_files)

    def test_zero_duration_history_counts_as_known(self) -> None:
        records = [TestRecord("a", "t", 0.0), TestRecord("b", "t", 8.0)]
        result = reconcile_timings(records, ["a", "c"])
        assert result == {"a": 0.0, "c": pytest.approx(4.0)}

    def test_logs_stale_and_new_files_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        records = [TestRecord("gone", "t", 1.0)]
        with caplog.at_level(logging.DEBUG, logger="splitter.sharding.timing"):
            reconcile_timings(records, ["fresh"])

        debug_messages = [r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG]
        assert any("gone" in m for m in debug_messages)
        assert any("fresh" in m for m in debug_messages)
