"""Tests for splitter.sharding.shard_result."""

from __future__ import annotations

import json
from pathlib import Path

from splitter.sharding.partitioner import Bucket, ShardPlan, partition_files
from splitter.sharding.shard_result import read_shard_plan, shard_plan_to_dict, write_shard_plan


def _make_plan() -> ShardPlan:
    timings = {"spec/a_spec.rb": 12.5, "spec/b_spec.rb": 3.0, "spec/c_spec.rb": 1.0}
    return partition_files(timings, 2)


def test_write_and_read_back(tmp_path: Path) -> None:
    plan = _make_plan()
    path = tmp_path / "plan.json"

    write_shard_plan(plan, path, history_records=42, order="name")
    loaded, metadata = read_shard_plan(path)

    assert loaded == plan
    assert metadata == {"node_count": 2, "history_records": 42, "order": "name"}


def test_creates_parent_directories(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dir" / "plan.json"
    write_shard_plan(_make_plan(), path)
    assert path.is_file()


def test_payload_layout() -> None:
    payload = shard_plan_to_dict(_make_plan(), history_records=3, order="duration")

    assert payload["node_count"] == 2
    assert payload["file_count"] == 3
    assert payload["order"] == "duration"
    assert payload["buckets"][0] == {
        "index": 0,
        "total_time": 12.5,
        "files": ["spec/a_spec.rb"],
    }
    assert payload["buckets"][1]["files"] == ["spec/b_spec.rb", "spec/c_spec.rb"]


def test_read_sorts_buckets_by_index(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    path.write_text(
        json.dumps(
            {
                "node_count": 2,
                "buckets": [
                    {"index": 1, "total_time": 1.0, "files": ["b"]},
                    {"index": 0, "total_time": 2.0, "files": ["a"]},
                ],
            }
        ),
        encoding="utf-8",
    )

    plan, metadata = read_shard_plan(path)

    assert plan.buckets == [
        Bucket(index=0, files=["a"], total_time=2.0),
        Bucket(index=1, files=["b"], total_time=1.0),
    ]
    assert metadata["history_records"] == 0
    assert metadata["order"] == "name"
