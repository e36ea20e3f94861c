"""Shard plan serialization for inter-job artifact exchange."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from splitter.sharding.partitioner import Bucket, ShardPlan

if TYPE_CHECKING:
    from pathlib import Path


def write_shard_plan(
    plan: ShardPlan,
    output_path: Path,
    *,
    history_records: int = 0,
    order: str = "name",
) -> None:
    """Serialize and write the full plan to a JSON file."""
    data = shard_plan_to_dict(plan, history_records=history_records, order=order)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def read_shard_plan(path: Path) -> tuple[ShardPlan, dict[str, Any]]:
    """Read a shard plan JSON file.

    Returns:
        A tuple of (ShardPlan, metadata) where metadata includes
        node_count, history_records, and order.
    """
    data = json.loads(path.read_text(encoding="utf-8"))

    buckets = [
        Bucket(
            index=b["index"],
            files=list(b.get("files", [])),
            total_time=b.get("total_time", 0.0),
        )
        for b in data.get("buckets", [])
    ]
    buckets.sort(key=lambda b: b.index)

    metadata = {
        "node_count": data["node_count"],
        "history_records": data.get("history_records", 0),
        "order": data.get("order", "name"),
    }

    return ShardPlan(buckets=buckets), metadata


def shard_plan_to_dict(
    plan: ShardPlan, *, history_records: int = 0, order: str = "name"
) -> dict[str, Any]:
    """Convert a ShardPlan to a JSON-serializable dict."""
    return {
        "node_count": plan.node_count,
        "file_count": plan.file_count,
        "history_records": history_records,
        "order": order,
        "buckets": [
            {
                "index": b.index,
                "total_time": b.total_time,
                "files": b.files,
            }
            for b in plan.buckets
        ],
    }
