"""Greedy minimum-load partitioning of files across CI nodes.

Files are visited in a fixed order and each one goes to the bucket with the
smallest running total.  Equal totals go to the bucket holding fewer files,
then to the lowest index, so files without history still spread evenly.
The default order is ascending by file name, which keeps assignments
byte-identical across runs with the same input; ``order="duration"``
visits the longest files first (classic LPT) for tighter balance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

# ── Constants ─────────────────────────────────────────────────────

ORDER_BY_NAME = "name"
ORDER_BY_DURATION = "duration"
ORDERS = (ORDER_BY_NAME, ORDER_BY_DURATION)

# ── Data models ───────────────────────────────────────────────────


@dataclass
class Bucket:
    """Files assigned to a single node."""

    index: int
    """Zero-based node index."""

    files: list[str] = field(default_factory=list)
    """Assigned files, in assignment order."""

    total_time: float = 0.0
    """Sum of the expected durations of ``files``."""


@dataclass
class ShardPlan:
    """Assignment of every input file to exactly one of ``node_count`` buckets."""

    buckets: list[Bucket] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.buckets)

    @property
    def totals(self) -> list[float]:
        """Expected duration per bucket, indexed by node."""
        return [b.total_time for b in self.buckets]

    @property
    def file_count(self) -> int:
        return sum(len(b.files) for b in self.buckets)

    def bucket_for(self, node_index: int) -> list[str]:
        """Return the files assigned to *node_index*.

        Raises:
            ValueError: If node_index is outside ``[0, node_count)``.
        """
        _check_node_index(node_index, self.node_count)
        return list(self.buckets[node_index].files)


# ── Public API ────────────────────────────────────────────────────


def validate_shard_request(node_index: int, node_count: int) -> None:
    """Fail fast on an unusable node count or node index.

    Raises:
        ValueError: If node_count < 1 or node_index is out of range.
    """
    _check_node_count(node_count)
    _check_node_index(node_index, node_count)


def partition_files(
    timings: Mapping[str, float],
    node_count: int,
    *,
    order: str = ORDER_BY_NAME,
) -> ShardPlan:
    """Distribute files into *node_count* buckets by greedy minimum load.

    Args:
        timings: Expected duration per file.
        node_count: Number of buckets to create (>= 1).
        order: ``"name"`` (ascending file name) or ``"duration"``
            (descending duration, then ascending name).

    Returns:
        ShardPlan with exactly *node_count* buckets.

    Raises:
        ValueError: If node_count < 1 or order is unknown.
    """
    _check_node_count(node_count)

    if order == ORDER_BY_NAME:
        items = sorted(timings.items())
    elif order == ORDER_BY_DURATION:
        items = sorted(timings.items(), key=lambda item: (-item[1], item[0]))
    else:
        msg = f"order must be one of {', '.join(ORDERS)}, got {order!r}"
        raise ValueError(msg)

    buckets = [Bucket(index=i) for i in range(node_count)]
    for filename, duration in items:
        # min() returns the first minimal element, so full ties go to the lowest index
        target = min(buckets, key=lambda b: (b.total_time, len(b.files)))
        target.files.append(filename)
        target.total_time += duration

    return ShardPlan(buckets=buckets)


def select_bucket(plan: ShardPlan, node_index: int) -> list[str]:
    """Return the files *plan* assigns to *node_index*."""
    return plan.bucket_for(node_index)


def _check_node_count(node_count: int) -> None:
    if node_count < 1:
        msg = f"node_count must be >= 1, got {node_count}"
        raise ValueError(msg)


def _check_node_index(node_index: int, node_count: int) -> None:
    if node_index < 0 or node_index >= node_count:
        msg = f"node_index must be in [0, {node_count}), got {node_index}"
        raise ValueError(msg)
