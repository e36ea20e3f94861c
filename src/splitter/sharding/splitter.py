"""Input file loading and shard planning."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TextIO

from splitter.sharding.partitioner import ORDER_BY_NAME, ShardPlan, partition_files
from splitter.sharding.timing import reconcile_timings

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from splitter.sharding.timing import TestRecord

logger = logging.getLogger(__name__)


def normalize_input_files(lines: Iterable[str]) -> list[str]:
    """Strip entries, drop blanks and duplicates (first occurrence wins)."""
    files: list[str] = []
    seen: set[str] = set()
    for line in lines:
        name = line.strip()
        if not name:
            continue
        if name in seen:
            logger.debug("Duplicate input file ignored: %s", name)
            continue
        seen.add(name)
        files.append(name)
    return files


def read_input_files(input_path: Path | None, stream: TextIO) -> list[str]:
    """Read the list of files to schedule.

    Args:
        input_path: File holding one path per line. When ``None`` the
            list is read from *stream* instead.
        stream: Fallback text stream, usually stdin.

    Returns:
        Normalized list of file identifiers.

    Raises:
        OSError: If *input_path* cannot be read.
        UnicodeDecodeError: If the list is not valid UTF-8.
    """
    if input_path is not None:
        text = input_path.read_text(encoding="utf-8")
    else:
        text = stream.read()
    return normalize_input_files(text.splitlines())


def plan_shards(
    records: Sequence[TestRecord],
    input_files: Sequence[str],
    node_count: int,
    *,
    order: str = ORDER_BY_NAME,
) -> ShardPlan:
    """Reconcile history with *input_files* and partition the result.

    Raises:
        ValueError: If node_count < 1 or order is unknown.
    """
    timings = reconcile_timings(records, input_files)
    plan = partition_files(timings, node_count, order=order)

    for bucket in plan.buckets:
        logger.debug(
            "Bucket %d: %d files, %.3fs", bucket.index, len(bucket.files), bucket.total_time
        )
    return plan
