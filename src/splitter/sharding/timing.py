"""Per-file timing reconciliation.

Collapses per-test history records into per-file durations and aligns them
with the authoritative list of files for the current run:

- files present in history but not in the input are dropped (renamed or
  deleted since the history was recorded)
- files present in the input but not in history receive the average
  duration of the known files, computed once before any insertion
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestRecord:
    """One observed test execution from a previous run."""

    __test__ = False

    file: str
    """Source file the test belongs to."""

    name: str
    """Test identifier, unique only within ``file``."""

    duration: float = 0.0
    """Execution time in seconds."""


def aggregate_file_timings(records: Iterable[TestRecord]) -> dict[str, float]:
    """Sum test durations per file.

    Sums go through ``math.fsum`` so the result is independent of the order
    in which records arrive.
    """
    per_file: dict[str, list[float]] = defaultdict(list)
    for record in records:
        per_file[record.file].append(record.duration)
    return {filename: math.fsum(durations) for filename, durations in per_file.items()}


def average_file_time(file_timings: dict[str, float]) -> float:
    """Mean duration over the known files, ``0.0`` when nothing is known."""
    if not file_timings:
        return 0.0
    return math.fsum(file_timings.values()) / len(file_timings)


def reconcile_timings(
    records: Sequence[TestRecord],
    input_files: Sequence[str],
) -> dict[str, float]:
    """Build the file -> duration map for the current run.

    Args:
        records: Historical test records (may be empty).
        input_files: Normalized list of files that must be scheduled.

    Returns:
        Mapping whose keys are exactly ``input_files``.
    """
    file_timings = aggregate_file_timings(records)
    avg_file_time = average_file_time(file_timings)

    wanted = set(input_files)
    for filename in sorted(file_timings):
        if filename not in wanted:
            logger.debug("File found in history but not in input: %s", filename)
            del file_timings[filename]

    for filename in input_files:
        if filename not in file_timings:
            logger.debug(
                "File not found in history, using average %.3fs: %s", avg_file_time, filename
            )
            file_timings[filename] = avg_file_time

    logger.info(
        "Reconciled %d files (%d historical records, average %.3fs per file)",
        len(file_timings),
        len(records),
        avg_file_time,
    )
    return file_timings
