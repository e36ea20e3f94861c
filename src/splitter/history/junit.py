"""Extract test timing records from RSpec JUnit XML reports.

Reports are produced by ``rspec_junit_formatter`` and look like::

    <testsuite name="rspec" tests="2" time="10.0">
      <testcase classname="spec.models.user_spec" name="User is valid"
                file="./spec/models/user_spec.rb" time="4.0"/>
      ...
    </testsuite>

Any report problem is a soft failure: the offending file or testcase is
logged and skipped, never raised.
"""

from __future__ import annotations

import io
import logging
import math
import zipfile
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from splitter.sharding.timing import TestRecord

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)

DEFAULT_REPORT_PREFIX = "rspec-"
DEFAULT_REPORT_SUFFIX = ".xml"


def is_report_name(name: str, prefix: str, suffix: str) -> bool:
    """Check whether an archive member or file name is a timing report."""
    base = PurePosixPath(name).name
    return base.startswith(prefix) and base.endswith(suffix)


def _parse_time(value: str | None) -> float | None:
    """Parse a ``time`` attribute; ``None`` when unusable."""
    if value is None or not value.strip():
        return 0.0
    try:
        seconds = float(value)
    except ValueError:
        return None
    if math.isnan(seconds) or math.isinf(seconds) or seconds < 0:
        return None
    return seconds


def _testcase_record(elem: XmlElement, source: str) -> TestRecord | None:
    filename = (elem.get("file") or "").strip()
    name = elem.get("name") or ""
    if not filename:
        logger.debug("Testcase without file attribute in %s: %s", source, name)
        return None

    duration = _parse_time(elem.get("time"))
    if duration is None:
        logger.debug("Invalid time %r for %s in %s", elem.get("time"), name, source)
        return None

    return TestRecord(file=filename, name=name, duration=duration)


def parse_report(content: bytes, source: str = "<report>") -> list[TestRecord]:
    """Parse one XML report into test records.

    Args:
        content: Raw XML bytes.
        source: Name used in log messages.

    Returns:
        Records in document order; empty on any parse error.
    """
    if not content.strip():
        logger.warning("Empty report file: %s", source)
        return []

    try:
        root = ElementTree.fromstring(content)
    except (DefusedParseError, DefusedXmlException) as exc:
        logger.warning("Failed to parse report %s: %s", source, exc)
        return []

    records: list[TestRecord] = []
    for elem in root.iter("testcase"):
        record = _testcase_record(elem, source)
        if record is not None:
            records.append(record)
    return records


def dedupe_records(records: Iterable[TestRecord]) -> list[TestRecord]:
    """Keep one record per ``(file, name)``, the last one seen wins.

    Reports from builds with different node counts can repeat tests.
    """
    by_key: dict[tuple[str, str], TestRecord] = {}
    for record in records:
        by_key[(record.file, record.name)] = record
    return list(by_key.values())


def records_from_zip(
    data: bytes,
    *,
    prefix: str = DEFAULT_REPORT_PREFIX,
    suffix: str = DEFAULT_REPORT_SUFFIX,
) -> list[TestRecord]:
    """Collect records from every report inside an artifact archive."""
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        logger.warning("Failed to open artifact archive: %s", exc)
        return []

    records: list[TestRecord] = []
    with archive:
        members = archive.infolist()
        if not members:
            logger.warning("Artifact archive is empty")
            return []

        for member in members:
            if member.is_dir() or not is_report_name(member.filename, prefix, suffix):
                continue
            logger.info("Processing report %s", member.filename)
            try:
                content = archive.read(member)
            except (zipfile.BadZipFile, OSError) as exc:
                logger.warning("Failed to read %s from archive: %s", member.filename, exc)
                continue
            records.extend(parse_report(content, member.filename))

    return dedupe_records(records)


def records_from_directory(
    directory: Path,
    *,
    prefix: str = DEFAULT_REPORT_PREFIX,
    suffix: str = DEFAULT_REPORT_SUFFIX,
) -> list[TestRecord]:
    """Collect records from report files under an extracted artifact directory."""
    records: list[TestRecord] = []
    for path in sorted(p for p in directory.rglob("*") if p.is_file()):
        if not is_report_name(path.name, prefix, suffix):
            continue
        logger.info("Processing report %s", path)
        try:
            content = path.read_bytes()
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            continue
        records.extend(parse_report(content, str(path)))
    return dedupe_records(records)


def records_from_path(
    path: Path,
    *,
    prefix: str = DEFAULT_REPORT_PREFIX,
    suffix: str = DEFAULT_REPORT_SUFFIX,
) -> list[TestRecord]:
    """Collect records from a zip archive or an extracted directory."""
    if path.is_dir():
        return records_from_directory(path, prefix=prefix, suffix=suffix)
    return records_from_zip(path.read_bytes(), prefix=prefix, suffix=suffix)
