"""History sources: where previous-run timing records come from."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from splitter.history.junit import (
    DEFAULT_REPORT_PREFIX,
    DEFAULT_REPORT_SUFFIX,
    records_from_path,
    records_from_zip,
)
from splitter.history.selection import select_artifacts

if TYPE_CHECKING:
    from pathlib import Path

    from splitter.history.github import GitHubAPI
    from splitter.sharding.timing import TestRecord

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_NAME = "test-results"
DEFAULT_MAIN_BRANCH = "main"
DEFAULT_MAX_PAGES = 10


class HistorySource(ABC):
    """Provides the timing records of at most one previous run."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short description used in log and report output."""

    @abstractmethod
    def load_records(self) -> list[TestRecord]:
        """Return the flat list of historical test records.

        An empty list means no usable history.

        Raises:
            HistoryError: If the history could not be fetched at all.
        """


class EmptyHistory(HistorySource):
    """No history: every file is scheduled with the same zero estimate."""

    @property
    def name(self) -> str:
        return "none"

    def load_records(self) -> list[TestRecord]:
        return []


class LocalArtifactHistory(HistorySource):
    """Reads reports from an artifact zip or an extracted artifact directory."""

    def __init__(
        self,
        path: Path,
        *,
        report_prefix: str = DEFAULT_REPORT_PREFIX,
        report_suffix: str = DEFAULT_REPORT_SUFFIX,
    ) -> None:
        self._path = path
        self._prefix = report_prefix
        self._suffix = report_suffix

    @property
    def name(self) -> str:
        return f"local:{self._path}"

    def load_records(self) -> list[TestRecord]:
        records = records_from_path(self._path, prefix=self._prefix, suffix=self._suffix)
        logger.info("Found %d tests in %s", len(records), self._path)
        return records


class GitHubArtifactHistory(HistorySource):
    """Recovers timings from the newest matching GitHub Actions artifact.

    Artifacts from the main branch are preferred; the current branch is the
    fallback.  Only the newest candidate is downloaded.  Listing and download
    failures propagate as ``GitHubAPIError`` because a failed fetch must not be
    mistaken for a first-ever run.
    """

    def __init__(
        self,
        client: GitHubAPI,
        *,
        current_branch: str | None,
        artifact_name: str = DEFAULT_ARTIFACT_NAME,
        main_branch: str = DEFAULT_MAIN_BRANCH,
        max_pages: int = DEFAULT_MAX_PAGES,
        report_prefix: str = DEFAULT_REPORT_PREFIX,
        report_suffix: str = DEFAULT_REPORT_SUFFIX,
    ) -> None:
        self._client = client
        self._current_branch = current_branch
        self._artifact_name = artifact_name
        self._main_branch = main_branch
        self._max_pages = max_pages
        self._prefix = report_prefix
        self._suffix = report_suffix

    @property
    def name(self) -> str:
        return f"github:{self._client.repository}"

    def load_records(self) -> list[TestRecord]:
        artifacts = self._client.list_artifacts(max_pages=self._max_pages)
        candidates = select_artifacts(
            artifacts,
            artifact_name=self._artifact_name,
            main_branch=self._main_branch,
            current_branch=self._current_branch,
        )
        if not candidates:
            return []

        artifact = candidates[0]
        logger.info(
            "Using artifact %d (%s) from branch %s created at %s",
            artifact.id,
            artifact.name,
            artifact.workflow_run.head_branch,
            artifact.created_at,
        )
        data = self._client.download_artifact(artifact.id)
        records = records_from_zip(data, prefix=self._prefix, suffix=self._suffix)
        logger.info("Found %d tests in artifact %d", len(records), artifact.id)
        return records
