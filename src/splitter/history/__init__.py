"""Timing history recovered from previous CI runs."""

from splitter.history.errors import GitHubAPIError, HistoryError
from splitter.history.github import Artifact, GitHubAPI, WorkflowRun
from splitter.history.junit import parse_report, records_from_path, records_from_zip
from splitter.history.selection import select_artifacts
from splitter.history.source import (
    EmptyHistory,
    GitHubArtifactHistory,
    HistorySource,
    LocalArtifactHistory,
)

__all__ = [
    "Artifact",
    "EmptyHistory",
    "GitHubAPI",
    "GitHubAPIError",
    "GitHubArtifactHistory",
    "HistoryError",
    "HistorySource",
    "LocalArtifactHistory",
    "WorkflowRun",
    "parse_report",
    "records_from_path",
    "records_from_zip",
    "select_artifacts",
]
