"""Exceptions raised while loading timing history."""

from __future__ import annotations


class HistoryError(Exception):
    """Timing history could not be fetched."""


class GitHubAPIError(HistoryError):
    """Exception raised when GitHub API operations fail."""
