"""Reporters for shard plan output."""

from __future__ import annotations

from splitter.reporters.terminal import CLIReporter, reporter

__all__ = [
    "CLIReporter",
    "reporter",
]
