"""Configuration parsing from ``.splitter.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from splitter.history.github import GITHUB_API_BASE
from splitter.history.junit import DEFAULT_REPORT_PREFIX, DEFAULT_REPORT_SUFFIX
from splitter.history.source import DEFAULT_ARTIFACT_NAME, DEFAULT_MAIN_BRANCH, DEFAULT_MAX_PAGES
from splitter.sharding.partitioner import ORDER_BY_NAME, ORDERS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".splitter.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass
class GitHubConfig:
    """GitHub API access."""

    repository: str = ""
    """Repository in ``owner/repo`` form."""

    token: str = ""
    """API token (supports ${ENV_VAR} expansion)."""

    api_url: str = GITHUB_API_BASE
    """REST API base URL."""

    timeout: float = 30.0
    """Per-request timeout in seconds."""


@dataclass
class HistoryConfig:
    """Where timing history is looked up."""

    enabled: bool = True
    """Fetch history at all (disabled = every file weighs zero)."""

    artifact_name: str = DEFAULT_ARTIFACT_NAME
    """Name of the workflow artifact holding the test reports."""

    main_branch: str = DEFAULT_MAIN_BRANCH
    """Branch whose artifacts are trusted first."""

    max_pages: int = DEFAULT_MAX_PAGES
    """Maximum number of artifact list pages (100 artifacts each)."""

    report_prefix: str = DEFAULT_REPORT_PREFIX
    """File name prefix of report files inside the artifact."""

    report_suffix: str = DEFAULT_REPORT_SUFFIX
    """File name suffix of report files inside the artifact."""


@dataclass
class SplitConfig:
    """Partitioning behaviour."""

    order: str = ORDER_BY_NAME
    """File visiting order: ``name`` (reproducible) or ``duration`` (LPT)."""


@dataclass
class SplitterConfig:
    """Complete splitter configuration from ``.splitter.yml``."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    split: SplitConfig = field(default_factory=SplitConfig)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes"}


def _parse_github_config(raw: dict[str, Any]) -> GitHubConfig:
    """Parse the GitHub section, falling back to Actions environment variables."""
    gh_raw = _section(raw, "github")
    return GitHubConfig(
        repository=str(gh_raw.get("repository", os.environ.get("GITHUB_REPOSITORY", ""))),
        token=str(gh_raw.get("token", os.environ.get("GITHUB_TOKEN", ""))),
        api_url=str(gh_raw.get("api_url", os.environ.get("GITHUB_API_URL", GITHUB_API_BASE))),
        timeout=float(gh_raw.get("timeout", 30.0)),
    )


def _parse_history_config(raw: dict[str, Any]) -> HistoryConfig:
    """Parse history lookup configuration from raw YAML."""
    hist_raw = _section(raw, "history")
    return HistoryConfig(
        enabled=_parse_bool(hist_raw.get("enabled", True)),
        artifact_name=str(
            hist_raw.get(
                "artifact_name", os.environ.get("SPLITTER_ARTIFACT_NAME", DEFAULT_ARTIFACT_NAME)
            )
        ),
        main_branch=str(hist_raw.get("main_branch", DEFAULT_MAIN_BRANCH)),
        max_pages=int(hist_raw.get("max_pages", DEFAULT_MAX_PAGES)),
        report_prefix=str(hist_raw.get("report_prefix", DEFAULT_REPORT_PREFIX)),
        report_suffix=str(hist_raw.get("report_suffix", DEFAULT_REPORT_SUFFIX)),
    )


def _parse_split_config(raw: dict[str, Any]) -> SplitConfig:
    split_raw = _section(raw, "split")
    return SplitConfig(
        order=str(split_raw.get("order", os.environ.get("SPLITTER_ORDER", ORDER_BY_NAME))),
    )


def load_config(root: str | Path) -> SplitterConfig:
    """Load and parse ``.splitter.yml`` from *root*.

    Falls back to defaults and environment variables when the YAML file is
    missing or incomplete.
    """
    config_path = Path(root).resolve() / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.is_file():
        parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)

    return SplitterConfig(
        github=_parse_github_config(raw),
        history=_parse_history_config(raw),
        split=_parse_split_config(raw),
    )


def _validate_history_config(history: HistoryConfig) -> list[str]:
    """Validate history lookup settings."""
    errors: list[str] = []

    if not history.artifact_name:
        errors.append("history.artifact_name must not be empty")

    if not history.main_branch:
        errors.append("history.main_branch must not be empty")

    if history.max_pages < 1:
        errors.append(f"history.max_pages must be >= 1 (got: {history.max_pages})")

    return errors


def _validate_github_config(github: GitHubConfig) -> list[str]:
    errors: list[str] = []

    if github.timeout <= 0:
        errors.append(f"github.timeout must be positive (got: {github.timeout})")

    return errors


def validate_config(config: SplitterConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    errors.extend(_validate_github_config(config.github))
    errors.extend(_validate_history_config(config.history))

    if config.split.order not in ORDERS:
        errors.append(
            f"split.order must be one of {', '.join(ORDERS)} (got: {config.split.order})"
        )

    return errors
