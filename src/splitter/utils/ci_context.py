"""CI context detection utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass

_BRANCH_REF_PREFIX = "refs/heads/"


@dataclass
class CIContext:
    """Detected CI execution context."""

    is_ci: bool
    """Running in CI environment."""

    branch: str | None
    """Current branch name (without ``refs/heads/``)."""

    repository: str | None
    """Repository in ``owner/repo`` form."""


def normalize_branch(ref: str | None) -> str | None:
    """Turn a git ref such as ``refs/heads/main`` into a branch name.

    Pull request merge refs (``refs/pull/1/merge``) have no branch name and
    map to ``None``.
    """
    if not ref:
        return None
    ref = ref.strip()
    if ref.startswith(_BRANCH_REF_PREFIX):
        return ref[len(_BRANCH_REF_PREFIX) :] or None
    if ref.startswith("refs/"):
        return None
    return ref or None


def detect_ci_context() -> CIContext:
    """Detect CI context from environment variables.

    On GitHub Actions the branch comes from ``GITHUB_HEAD_REF`` for pull
    requests and from ``GITHUB_REF_NAME`` / ``GITHUB_REF`` otherwise.

    Returns:
        CIContext with detected values.
    """
    if os.getenv("GITHUB_ACTIONS") == "true":
        branch = (
            normalize_branch(os.getenv("GITHUB_HEAD_REF"))
            or normalize_branch(os.getenv("GITHUB_REF_NAME"))
            or normalize_branch(os.getenv("GITHUB_REF"))
        )
        return CIContext(
            is_ci=True,
            branch=branch,
            repository=os.getenv("GITHUB_REPOSITORY") or None,
        )

    return CIContext(
        is_ci=os.getenv("CI") == "true",
        branch=normalize_branch(os.getenv("GITHUB_REF")),
        repository=os.getenv("GITHUB_REPOSITORY") or None,
    )
