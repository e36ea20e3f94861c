"""Choose which artifact to trust as timing history."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from splitter.history.github import Artifact

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


def _created_at(artifact: Artifact) -> datetime:
    """Parse ``created_at``; unparseable timestamps sort as oldest."""
    try:
        parsed = datetime.fromisoformat(artifact.created_at)
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def select_artifacts(
    artifacts: list[Artifact],
    *,
    artifact_name: str,
    main_branch: str,
    current_branch: str | None,
) -> list[Artifact]:
    """Return candidate history artifacts, newest first.

    Expired artifacts and artifacts with another name are ignored.  Artifacts
    from *main_branch* are preferred because they come from stable runs;
    when there are none, artifacts from *current_branch* (repeat runs of the
    same branch) are used instead.

    Returns:
        Candidates sorted by ``created_at`` descending, or an empty list.
    """
    usable = [a for a in artifacts if not a.expired and a.name == artifact_name]

    branches = [main_branch]
    if current_branch and current_branch != main_branch:
        branches.append(current_branch)

    for branch in branches:
        candidates = [a for a in usable if a.workflow_run.head_branch == branch]
        if candidates:
            logger.info(
                "Using %d %r artifacts from branch %s", len(candidates), artifact_name, branch
            )
            return sorted(candidates, key=_created_at, reverse=True)

    logger.info("No %r artifacts found for branches %s", artifact_name, ", ".join(branches))
    return []
