"""Tests for CI context detection."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from splitter.utils.ci_context import CIContext, detect_ci_context, normalize_branch


def test_detect_github_actions_push_context() -> None:
    env = {
        "GITHUB_ACTIONS": "true",
        "GITHUB_REF": "refs/heads/main",
        "GITHUB_REF_NAME": "main",
        "GITHUB_REPOSITORY": "owner/repo",
    }

    with patch.dict(os.environ, env, clear=True):
        context = detect_ci_context()

        assert context.is_ci
        assert context.branch == "main"
        assert context.repository == "owner/repo"


def test_detect_github_actions_pr_uses_head_ref() -> None:
    env = {
        "GITHUB_ACTIONS": "true",
        "GITHUB_HEAD_REF": "feature/login",
        "GITHUB_REF": "refs/pull/12/merge",
        "GITHUB_REF_NAME": "12/merge",
        "GITHUB_REPOSITORY": "owner/repo",
    }

    with patch.dict(os.environ, env, clear=True):
        assert detect_ci_context().branch == "feature/login"


def test_detect_github_actions_ref_only() -> None:
    env = {"GITHUB_ACTIONS": "true", "GITHUB_REF": "refs/heads/release/1.2"}

    with patch.dict(os.environ, env, clear=True):
        context = detect_ci_context()

        assert context.branch == "release/1.2"
        assert context.repository is None


def test_detect_generic_ci() -> None:
    with patch.dict(os.environ, {"CI": "true"}, clear=True):
        context = detect_ci_context()

        assert context.is_ci
        assert context.branch is None


def test_detect_local() -> None:
    with patch.dict(os.environ, {}, clear=True):
        assert detect_ci_context() == CIContext(is_ci=False, branch=None, repository=None)


@pytest.mark.parametrize(
    ("ref", "expected"),
    [
        ("refs/heads/main", "main"),
        ("refs/heads/feature/x", "feature/x"),
        ("main", "main"),
        (" main\n", "main"),
        ("refs/pull/1/merge", None),
        ("refs/tags/v1.0", None),
        ("refs/heads/", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_branch(ref: str | None, expected: str | None) -> None:
    assert normalize_branch(ref) == expected
