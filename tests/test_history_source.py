"""Tests for splitter.history.source."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from splitter.history.errors import GitHubAPIError
from splitter.history.github import Artifact, WorkflowRun
from splitter.history.source import EmptyHistory, GitHubArtifactHistory, LocalArtifactHistory
from splitter.sharding.timing import TestRecord

_REPORT = (
    b"<testsuite>"
    b'<testcase name="a" file="spec/a_spec.rb" time="4"/>'
    b'<testcase name="b" file="spec/a_spec.rb" time="6"/>'
    b"</testsuite>"
)


def _zip_bytes(members: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def _artifact(artifact_id: int, branch: str, created_at: str) -> Artifact:
    return Artifact(
        id=artifact_id,
        name="test-results",
        created_at=created_at,
        workflow_run=WorkflowRun(id=artifact_id, head_branch=branch),
    )


@pytest.fixture()
def client() -> MagicMock:
    mock = MagicMock()
    mock.repository = "octocat/hello-world"
    mock.list_artifacts.return_value = [
        _artifact(1, "main", "2024-01-01T00:00:00Z"),
        _artifact(2, "main", "2024-02-01T00:00:00Z"),
        _artifact(3, "feature", "2024-03-01T00:00:00Z"),
    ]
    mock.download_artifact.return_value = _zip_bytes({"rspec-0.xml": _REPORT})
    return mock


class TestGitHubArtifactHistory:
    def test_downloads_only_newest_main_artifact(self, client: MagicMock) -> None:
        source = GitHubArtifactHistory(client, current_branch="feature")

        records = source.load_records()

        client.list_artifacts.assert_called_once_with(max_pages=10)
        client.download_artifact.assert_called_once_with(2)
        assert records == [
            TestRecord("spec/a_spec.rb", "a", 4.0),
            TestRecord("spec/a_spec.rb", "b", 6.0),
        ]

    def test_falls_back_to_current_branch(self, client: MagicMock) -> None:
        source = GitHubArtifactHistory(client, current_branch="feature", main_branch="trunk")

        source.load_records()

        client.download_artifact.assert_called_once_with(3)

    def test_no_candidates_means_no_history(self, client: MagicMock) -> None:
        source = GitHubArtifactHistory(client, current_branch=None, artifact_name="other")

        assert source.load_records() == []
        client.download_artifact.assert_not_called()

    def test_listing_failure_propagates(self, client: MagicMock) -> None:
        client.list_artifacts.side_effect = GitHubAPIError("unexpected status code: 500")
        source = GitHubArtifactHistory(client, current_branch="feature")

        with pytest.raises(GitHubAPIError):
            source.load_records()

    def test_download_failure_propagates(self, client: MagicMock) -> None:
        client.download_artifact.side_effect = GitHubAPIError("GET request failed: timeout")
        source = GitHubArtifactHistory(client, current_branch="feature")

        with pytest.raises(GitHubAPIError):
            source.load_records()

    def test_corrupt_artifact_is_soft_failure(self, client: MagicMock) -> None:
        client.download_artifact.return_value = b"not a zip"
        source = GitHubArtifactHistory(client, current_branch="feature")

        assert source.load_records() == []

    def test_passes_settings(self, client: MagicMock) -> None:
        client.download_artifact.return_value = _zip_bytes({"junit-0.xml": _REPORT})
        source = GitHubArtifactHistory(
            client,
            current_branch="feature",
            max_pages=3,
            report_prefix="junit-",
        )

        assert len(source.load_records()) == 2
        client.list_artifacts.assert_called_once_with(max_pages=3)

    def test_name(self, client: MagicMock) -> None:
        source = GitHubArtifactHistory(client, current_branch=None)
        assert source.name == "github:octocat/hello-world"


class TestLocalArtifactHistory:
    def test_reads_zip(self, tmp_path: Path) -> None:
        archive = tmp_path / "test-results.zip"
        archive.write_bytes(_zip_bytes({"rspec-0.xml": _REPORT}))

        assert len(LocalArtifactHistory(archive).load_records()) == 2

    def test_reads_directory_with_custom_suffix(self, tmp_path: Path) -> None:
        (tmp_path / "rspec-0.junit").write_bytes(_REPORT)

        source = LocalArtifactHistory(tmp_path, report_suffix=".junit")

        assert len(source.load_records()) == 2
        assert source.name == f"local:{tmp_path}"


class TestEmptyHistory:
    def test_no_records(self) -> None:
        source = EmptyHistory()
        assert source.load_records() == []
        assert source.name == "none"
