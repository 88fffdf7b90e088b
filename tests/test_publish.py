"""Tests for folio.infrastructure.publish: committing artifacts and build hook."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import httpx
import pytest

from folio.errors import PublishError
from folio.infrastructure.publish import publish_snapshot, trigger_build

if TYPE_CHECKING:
    from tests.conftest import GitRepo


class TestPublishSnapshot:
    def test_commits_changed_artifacts(self, git_repo: GitRepo) -> None:
        git_repo.write("README.md", "site")
        before = git_repo.commit("init")
        git_repo.write("generated/index.json", "{}\n")
        git_repo.write("scratch.txt", "not published")

        published = publish_snapshot(
            git_repo.root, ["generated/index.json"], "Regenerate index", push=False
        )

        assert published
        assert git_repo.head() != before
        assert git_repo.git("log", "-1", "--format=%s").strip() == "Regenerate index"
        files = git_repo.git("show", "--name-only", "--format=", "HEAD").split()
        assert files == ["generated/index.json"]
        assert "scratch.txt" in git_repo.git("status", "--porcelain")

    def test_nothing_to_publish(self, git_repo: GitRepo) -> None:
        git_repo.write("generated/index.json", "{}\n")
        before = git_repo.commit("init")

        published = publish_snapshot(
            git_repo.root, ["generated/index.json"], "Regenerate index", push=False
        )

        assert not published
        assert git_repo.head() == before

    def test_push_without_remote_fails(self, git_repo: GitRepo) -> None:
        git_repo.write("README.md", "site")
        git_repo.commit("init")
        git_repo.write("generated/index.json", "{}\n")

        with pytest.raises(PublishError, match="push"):
            publish_snapshot(git_repo.root, ["generated/index.json"], "Regenerate index")


class TestTriggerBuild:
    def test_posts_empty_json(self) -> None:
        mock_response = MagicMock()
        mock_response.status_code = 200

        with patch("folio.infrastructure.publish.httpx.post", return_value=mock_response) as post:
            trigger_build("https://hooks.example.com/b", timeout=4.0)

        post.assert_called_once_with(
            "https://hooks.example.com/b",
            content=b"{}",
            headers={"content-type": "application/json"},
            timeout=4.0,
        )

    def test_error_status(self) -> None:
        mock_response = MagicMock()
        mock_response.status_code = 500
        mock_response.text = "boom"

        with (
            patch("folio.infrastructure.publish.httpx.post", return_value=mock_response),
            pytest.raises(PublishError, match="500"),
        ):
            trigger_build("https://hooks.example.com/b")

    def test_network_failure(self) -> None:
        with (
            patch(
                "folio.infrastructure.publish.httpx.post",
                side_effect=httpx.ConnectError("refused"),
            ),
            pytest.raises(PublishError),
        ):
            trigger_build("https://hooks.example.com/b")

    def test_missing_url(self) -> None:
        with pytest.raises(PublishError, match="No build hook"):
            trigger_build("")
