"""Shared test fixtures for Folio."""

from __future__ import annotations

import os
import subprocess
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


class GitRepo:
    """A throwaway git repository driven through the git CLI."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def git(self, *args: str, env: dict[str, str] | None = None) -> str:
        result = subprocess.run(  # noqa: S603
            ["git", *args],  # noqa: S607
            cwd=str(self.root),
            capture_output=True,
            text=True,
            check=True,
            env={**os.environ, **(env or {})},
        )
        return result.stdout

    def write(self, path: str, text: str) -> None:
        full_path = self.root / path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(text, encoding="utf-8")

    def delete(self, path: str) -> None:
        (self.root / path).unlink()

    def commit(self, message: str, *, author: str = "Test User", date: str | None = None) -> str:
        """Stage everything and commit; *date* sets author and committer date."""
        self.git("add", "-A")
        env = {"GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date} if date else None
        self.git(
            "commit",
            "-q",
            "-m",
            message,
            "--author",
            f"{author} <{author.lower().replace(' ', '.')}@example.com>",
            env=env,
        )
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD").strip()


@pytest.fixture()
def git_repo(tmp_path: Path) -> GitRepo:
    """Create a real temporary git repository with identity configured."""
    repo = GitRepo(tmp_path / "site")
    repo.root.mkdir()
    repo.git("init", "-q")
    repo.git("config", "user.email", "test@example.com")
    repo.git("config", "user.name", "Test User")
    repo.git("config", "commit.gpgsign", "false")
    return repo


@pytest.fixture()
def site_repo(git_repo: GitRepo) -> GitRepo:
    """A content repository whose first commit is recorded as published.

    History: ``content/en/a.md`` and ``content/vi/a.md`` are published, then
    ``content/en/b.md`` is added in a second commit.
    """
    git_repo.write("content/en/a.md", "---\ntitle: Alpha\ntags: intro\n---\nHello\n")
    git_repo.write("content/vi/a.md", "---\ntitle: Xin chào\n---\nChào\n")
    git_repo.write("README.md", "site\n")
    published = git_repo.commit("init", author="Ann", date="2022-01-01T00:00:00+00:00")

    git_repo.write("generated/published_commit", published + "\n")
    git_repo.write("content/en/b.md", "---\ntitle: Beta\n---\nBody\n")
    git_repo.commit("add beta", author="Bob", date="2023-01-01T00:00:00+00:00")
    return git_repo
