"""Git collaborators: revisions, name-status diffs, and per-path last change.

All commands run through ``subprocess`` with a timeout; output is parsed
from ``-z`` / ``--format`` forms so paths with spaces survive.
"""

# folio:domain=infrastructure

from __future__ import annotations

import logging
import subprocess
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from folio.catalog.changes import COPIED, RENAMED, FileChange
from folio.catalog.merge import ExternalMeta
from folio.errors import ExternalLookupError, HistoryDiffError, NotFoundError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# Hash of git's empty tree; diffing from it lists every tracked file as added.
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

DEFAULT_TIMEOUT = 30.0

_FIELD_SEP = "\x1f"


def _git(project_root: Path, args: list[str], timeout: float) -> subprocess.CompletedProcess[str]:
    return subprocess.run(  # noqa: S603
        ["git", *args],  # noqa: S607
        cwd=str(project_root),
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def _git_output(project_root: Path, args: list[str], timeout: float) -> str:
    """Run git and return stdout, raising :class:`HistoryDiffError` on failure."""
    try:
        result = _git(project_root, args, timeout)
    except FileNotFoundError as exc:
        msg = "git executable not found"
        raise HistoryDiffError(msg) from exc
    except subprocess.TimeoutExpired as exc:
        msg = f"git {args[0]} timed out after {timeout:g}s"
        raise HistoryDiffError(msg) from exc

    if result.returncode != 0:
        msg = f"git {' '.join(args)} failed: {result.stderr.strip()}"
        raise HistoryDiffError(msg)
    return result.stdout


def clean_revision(value: str) -> str:
    """Strip whitespace and anything that cannot be part of a revision id."""
    return "".join(ch for ch in value if ch.isalnum())


def head_revision(project_root: Path, *, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Full hash of ``HEAD``."""
    return clean_revision(_git_output(project_root, ["rev-parse", "HEAD"], timeout))


def parse_name_status(output: str) -> list[FileChange]:
    """Parse ``git diff --name-status -z`` output.

    Records are NUL separated: ``<status>\\0<path>\\0`` or, for renames and
    copies, ``<status><score>\\0<old>\\0<new>\\0``.
    """
    tokens = output.split("\0")
    changes: list[FileChange] = []
    i = 0
    while i < len(tokens):
        status = tokens[i].strip()
        if not status:
            i += 1
            continue
        kind = status[0]
        if kind in (RENAMED, COPIED):
            if i + 2 >= len(tokens):
                break
            changes.append(FileChange(kind=kind, path=tokens[i + 2], old_path=tokens[i + 1]))
            i += 3
        else:
            if i + 1 >= len(tokens):
                break
            changes.append(FileChange(kind=kind, path=tokens[i + 1]))
            i += 2
    return changes


def history_diff(
    project_root: Path,
    from_revision: str,
    to_revision: str = "HEAD",
    *,
    pathspec: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[FileChange]:
    """List files changed between two revisions.

    Raises
    ------
    HistoryDiffError
        If git fails (e.g. unknown revision) or times out.
    """
    args = ["diff", "--name-status", "-z", "-M", from_revision, to_revision]
    if pathspec:
        args.extend(["--", pathspec])
    output = _git_output(project_root, args, timeout)
    changes = parse_name_status(output)
    logger.debug("git diff %s..%s: %d entries", from_revision[:7], to_revision, len(changes))
    return changes


def normalize_timestamp(value: str) -> str:
    """Render an ISO 8601 timestamp in UTC as ``YYYY-MM-DDTHH:MM:SSZ``."""
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class GitLastModified:
    """Last-change metadata from the local repository's ``git log``."""

    def __init__(self, project_root: Path, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.project_root = project_root
        self.timeout = timeout

    def __call__(self, path: str) -> ExternalMeta:
        args = ["log", "-1", f"--format=%cI{_FIELD_SEP}%aN", "--", path]
        try:
            result = _git(self.project_root, args, self.timeout)
        except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
            raise ExternalLookupError(path, f"git log failed: {exc}") from exc

        if result.returncode != 0:
            raise ExternalLookupError(path, f"git log failed: {result.stderr.strip()}")

        line = result.stdout.strip()
        if not line:
            raise NotFoundError(path, "no commit history")

        date, _, author = line.partition(_FIELD_SEP)
        try:
            timestamp = normalize_timestamp(date)
        except ValueError as exc:
            raise ExternalLookupError(path, f"bad commit date {date!r}") from exc
        return ExternalMeta(timestamp=timestamp, author=author)
