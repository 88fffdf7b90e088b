"""Publish generated artifacts to the repository and fire the build hook."""

# folio:domain=infrastructure

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

import httpx

from folio.errors import PublishError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def _run_git(project_root: Path, args: list[str], timeout: float) -> subprocess.CompletedProcess[str]:
    try:
        result = subprocess.run(  # noqa: S603
            ["git", *args],  # noqa: S607
            cwd=str(project_root),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        msg = f"git {args[0]} failed: {exc}"
        raise PublishError(msg) from exc
    return result


def _check(result: subprocess.CompletedProcess[str], what: str) -> None:
    if result.returncode != 0:
        msg = f"git {what} failed: {(result.stderr or result.stdout).strip()}"
        raise PublishError(msg)


def publish_snapshot(
    project_root: Path,
    paths: list[str],
    message: str,
    *,
    push: bool = True,
    timeout: float = 60.0,
) -> bool:
    """Commit *paths* and push the current branch.

    Returns ``False`` without committing when nothing changed.

    Raises
    ------
    PublishError
        If any git step fails.
    """
    _check(_run_git(project_root, ["add", "--", *paths], timeout), "add")

    staged = _run_git(project_root, ["diff", "--cached", "--quiet", "--", *paths], timeout)
    if staged.returncode not in (0, 1):
        _check(staged, "diff")
    if staged.returncode == 0:
        logger.info("Generated artifacts unchanged; nothing to publish")
        return False

    _check(_run_git(project_root, ["commit", "-m", message, "--", *paths], timeout), "commit")
    if push:
        _check(_run_git(project_root, ["push"], timeout), "push")
    logger.info("Published %s", ", ".join(paths))
    return True


def trigger_build(url: str, *, timeout: float = 30.0) -> None:
    """POST an empty JSON body to the build hook.

    Raises
    ------
    PublishError
        If *url* is empty, the request fails, or the hook answers with an
        error status.
    """
    if not url:
        msg = "No build hook URL configured"
        raise PublishError(msg)

    try:
        response = httpx.post(
            url,
            content=b"{}",
            headers={"content-type": "application/json"},
            timeout=timeout,
        )
    except httpx.HTTPError as exc:
        msg = f"Build hook request failed: {exc}"
        raise PublishError(msg) from exc

    if response.status_code >= 400:
        msg = f"Build hook error {response.status_code}: {response.text}"
        raise PublishError(msg)
    logger.info("Build triggered (%d)", response.status_code)
