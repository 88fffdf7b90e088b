"""Last-change metadata fetchers: GitHub GraphQL, local git, and synthetic."""

# folio:domain=infrastructure

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import httpx

from folio.catalog.merge import ExternalMeta
from folio.config import DryRun
from folio.errors import ExternalLookupError, NotFoundError
from folio.infrastructure.git_history import GitLastModified, normalize_timestamp

if TYPE_CHECKING:
    from collections.abc import Callable

    from folio.config import FolioConfig

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

_LAST_COMMIT_QUERY = """\
query($owner: String!, $name: String!, $ref: String!, $path: String!) {
  repository(owner: $owner, name: $name) {
    ref(qualifiedName: $ref) {
      target {
        ... on Commit {
          history(first: 1, path: $path) {
            edges { node { committedDate author { name } } }
          }
        }
      }
    }
  }
}
"""


class GitHubLastModified:
    """Query the GitHub GraphQL API for a path's most recent commit."""

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str,
        branch: str = "master",
        timeout: float = 30.0,
    ) -> None:
        if not owner or not repo:
            msg = "GitHub metadata source requires 'github.owner' and 'github.repo'"
            raise ValueError(msg)
        self.owner = owner
        self.repo = repo
        self.token = token
        self.branch = branch
        self.timeout = timeout

    def _payload(self, path: str) -> dict[str, Any]:
        return {
            "query": _LAST_COMMIT_QUERY,
            "variables": {
                "owner": self.owner,
                "name": self.repo,
                "ref": f"refs/heads/{self.branch}",
                "path": path,
            },
        }

    def __call__(self, path: str) -> ExternalMeta:
        try:
            response = httpx.post(
                GITHUB_GRAPHQL_URL,
                headers={"Authorization": f"bearer {self.token}"},
                json=self._payload(path),
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise ExternalLookupError(path, f"GitHub request failed: {exc}") from exc

        if response.status_code != 200:
            reason = f"GitHub API error {response.status_code}: {response.text}"
            raise ExternalLookupError(path, reason)

        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalLookupError(path, "GitHub response is not valid JSON") from exc
        return parse_history_response(path, data)


def parse_history_response(path: str, data: Any) -> ExternalMeta:
    """Extract the last commit of *path* from a GraphQL response body.

    Raises
    ------
    NotFoundError
        If the path has no history on the branch.
    ExternalLookupError
        If the response carries errors or an unexpected shape.
    """
    if not isinstance(data, dict):
        raise ExternalLookupError(path, "unexpected GitHub response")
    if data.get("errors"):
        messages = "; ".join(str(e.get("message", e)) for e in data["errors"])
        raise ExternalLookupError(path, f"GitHub API error: {messages}")

    try:
        ref = data["data"]["repository"]["ref"]
        if ref is None:
            raise ExternalLookupError(path, "branch not found")
        edges = ref["target"]["history"]["edges"]
    except (KeyError, TypeError) as exc:
        raise ExternalLookupError(path, "unexpected GitHub response") from exc

    if not edges:
        raise NotFoundError(path, "no commit history")

    try:
        node = edges[0]["node"]
        timestamp = normalize_timestamp(node["committedDate"])
        author = str(node["author"]["name"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ExternalLookupError(path, "unexpected GitHub response") from exc

    return ExternalMeta(timestamp=timestamp, author=author)


class SyntheticMetadata:
    """Fixed author and a single "now" timestamp, for offline dry runs."""

    def __init__(self, author: str, now: datetime | None = None) -> None:
        moment = now or datetime.now(tz=timezone.utc)
        self.meta = ExternalMeta(
            timestamp=moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            author=author,
        )

    def __call__(self, path: str) -> ExternalMeta:
        return self.meta


def build_metadata_fetcher(config: FolioConfig) -> Callable[[str], ExternalMeta]:
    """Select the fetcher for *config*'s dry-run level and metadata source."""
    if config.dry_run >= DryRun.OFFLINE:
        logger.info("Offline dry run: synthetic metadata by %s", config.synthetic_author)
        return SyntheticMetadata(config.synthetic_author)

    if config.metadata_source == "git":
        return GitLastModified(config.project_root, timeout=config.timeout)

    token = config.github.token
    if not token:
        logger.warning("%s is not set; GitHub requests are unauthenticated", config.github.token_env)
    return GitHubLastModified(
        config.github.owner,
        config.github.repo,
        token=token,
        branch=config.github.branch,
        timeout=config.timeout,
    )
