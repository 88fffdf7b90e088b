"""Run configuration: ``.folio/config.yml`` + environment + CLI overrides."""

# folio:domain=config

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

CONFIG_PATH = Path(".folio") / "config.yml"

ENV_DRY_RUN = "FOLIO_DRY_RUN"
ENV_BUILD_URL = "FOLIO_BUILD_URL"

METADATA_SOURCES = ("github", "git")


class DryRun(enum.IntEnum):
    """How much of a run touches the outside world.

    | Level   | Metadata lookups | Publish + build |
    |---------|------------------|-----------------|
    | OFF     | real             | yes             |
    | LOCAL   | real             | no              |
    | OFFLINE | synthetic        | no              |
    """

    OFF = 0
    LOCAL = 1
    OFFLINE = 2


@dataclass(frozen=True)
class GitHubConfig:
    """Repository queried for last-change metadata."""

    owner: str = ""
    repo: str = ""
    branch: str = "master"
    token_env: str = "GITHUB_TOKEN"

    @property
    def token(self) -> str:
        return os.environ.get(self.token_env, "")


@dataclass(frozen=True)
class FolioConfig:
    """Everything a run needs, fixed at construction time."""

    project_root: Path
    managed_root: str = "content"
    namespace_filter: str = "content/en"
    generated_dir: str = "generated"
    dry_run: DryRun = DryRun.OFF
    trigger_build: bool = True
    full: bool = False
    metadata_source: str = "github"
    github: GitHubConfig = field(default_factory=GitHubConfig)
    coordination_url: str = ""
    build_url: str = ""
    timeout: float = 30.0
    max_workers: int = 8
    synthetic_author: str = "folio"
    commit_message: str = "Regenerate content index [skip ci]"

    @property
    def generated_path(self) -> Path:
        return self.project_root / self.generated_dir

    @property
    def index_path(self) -> Path:
        return self.generated_path / "index.json"

    @property
    def patch_path(self) -> Path:
        return self.generated_path / "patch.json"

    @property
    def published_commit_path(self) -> Path:
        return self.generated_path / "published_commit"

    @property
    def lock_path(self) -> Path:
        return self.project_root / ".folio" / "run.lock"


def _parse_dry_run(value: Any) -> DryRun:
    try:
        return DryRun(int(value))
    except (TypeError, ValueError):
        msg = f"Invalid dry_run level: {value!r}. Use 0, 1 or 2."
        raise ValueError(msg) from None


def _read_config_file(project_root: Path) -> dict[str, Any]:
    config_path = project_root / CONFIG_PATH
    if not config_path.exists():
        return {}
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {config_path}: {exc}"
        raise ValueError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{config_path} must contain a mapping"
        raise ValueError(msg)
    return data


def parse_config(raw: dict[str, Any], project_root: Path) -> FolioConfig:
    """Validate a raw config mapping.

    Raises
    ------
    ValueError
        On unknown metadata sources, bad dry-run levels, or non-positive
        limits.
    """
    config = FolioConfig(project_root=project_root)

    values: dict[str, Any] = {}
    for name in (
        "managed_root",
        "namespace_filter",
        "generated_dir",
        "coordination_url",
        "build_url",
        "synthetic_author",
        "commit_message",
    ):
        if raw.get(name):
            values[name] = str(raw[name]).strip()

    coordination = raw.get("coordination") or {}
    if isinstance(coordination, dict) and coordination.get("url"):
        values["coordination_url"] = str(coordination["url"]).strip()

    if "dry_run" in raw:
        values["dry_run"] = _parse_dry_run(raw["dry_run"])

    source = str(raw.get("metadata_source", config.metadata_source))
    if source not in METADATA_SOURCES:
        msg = f"Unsupported metadata_source: {source!r}. Use 'github' or 'git'."
        raise ValueError(msg)
    values["metadata_source"] = source

    for name, cast in (("timeout", float), ("max_workers", int)):
        if name in raw:
            number = cast(raw[name])
            if number <= 0:
                msg = f"'{name}' must be positive, got {raw[name]!r}"
                raise ValueError(msg)
            values[name] = number

    github = raw.get("github") or {}
    if isinstance(github, dict):
        values["github"] = GitHubConfig(
            owner=str(github.get("owner", "")),
            repo=str(github.get("repo", "")),
            branch=str(github.get("branch", "master")),
            token_env=str(github.get("token_env", "GITHUB_TOKEN")),
        )

    return replace(config, **values)


def load_config(project_root: Path, **overrides: Any) -> FolioConfig:
    """Build the run configuration for *project_root*.

    Precedence: explicit *overrides* (``None`` values ignored), then
    environment variables, then ``.folio/config.yml``, then defaults.
    """
    raw = _read_config_file(project_root)

    if os.environ.get(ENV_DRY_RUN):
        raw["dry_run"] = os.environ[ENV_DRY_RUN]
    if os.environ.get(ENV_BUILD_URL):
        raw["build_url"] = os.environ[ENV_BUILD_URL]

    config = parse_config(raw, project_root)

    applied = {k: v for k, v in overrides.items() if v is not None}
    if "dry_run" in applied:
        applied["dry_run"] = _parse_dry_run(applied["dry_run"])
    return replace(config, **applied)
