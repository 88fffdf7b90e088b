"""Run orchestrator: diff, reconcile, write artifacts, publish, trigger build."""

# folio:domain=pipeline

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from folio.catalog.changes import ChangeSet, compute_change_set
from folio.catalog.patch import Patch, build_patch, write_patch
from folio.catalog.reconcile import FailedDocument, ReconcileResult, reconcile
from folio.catalog.records import Snapshot, load_snapshot, save_snapshot
from folio.config import DryRun
from folio.errors import ExternalLookupError
from folio.infrastructure.coordination import load_coordination_state
from folio.infrastructure.git_history import EMPTY_TREE, head_revision, history_diff
from folio.infrastructure.lock import single_flight
from folio.infrastructure.metadata import build_metadata_fetcher
from folio.infrastructure.publish import publish_snapshot, trigger_build

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from folio.catalog.changes import FileChange
    from folio.catalog.merge import ExternalMeta
    from folio.config import FolioConfig

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Summary of one generate run."""

    head: str
    previous_anchor: str
    patch: Patch
    reconcile: ReconcileResult
    persisted: bool = False
    published: bool = False
    triggered: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[FailedDocument]:
        return self.reconcile.errors

    @property
    def nothing_changed(self) -> bool:
        return self.reconcile.unchanged


def _differ(config: FolioConfig, head: str) -> Callable[[str], list[FileChange]]:
    def _diff(from_revision: str) -> list[FileChange]:
        return history_diff(
            config.project_root,
            from_revision,
            head,
            pathspec=config.managed_root,
            timeout=config.timeout,
        )

    return _diff


def _reader(config: FolioConfig) -> Callable[[str], str]:
    def _read(path: str) -> str:
        return (config.project_root / path).read_text(encoding="utf-8")

    return _read


def _no_metadata(path: str) -> ExternalMeta:
    raise ExternalLookupError(path, "no metadata source configured")


def _relative(config: FolioConfig, *paths: Path) -> list[str]:
    return [str(p.relative_to(config.project_root)) for p in paths]


def run(
    config: FolioConfig,
    *,
    fetch_metadata: Callable[[str], ExternalMeta] | None = None,
) -> RunResult:
    """Regenerate ``patch.json`` and ``index.json`` for *config*.

    Run-level failures (coordination state, git, unreadable snapshot) raise
    before anything is written. Per-document failures are collected in the
    result; the index is still written unless no document succeeded.

    Raises
    ------
    RunLockedError
        If another run is in progress.
    CoordinationStateError, HistoryDiffError, SnapshotError, PublishError
        On run-level failures.
    """
    with single_flight(config.lock_path):
        return _run(config, fetch_metadata)


def _run(
    config: FolioConfig,
    fetch_metadata: Callable[[str], ExternalMeta] | None,
) -> RunResult:
    root = config.project_root
    state = load_coordination_state(config)
    head = head_revision(root, timeout=config.timeout)
    diff = _differ(config, head)

    logger.info(
        "Generating patch.json with diff from %s to %s",
        state.last_published_revision[:7],
        head[:7],
    )
    patch_changes = compute_change_set(diff, state.last_published_revision, config.managed_root)
    patch = build_patch(
        patch_changes,
        managed_root=config.managed_root,
        namespace_filter=config.namespace_filter,
    )

    if config.full:
        snapshot = Snapshot(commit=EMPTY_TREE)
    else:
        snapshot = load_snapshot(config.index_path, initial_anchor=EMPTY_TREE)
    logger.info("Updating index.json from %s to %s", snapshot.commit[:7], head[:7])

    if snapshot.commit == head:
        changes = ChangeSet()
    else:
        changes = compute_change_set(diff, snapshot.commit, config.managed_root)

    if fetch_metadata is None and changes.updated:
        fetch_metadata = build_metadata_fetcher(config)
    outcome = reconcile(
        snapshot,
        changes,
        head,
        fetch_metadata or _no_metadata,
        read_source=_reader(config),
        managed_root=config.managed_root,
        max_workers=config.max_workers,
    )
    result = RunResult(head=head, previous_anchor=snapshot.commit, patch=patch, reconcile=outcome)

    if outcome.errors and not outcome.should_persist:
        result.warnings.append("Every changed document failed; artifacts were not written")
        return result

    write_patch(config.patch_path, patch)
    if outcome.should_persist:
        save_snapshot(config.index_path, outcome.snapshot)
        result.persisted = True
        logger.info("Generated index.json with %d documents", len(outcome.snapshot.documents))
    elif outcome.unchanged:
        logger.info("index.json is already up to date")

    if config.dry_run != DryRun.OFF:
        logger.info("Dry run (%s): skipping publish and build", config.dry_run.name)
        return result

    result.published = publish_snapshot(
        root,
        _relative(config, config.index_path, config.patch_path),
        config.commit_message,
        timeout=config.timeout,
    )

    if config.trigger_build:
        trigger_build(state.build_trigger_url, timeout=config.timeout)
        result.triggered = True

    return result
