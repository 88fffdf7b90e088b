"""Snapshot reconciliation: apply a change set to the previous catalog."""

# folio:domain=catalog

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from folio.catalog.changes import ChangeSet, normalize_changes
from folio.catalog.identity import DEFAULT_MANAGED_ROOT, DocKey, resolve, to_storage_path
from folio.catalog.merge import ExternalMeta, merge_record
from folio.catalog.records import DocumentRecord, Snapshot, sort_documents
from folio.errors import DocumentError, ExternalLookupError, InvalidPathError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True)
class FailedDocument:
    """A per-document failure collected during reconciliation."""

    path: str
    error: Exception

    @property
    def reason(self) -> str:
        if isinstance(self.error, DocumentError):
            return self.error.reason
        return str(self.error)

    @property
    def kind(self) -> str:
        return type(self.error).__name__


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""

    snapshot: Snapshot
    created: int = 0
    updated: int = 0
    removed: int = 0
    unchanged: bool = False
    errors: list[FailedDocument] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return self.created + self.updated + self.removed

    @property
    def should_persist(self) -> bool:
        """False when every attempted document failed."""
        if self.unchanged:
            return False
        return not (self.errors and self.succeeded == 0)


def record_key(record: DocumentRecord, managed_root: str = DEFAULT_MANAGED_ROOT) -> DocKey:
    """Composite key of *record*, recomputed through its storage path."""
    return resolve(to_storage_path(record.key, managed_root), managed_root)


def fetch_all(
    paths: list[str],
    fetch_metadata: Callable[[str], ExternalMeta],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> tuple[dict[str, ExternalMeta], dict[str, Exception]]:
    """Fetch metadata for every path once, fanning out over a thread pool.

    Returns ``(results, failures)`` keyed by path. Any exception raised by
    *fetch_metadata* is recorded as that path's failure.
    """
    results: dict[str, ExternalMeta] = {}
    failures: dict[str, Exception] = {}

    def _one(path: str) -> tuple[str, ExternalMeta | None, Exception | None]:
        try:
            return path, fetch_metadata(path), None
        except Exception as exc:  # noqa: BLE001 - reported per document
            return path, None, exc

    if max_workers <= 1 or len(paths) <= 1:
        outcomes = [_one(path) for path in paths]
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(paths))) as executor:
            outcomes = list(executor.map(_one, paths))

    for path, meta, exc in outcomes:
        if exc is not None:
            failures[path] = exc
        elif meta is None:
            failures[path] = ExternalLookupError(path, "no metadata returned")
        else:
            results[path] = meta
    return results, failures


def reconcile(
    snapshot: Snapshot,
    changes: ChangeSet,
    new_anchor: str,
    fetch_metadata: Callable[[str], ExternalMeta],
    *,
    read_source: Callable[[str], str],
    managed_root: str = DEFAULT_MANAGED_ROOT,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> ReconcileResult:
    """Produce the snapshot anchored at *new_anchor*.

    Parameters
    ----------
    snapshot:
        Previous catalog. Not modified.
    changes:
        Paths changed between ``snapshot.commit`` and *new_anchor*.
    new_anchor:
        Revision the returned snapshot reflects.
    fetch_metadata:
        Returns the last-change timestamp and author of a path. Called once
        per distinct updated path, possibly from worker threads.
    read_source:
        Returns the current text of a storage path.

    Returns
    -------
    ReconcileResult
        The new snapshot, counts, and the per-document errors. A document
        that fails keeps its previous record, if it had one.
    """
    if snapshot.commit == new_anchor:
        logger.info("Snapshot already at %s", new_anchor[:7])
        return ReconcileResult(snapshot=snapshot, unchanged=True)

    result = ReconcileResult(snapshot=snapshot)
    normalized = normalize_changes(changes)

    records: dict[DocKey, DocumentRecord] = {}
    for record in snapshot.documents:
        try:
            key = record_key(record, managed_root)
        except InvalidPathError:
            key = record.key
        records[key] = record

    # Removals.
    for path in normalized.removed:
        try:
            key = resolve(path, managed_root)
        except InvalidPathError as exc:
            result.errors.append(FailedDocument(path, exc))
            continue
        if records.pop(key, None) is not None:
            result.removed += 1
    logger.info("%d/%d documents removed", result.removed, len(normalized.removed))

    # Resolve keys before any external round-trip.
    pending: list[tuple[str, DocKey]] = []
    for path in normalized.updated:
        try:
            pending.append((path, resolve(path, managed_root)))
        except InvalidPathError as exc:
            result.errors.append(FailedDocument(path, exc))

    metadata, failures = fetch_all(
        [path for path, _ in pending], fetch_metadata, max_workers=max_workers
    )

    # Creations and updates.
    for path, key in pending:
        if path in failures:
            result.errors.append(FailedDocument(path, failures[path]))
            continue

        prior = records.get(key)
        try:
            text = read_source(path)
            record = merge_record(
                path, text, prior, metadata[path], managed_root=managed_root
            )
        except (DocumentError, OSError, UnicodeDecodeError) as exc:
            result.errors.append(FailedDocument(path, exc))
            continue

        records[key] = record
        if prior is None:
            result.created += 1
        else:
            result.updated += 1

    logger.info("%d documents updated, %d created", result.updated, result.created)
    for error in result.errors:
        logger.warning("%s: %s (%s)", error.path, error.reason, error.kind)

    result.snapshot = Snapshot(
        commit=new_anchor,
        documents=sort_documents(list(records.values())),
    )
    return result
