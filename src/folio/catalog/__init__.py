"""Catalog domain: identity, front matter, merge, change sets, and reconciliation."""

from folio.catalog.changes import ChangeSet, FileChange, classify_changes, compute_change_set
from folio.catalog.frontmatter import extract_front_matter, parse_front_matter
from folio.catalog.identity import DocKey, resolve, to_storage_path
from folio.catalog.merge import ExternalMeta, merge_record
from folio.catalog.patch import Patch, build_patch, write_patch
from folio.catalog.reconcile import FailedDocument, ReconcileResult, reconcile
from folio.catalog.records import DocumentRecord, Snapshot, load_snapshot, save_snapshot

__all__ = [
    "ChangeSet",
    "DocKey",
    "DocumentRecord",
    "ExternalMeta",
    "FailedDocument",
    "FileChange",
    "Patch",
    "ReconcileResult",
    "Snapshot",
    "build_patch",
    "classify_changes",
    "compute_change_set",
    "extract_front_matter",
    "load_snapshot",
    "merge_record",
    "parse_front_matter",
    "reconcile",
    "resolve",
    "save_snapshot",
    "to_storage_path",
    "write_patch",
]
