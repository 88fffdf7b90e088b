"""Change sets: classify a revision-to-revision history diff."""

# folio:domain=catalog

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from folio.catalog.identity import DEFAULT_MANAGED_ROOT

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

ADDED = "A"
MODIFIED = "M"
DELETED = "D"
RENAMED = "R"
COPIED = "C"
TYPE_CHANGED = "T"


@dataclass(frozen=True)
class FileChange:
    """One entry of a history diff.

    ``kind`` is a git status letter; ``old_path`` is set for renames and
    copies.
    """

    kind: str
    path: str
    old_path: str | None = None


@dataclass(frozen=True)
class ChangeSet:
    """Paths added-or-modified and paths removed since an anchor revision."""

    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.updated and not self.removed


def normalize_changes(changes: ChangeSet) -> ChangeSet:
    """Collapse duplicates and apply removal precedence.

    Duplicate entries keep their last occurrence. A path listed in both
    ``updated`` and ``removed`` is only kept in ``removed``.
    """
    removed = list(dict.fromkeys(changes.removed))
    blocked = set(removed)

    last_seen: dict[str, int] = {}
    for position, path in enumerate(changes.updated):
        last_seen[path] = position
    updated = [
        path
        for path, _ in sorted(last_seen.items(), key=lambda item: item[1])
        if path not in blocked
    ]
    return ChangeSet(updated=updated, removed=removed)


def _in_namespace(path: str | None, managed_root: str) -> bool:
    if not path:
        return False
    prefix = managed_root.strip("/") + "/"
    return path.startswith(prefix)


def classify_changes(
    changes: Iterable[FileChange],
    managed_root: str = DEFAULT_MANAGED_ROOT,
) -> ChangeSet:
    """Turn history entries into a normalised :class:`ChangeSet`.

    Added and modified paths are updated, deleted paths removed. A rename
    removes the old path and updates the new one; a copy updates the new
    path. Type changes and unknown kinds are treated as removals. Paths
    outside *managed_root* are dropped.
    """
    updated: list[str] = []
    removed: list[str] = []

    def _update(path: str | None) -> None:
        if path and _in_namespace(path, managed_root):
            updated.append(path)

    def _remove(path: str | None) -> None:
        if path and _in_namespace(path, managed_root):
            removed.append(path)

    for change in changes:
        kind = change.kind[:1].upper()
        if kind in (ADDED, MODIFIED):
            _update(change.path)
        elif kind == DELETED:
            _remove(change.path)
        elif kind == RENAMED:
            _remove(change.old_path)
            _update(change.path)
        elif kind == COPIED:
            _update(change.path)
        else:
            if _in_namespace(change.path, managed_root):
                logger.warning(
                    "Change kind %r for %s treated as removal", change.kind, change.path
                )
            _remove(change.old_path)
            _remove(change.path)

    return normalize_changes(ChangeSet(updated=updated, removed=removed))


def compute_change_set(
    history_diff: Callable[[str], list[FileChange]],
    from_revision: str,
    managed_root: str = DEFAULT_MANAGED_ROOT,
) -> ChangeSet:
    """Query *history_diff* from *from_revision* and classify the result.

    Errors raised by the collaborator propagate unchanged.
    """
    entries = history_diff(from_revision)
    change_set = classify_changes(entries, managed_root)
    logger.info(
        "Diff from %s: %d updated, %d removed under %s/",
        from_revision[:7],
        len(change_set.updated),
        len(change_set.removed),
        managed_root.strip("/"),
    )
    return change_set
