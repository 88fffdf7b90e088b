"""Patch artifact: changed routes of the canonical collection."""

# folio:domain=catalog

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from folio.catalog.changes import ChangeSet, normalize_changes
from folio.catalog.identity import DEFAULT_MANAGED_ROOT, resolve
from folio.catalog.records import write_json_atomic
from folio.errors import InvalidPathError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE_FILTER = "content/en"


@dataclass(frozen=True)
class Patch:
    """Logical content paths to refresh and to drop downstream."""

    update: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {"update": list(self.update), "remove": list(self.remove)}


def _routes(paths: list[str], managed_root: str, namespace_filter: str) -> list[str]:
    prefix = namespace_filter.strip("/") + "/"
    routes: list[str] = []
    for path in paths:
        if not path.startswith(prefix):
            continue
        try:
            route = resolve(path, managed_root).content
        except InvalidPathError as exc:
            logger.warning("Skipping %s in patch: %s", path, exc.reason)
            continue
        if route not in routes:
            routes.append(route)
    return routes


def build_patch(
    changes: ChangeSet,
    *,
    managed_root: str = DEFAULT_MANAGED_ROOT,
    namespace_filter: str = DEFAULT_NAMESPACE_FILTER,
) -> Patch:
    """Restrict *changes* to *namespace_filter*, expressed as content paths."""
    normalized = normalize_changes(changes)
    return Patch(
        update=_routes(normalized.updated, managed_root, namespace_filter),
        remove=_routes(normalized.removed, managed_root, namespace_filter),
    )


def write_patch(path: Path, patch: Patch) -> None:
    """Write ``patch.json``, replacing any previous one."""
    write_json_atomic(path, patch.to_dict())
