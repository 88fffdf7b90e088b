"""Catalog records and the persisted ``index.json`` snapshot."""

# folio:domain=catalog

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from folio.catalog.identity import DocKey
from folio.errors import SnapshotError

logger = logging.getLogger(__name__)

COMMIT_KEY = "$commit"
DOCUMENTS_KEY = "documents"

# Serialisation order of the known record fields.
RECORD_FIELDS = (
    "id",
    "lang",
    "content",
    "title",
    "description",
    "tags",
    "author",
    "created",
    "modified",
)


@dataclass
class DocumentRecord:
    """One catalog entry.

    ``extra`` holds front-matter keys beyond the known fields; they are
    written to ``index.json`` alongside the known ones.
    """

    id: str
    lang: str
    content: str
    title: Any = ""
    description: Any = ""
    tags: Any = ""
    author: Any = ""
    created: Any = ""
    modified: Any = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> DocKey:
        return DocKey(self.lang, self.content)

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the on-disk shape with a stable key order."""
        data: dict[str, Any] = {name: getattr(self, name) for name in RECORD_FIELDS}
        for name in sorted(self.extra):
            data[name] = self.extra[name]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocumentRecord:
        known = {name: data[name] for name in RECORD_FIELDS if name in data}
        extra = {k: v for k, v in data.items() if k not in RECORD_FIELDS}
        return cls(
            id=str(known.pop("id", "")),
            lang=str(known.pop("lang", "")),
            content=str(known.pop("content", "")),
            extra=extra,
            **known,
        )


@dataclass
class Snapshot:
    """The catalog anchored at the revision it reflects."""

    commit: str
    documents: list[DocumentRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            COMMIT_KEY: self.commit,
            DOCUMENTS_KEY: [doc.to_dict() for doc in self.documents],
        }


def sort_documents(documents: list[DocumentRecord]) -> list[DocumentRecord]:
    """Sort by ``created`` descending; equal timestamps keep their order."""
    return sorted(documents, key=lambda doc: str(doc.created or ""), reverse=True)


def snapshot_from_dict(data: Any, source: str = "<memory>") -> Snapshot:
    """Build a :class:`Snapshot` from decoded JSON.

    Records sharing a composite key are collapsed (the later one wins).

    Raises
    ------
    SnapshotError
        If ``$commit`` or ``documents`` are missing or of the wrong type.
    """
    if not isinstance(data, dict):
        msg = f"{source}: snapshot must be a JSON object"
        raise SnapshotError(msg)

    commit = data.get(COMMIT_KEY)
    if not isinstance(commit, str) or not commit:
        msg = f"{source}: missing '{COMMIT_KEY}'"
        raise SnapshotError(msg)

    raw_docs = data.get(DOCUMENTS_KEY, [])
    if not isinstance(raw_docs, list):
        msg = f"{source}: '{DOCUMENTS_KEY}' must be a list"
        raise SnapshotError(msg)

    by_key: dict[DocKey, DocumentRecord] = {}
    for raw in raw_docs:
        if not isinstance(raw, dict):
            msg = f"{source}: document entries must be objects"
            raise SnapshotError(msg)
        record = DocumentRecord.from_dict(raw)
        if record.key in by_key:
            logger.warning("Duplicate record %s%s in %s; keeping the last", *record.key, source)
            del by_key[record.key]
        by_key[record.key] = record

    return Snapshot(commit=commit.strip(), documents=list(by_key.values()))


def load_snapshot(path: Path, initial_anchor: str) -> Snapshot:
    """Load ``index.json`` or start an empty snapshot at *initial_anchor*."""
    if not path.exists():
        logger.info("No snapshot at %s; starting from %s", path, initial_anchor[:7])
        return Snapshot(commit=initial_anchor)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read snapshot {path}: {exc}"
        raise SnapshotError(msg) from exc

    return snapshot_from_dict(data, source=str(path))


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write *payload* as indented UTF-8 JSON, replacing *path* in one step."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = Path(f"{path}.tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    os.replace(str(tmp), str(path))


def save_snapshot(path: Path, snapshot: Snapshot) -> None:
    """Persist *snapshot* as a whole-file replace."""
    write_json_atomic(path, snapshot.to_dict())
