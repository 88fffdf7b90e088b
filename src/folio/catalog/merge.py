"""Metadata merge: combine storage identity, commit metadata, and front matter.

Every record field is resolved through :data:`FIELD_PRECEDENCE`, an ordered
list of sources per field. The first source that provides a value wins.

| Field                 | Sources (highest first)         |
|-----------------------|---------------------------------|
| id, lang, content     | identity                        |
| created               | prior, embedded, external       |
| modified, author      | embedded, external              |
| title                 | embedded, baseline              |
| description, tags     | embedded, baseline              |
| any other embedded key| embedded                        |
"""

# folio:domain=catalog

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from folio.catalog.frontmatter import parse_front_matter
from folio.catalog.identity import DEFAULT_MANAGED_ROOT, doc_id, resolve
from folio.catalog.records import RECORD_FIELDS, DocumentRecord

IDENTITY = "identity"
PRIOR = "prior"
EMBEDDED = "embedded"
EXTERNAL = "external"
BASELINE = "baseline"

FIELD_PRECEDENCE: dict[str, tuple[str, ...]] = {
    "id": (IDENTITY,),
    "lang": (IDENTITY,),
    "content": (IDENTITY,),
    "created": (PRIOR, EMBEDDED, EXTERNAL),
    "modified": (EMBEDDED, EXTERNAL),
    "author": (EMBEDDED, EXTERNAL),
    "title": (EMBEDDED, BASELINE),
    "description": (EMBEDDED, BASELINE),
    "tags": (EMBEDDED, BASELINE),
}


@dataclass(frozen=True)
class ExternalMeta:
    """Last-change metadata of a path, as reported by the history service."""

    timestamp: str
    author: str


def merge_fields(
    identity: dict[str, Any],
    baseline: dict[str, Any],
    external: dict[str, Any],
    embedded: dict[str, Any],
    prior: dict[str, Any],
) -> dict[str, Any]:
    """Resolve every field from its highest-precedence source.

    Pure function: the inputs are not modified. A source "provides" a field
    when the key is present in its mapping, even with an empty value.
    """
    sources = {
        IDENTITY: identity,
        PRIOR: prior,
        EMBEDDED: embedded,
        EXTERNAL: external,
        BASELINE: baseline,
    }

    merged: dict[str, Any] = {}
    for name, order in FIELD_PRECEDENCE.items():
        for source in order:
            if name in sources[source]:
                merged[name] = sources[source][name]
                break
        else:
            merged[name] = ""

    for name, value in embedded.items():
        if name not in FIELD_PRECEDENCE:
            merged[name] = value

    return merged


def merge_record(
    storage_path: str,
    raw_text: str,
    prior: DocumentRecord | None,
    external: ExternalMeta,
    *,
    managed_root: str = DEFAULT_MANAGED_ROOT,
) -> DocumentRecord:
    """Build the catalog record for *storage_path*.

    Parameters
    ----------
    storage_path:
        Repository-relative path, e.g. ``content/en/blog/post.md``.
    raw_text:
        Current document source.
    prior:
        Existing record with the same composite key, if any. Only its
        ``created`` value is carried over.
    external:
        Commit timestamp and author of the path's last change.

    Raises
    ------
    InvalidPathError
        If *storage_path* does not resolve.
    FrontMatterParseError
        If the front matter is unclosed or malformed.
    """
    key = resolve(storage_path, managed_root)
    identifier = doc_id(key.content)

    identity = {"id": identifier, "lang": key.lang, "content": key.content}
    baseline = {"title": identifier, "description": "", "tags": ""}
    external_fields = {
        "author": external.author,
        "created": external.timestamp,
        "modified": external.timestamp,
    }
    embedded = parse_front_matter(raw_text, storage_path) or {}
    prior_fields = {"created": prior.created} if prior is not None else {}

    merged = merge_fields(identity, baseline, external_fields, embedded, prior_fields)
    return DocumentRecord(
        **{name: merged.pop(name) for name in RECORD_FIELDS},
        extra=merged,
    )
