"""Document identity: storage path <-> ``(lang, content)`` composite key."""

# folio:domain=catalog

from __future__ import annotations

from typing import NamedTuple

from folio.errors import InvalidPathError

DEFAULT_MANAGED_ROOT = "content"
DEFAULT_EXTENSION = ".md"

# Extensions stripped from the logical path. Kept explicit so that a second
# normalisation of ``a.b`` never strips ``.b``.
DOC_EXTENSIONS = (".md", ".markdown", ".mdx")

INDEX_SEGMENT = "index"


class DocKey(NamedTuple):
    """Composite key identifying one catalog record."""

    lang: str
    content: str


def normalize_content(logical: str) -> str:
    """Normalise a logical path into catalog ``content`` form.

    Adds a leading ``/``, strips the trailing document extension, then one
    trailing ``index`` segment::

        blog/post.md   -> /blog/post
        blog/index.md  -> /blog/
        index.md       -> /

    A stacked extension (``post.md.md``) counts as one, which keeps the
    function idempotent.
    """
    content = logical if logical.startswith("/") else "/" + logical

    stripped = True
    while stripped:
        stripped = False
        for ext in DOC_EXTENSIONS:
            if content.endswith(ext) and not content[: -len(ext)].endswith("/"):
                content = content[: -len(ext)]
                stripped = True
                break

    head, _, last = content.rpartition("/")
    if last == INDEX_SEGMENT:
        content = head + "/"

    return content


def _split(path: str) -> list[str]:
    return path.replace("\\", "/").split("/")


def resolve(storage_path: str, managed_root: str = DEFAULT_MANAGED_ROOT) -> DocKey:
    """Derive the composite key of a storage path.

    Storage paths look like ``<managed_root>/<lang>/<logical path>``.

    Raises
    ------
    InvalidPathError
        If the path is outside *managed_root* or has fewer than two segments
        after it.
    """
    parts = _split(storage_path)
    root_parts = [p for p in _split(managed_root) if p]

    if parts[: len(root_parts)] != root_parts:
        raise InvalidPathError(storage_path, f"not under managed root '{managed_root}'")

    rest = parts[len(root_parts) :]
    if len(rest) < 2:
        raise InvalidPathError(storage_path, "expected <lang>/<path> after managed root")
    if any(not segment for segment in rest):
        raise InvalidPathError(storage_path, "empty path segment")

    lang = rest[0]
    return DocKey(lang=lang, content=normalize_content("/".join(rest[1:])))


def to_storage_path(
    key: DocKey,
    managed_root: str = DEFAULT_MANAGED_ROOT,
    extension: str = DEFAULT_EXTENSION,
) -> str:
    """Inverse of :func:`resolve` for normalised keys.

    ``resolve(to_storage_path(key)) == key`` for every valid key.
    """
    content = key.content.lstrip("/")
    if not content or content.endswith("/"):
        content = f"{content}{INDEX_SEGMENT}"
    root = managed_root.strip("/")
    return f"{root}/{key.lang}/{content}{extension}"


def doc_id(content: str) -> str:
    """Short identifier: the final non-empty segment of *content*."""
    segments = [s for s in content.split("/") if s]
    if not segments:
        return INDEX_SEGMENT
    return segments[-1]
