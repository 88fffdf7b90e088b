"""Exception taxonomy shared by the catalog, collaborators, and pipeline."""

# folio:domain=errors

from __future__ import annotations


class FolioError(Exception):
    """Base class for all folio errors."""


class DocumentError(FolioError):
    """Base class for errors scoped to a single document path."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class InvalidPathError(DocumentError):
    """A storage path does not decompose into ``(lang, content)``."""


class FrontMatterParseError(DocumentError):
    """The embedded front-matter block is unclosed or not a YAML mapping."""


class ExternalLookupError(DocumentError):
    """A history or metadata service call failed or timed out."""


class NotFoundError(ExternalLookupError):
    """The path has no recorded history."""


class CoordinationStateError(FolioError):
    """Build coordination state is missing or malformed."""


class HistoryDiffError(FolioError):
    """Version-control history could not be diffed."""


class SnapshotError(FolioError):
    """The persisted snapshot could not be read."""


class PublishError(FolioError):
    """Publishing artifacts or triggering the build failed."""


class RunLockedError(FolioError):
    """Another run holds the single-flight lock."""
