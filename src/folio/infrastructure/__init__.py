"""Infrastructure domain: git, metadata services, coordination state, and publishing.

These are the I/O edges of a run. The catalog domain only sees them through
plain callables (``history_diff``, ``fetch_metadata``, ``read_source``).
"""

from folio.infrastructure.coordination import CoordinationState, load_coordination_state
from folio.infrastructure.git_history import (
    EMPTY_TREE,
    GitLastModified,
    head_revision,
    history_diff,
)
from folio.infrastructure.lock import single_flight
from folio.infrastructure.metadata import (
    GitHubLastModified,
    SyntheticMetadata,
    build_metadata_fetcher,
)
from folio.infrastructure.publish import publish_snapshot, trigger_build

__all__ = [
    "EMPTY_TREE",
    "CoordinationState",
    "GitHubLastModified",
    "GitLastModified",
    "SyntheticMetadata",
    "build_metadata_fetcher",
    "head_revision",
    "history_diff",
    "load_coordination_state",
    "publish_snapshot",
    "single_flight",
    "trigger_build",
]
