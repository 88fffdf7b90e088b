"""Build coordination state: build hook URL and last published revision."""

# folio:domain=infrastructure

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from folio.errors import CoordinationStateError
from folio.infrastructure.git_history import clean_revision

if TYPE_CHECKING:
    from folio.config import FolioConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoordinationState:
    """Externally persisted state shared with the deploy side."""

    build_trigger_url: str
    last_published_revision: str


def _string_field(fields: dict[str, Any], name: str) -> str:
    try:
        value = fields[name]["stringValue"]
    except (KeyError, TypeError) as exc:
        msg = f"coordination document has no string field '{name}'"
        raise CoordinationStateError(msg) from exc
    return str(value)


def parse_firestore_document(data: Any) -> CoordinationState:
    """Read ``build_url`` and ``generated_commit`` from a Firestore document.

    Raises
    ------
    CoordinationStateError
        If either field is missing, or the revision is empty.
    """
    if not isinstance(data, dict) or not isinstance(data.get("fields"), dict):
        msg = "coordination document has no 'fields'"
        raise CoordinationStateError(msg)

    fields = data["fields"]
    revision = clean_revision(_string_field(fields, "generated_commit"))
    if not revision:
        msg = "coordination document has an empty 'generated_commit'"
        raise CoordinationStateError(msg)
    return CoordinationState(
        build_trigger_url=_string_field(fields, "build_url").strip(),
        last_published_revision=revision,
    )


def _load_remote(url: str, timeout: float) -> CoordinationState:
    try:
        response = httpx.get(url, timeout=timeout)
    except httpx.HTTPError as exc:
        msg = f"Cannot fetch coordination state: {exc}"
        raise CoordinationStateError(msg) from exc

    if response.status_code != 200:
        msg = f"Coordination state request failed with {response.status_code}: {response.text}"
        raise CoordinationStateError(msg)

    try:
        data = response.json()
    except ValueError as exc:
        msg = "Coordination state is not valid JSON"
        raise CoordinationStateError(msg) from exc
    return parse_firestore_document(data)


def _load_local(config: FolioConfig) -> CoordinationState:
    path = config.published_commit_path
    try:
        revision = clean_revision(path.read_text(encoding="utf-8"))
    except OSError as exc:
        msg = f"Cannot read {path}: {exc.strerror or exc}"
        raise CoordinationStateError(msg) from exc

    if not revision:
        msg = f"{path} is empty"
        raise CoordinationStateError(msg)
    return CoordinationState(
        build_trigger_url=config.build_url,
        last_published_revision=revision,
    )


def load_coordination_state(config: FolioConfig) -> CoordinationState:
    """Load state from ``coordination_url`` or the local ``published_commit`` file.

    A configured ``build_url`` takes precedence over the remote one.
    """
    if config.coordination_url:
        state = _load_remote(config.coordination_url, config.timeout)
        if config.build_url:
            state = CoordinationState(config.build_url, state.last_published_revision)
    else:
        state = _load_local(config)

    logger.info("Last published revision: %s", state.last_published_revision[:7])
    return state
