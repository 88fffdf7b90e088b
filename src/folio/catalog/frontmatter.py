"""Front-matter extraction: leading ``---`` delimited YAML block."""

# folio:domain=catalog

from __future__ import annotations

import datetime as dt
from typing import Any

import yaml

from folio.errors import FrontMatterParseError

# Marker line opening and closing the block.
DELIMITER = "---"


def _is_delimiter(line: str) -> bool:
    return line.rstrip() == DELIMITER


def extract_front_matter(text: str, path: str = "") -> str | None:
    """Return the raw inner text of the leading front-matter block.

    Only blank lines may precede the opening marker. Returns ``None`` when
    the first non-blank line is not a marker; the rest of the document is
    never searched.

    Raises
    ------
    FrontMatterParseError
        If the opening marker has no closing marker.
    """
    lines = [line.rstrip("\r") for line in text.split("\n")]
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1

    if start >= len(lines) or not _is_delimiter(lines[start]):
        return None

    for end in range(start + 1, len(lines)):
        if _is_delimiter(lines[end]):
            return "\n".join(lines[start + 1 : end])

    raise FrontMatterParseError(path, "unclosed front-matter delimiter")


def _stringify_dates(value: Any) -> Any:
    """Convert YAML date/datetime scalars to ISO 8601 strings, recursively.

    Timezone-aware datetimes are rendered in UTC as ``YYYY-MM-DDTHH:MM:SSZ``,
    the form used for commit timestamps.
    """
    if isinstance(value, dt.datetime) and value.tzinfo is not None:
        return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    if isinstance(value, dt.date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _stringify_dates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_dates(v) for v in value]
    return value


def parse_front_matter(text: str, path: str = "") -> dict[str, Any] | None:
    """Parse the leading front-matter block of *text* into a mapping.

    Returns ``None`` if the document has no front matter and ``{}`` for an
    empty block.

    Raises
    ------
    FrontMatterParseError
        On an unclosed block, invalid YAML, or a body that is not a mapping.
    """
    block = extract_front_matter(text, path)
    if block is None:
        return None

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FrontMatterParseError(path, f"invalid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"front matter must be a mapping, got {type(data).__name__}"
        raise FrontMatterParseError(path, msg)

    result: dict[str, Any] = _stringify_dates(data)
    return result
