"""Tests for folio.catalog.merge: field precedence and record building."""

from __future__ import annotations

import pytest

from folio.catalog.merge import FIELD_PRECEDENCE, ExternalMeta, merge_fields, merge_record
from folio.catalog.records import DocumentRecord
from folio.errors import FrontMatterParseError, InvalidPathError

_EXTERNAL = ExternalMeta(timestamp="2023-01-01T00:00:00Z", author="Y")


def _prior(**overrides: object) -> DocumentRecord:
    fields: dict[str, object] = {
        "id": "a",
        "lang": "en",
        "content": "/a",
        "title": "Old",
        "author": "X",
        "created": "2020-01-01",
        "modified": "2020-01-01",
    }
    fields.update(overrides)
    return DocumentRecord(**fields)  # type: ignore[arg-type]


class TestMergeFields:
    def test_every_record_field_has_a_rule(self) -> None:
        assert set(FIELD_PRECEDENCE) == {
            "id",
            "lang",
            "content",
            "title",
            "description",
            "tags",
            "author",
            "created",
            "modified",
        }

    def test_identity_beats_embedded(self) -> None:
        merged = merge_fields(
            identity={"id": "a", "lang": "en", "content": "/a"},
            baseline={},
            external={},
            embedded={"id": "evil", "lang": "fr", "content": "/elsewhere"},
            prior={},
        )
        assert (merged["id"], merged["lang"], merged["content"]) == ("a", "en", "/a")

    def test_created_prior_beats_embedded_and_external(self) -> None:
        merged = merge_fields(
            identity={},
            baseline={},
            external={"created": "2023"},
            embedded={"created": "2022"},
            prior={"created": "2020"},
        )
        assert merged["created"] == "2020"

    def test_created_embedded_beats_external_without_prior(self) -> None:
        merged = merge_fields(
            identity={},
            baseline={},
            external={"created": "2023"},
            embedded={"created": "2022"},
            prior={},
        )
        assert merged["created"] == "2022"

    def test_embedded_beats_external_beats_baseline(self) -> None:
        merged = merge_fields(
            identity={},
            baseline={"title": "a"},
            external={"author": "Y"},
            embedded={"author": "Owner"},
            prior={},
        )
        assert merged["author"] == "Owner"
        assert merged["title"] == "a"

    def test_unknown_embedded_keys_carried(self) -> None:
        merged = merge_fields({}, {}, {}, {"draft": True}, {})
        assert merged["draft"] is True

    def test_inputs_not_modified(self) -> None:
        embedded = {"title": "T"}
        merge_fields({"id": "a"}, {"title": "a"}, {}, embedded, {})
        assert embedded == {"title": "T"}


class TestMergeRecord:
    def test_update_scenario_preserves_created(self) -> None:
        record = merge_record("content/en/a.md", '---\ntitle: "New"\n---\nBody', _prior(), _EXTERNAL)

        assert record.title == "New"
        assert record.author == "Y"
        assert record.created == "2020-01-01"
        assert record.modified == "2023-01-01T00:00:00Z"

    def test_embedded_author_overrides_external(self) -> None:
        text = "---\ntitle: New\nauthor: Owner\n---\n"
        record = merge_record("content/en/a.md", text, _prior(), _EXTERNAL)
        assert record.author == "Owner"

    def test_embedded_created_ignored_on_update(self) -> None:
        text = "---\ncreated: 2021-06-01\n---\n"
        record = merge_record("content/en/a.md", text, _prior(), _EXTERNAL)
        assert record.created == "2020-01-01"

    def test_created_stable_across_two_updates(self) -> None:
        first = merge_record("content/en/a.md", "Body", None, _EXTERNAL)
        later = ExternalMeta(timestamp="2024-05-05T00:00:00Z", author="Z")
        second = merge_record(
            "content/en/a.md", "---\ncreated: 1999-01-01\n---\n", first, later
        )
        assert second.created == first.created == "2023-01-01T00:00:00Z"
        assert second.modified == "2024-05-05T00:00:00Z"

    def test_no_front_matter_uses_baseline(self) -> None:
        record = merge_record("content/en/blog/hello.md", "# Hello\n", None, _EXTERNAL)

        assert record.id == "hello"
        assert record.title == "hello"
        assert record.description == ""
        assert record.tags == ""
        assert record.author == "Y"
        assert record.created == record.modified == "2023-01-01T00:00:00Z"

    def test_identity_from_storage_path(self) -> None:
        text = "---\nid: other\nlang: fr\ncontent: /nope\n---\n"
        record = merge_record("content/en/blog/index.md", text, None, _EXTERNAL)
        assert (record.id, record.lang, record.content) == ("blog", "en", "/blog/")

    def test_extra_front_matter_kept(self) -> None:
        text = "---\ncover: img.png\ndraft: false\n---\n"
        record = merge_record("content/en/a.md", text, None, _EXTERNAL)
        assert record.extra == {"cover": "img.png", "draft": False}

    def test_malformed_front_matter_raises(self) -> None:
        with pytest.raises(FrontMatterParseError):
            merge_record("content/en/a.md", "---\ntitle: New\n", None, _EXTERNAL)

    def test_invalid_path_raises(self) -> None:
        with pytest.raises(InvalidPathError):
            merge_record("content/a.md", "Body", None, _EXTERNAL)
