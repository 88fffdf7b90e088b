"""Tests for folio.catalog.patch: canonical-collection patch artifact."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from folio.catalog.changes import ChangeSet
from folio.catalog.patch import Patch, build_patch, write_patch

if TYPE_CHECKING:
    from pathlib import Path


class TestBuildPatch:
    def test_routes_of_default_collection(self) -> None:
        changes = ChangeSet(
            updated=["content/en/blog/post.md", "content/en/blog/index.md", "content/vi/x.md"],
            removed=["content/en/old.md"],
        )
        patch = build_patch(changes)
        assert patch.update == ["/blog/post", "/blog/"]
        assert patch.remove == ["/old"]

    def test_other_languages_excluded(self) -> None:
        patch = build_patch(ChangeSet(updated=["content/vi/a.md"], removed=["content/ja/b.md"]))
        assert patch == Patch()

    def test_namespace_prefix_is_segment_aligned(self) -> None:
        patch = build_patch(ChangeSet(updated=["content/en-gb/a.md"]))
        assert patch.update == []

    def test_custom_namespace(self) -> None:
        patch = build_patch(
            ChangeSet(updated=["content/vi/a.md"]),
            namespace_filter="content/vi",
        )
        assert patch.update == ["/a"]

    def test_removal_precedence(self) -> None:
        patch = build_patch(
            ChangeSet(updated=["content/en/b.md"], removed=["content/en/b.md"])
        )
        assert patch.update == []
        assert patch.remove == ["/b"]


class TestWritePatch:
    def test_writes_update_and_remove(self, tmp_path: Path) -> None:
        target = tmp_path / "generated" / "patch.json"
        write_patch(target, Patch(update=["/a"], remove=["/b"]))

        data = json.loads(target.read_text(encoding="utf-8"))
        assert data == {"update": ["/a"], "remove": ["/b"]}
        assert list(data) == ["update", "remove"]

    def test_overwrites_previous_patch(self, tmp_path: Path) -> None:
        target = tmp_path / "patch.json"
        write_patch(target, Patch(update=["/a"]))
        write_patch(target, Patch(remove=["/c"]))

        assert json.loads(target.read_text(encoding="utf-8")) == {"update": [], "remove": ["/c"]}
        assert not (tmp_path / "patch.json.tmp").exists()
