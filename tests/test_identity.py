"""Tests for folio.catalog.identity: storage path <-> composite key."""

from __future__ import annotations

import pytest

from folio.catalog.identity import DocKey, doc_id, normalize_content, resolve, to_storage_path
from folio.errors import InvalidPathError


class TestResolve:
    def test_simple_document(self) -> None:
        assert resolve("content/en/a.md") == DocKey("en", "/a")

    def test_nested_document(self) -> None:
        assert resolve("content/vi/blog/2020/post.md") == DocKey("vi", "/blog/2020/post")

    def test_index_document(self) -> None:
        assert resolve("content/en/blog/index.md") == DocKey("en", "/blog/")

    def test_language_root_index(self) -> None:
        assert resolve("content/en/index.md") == DocKey("en", "/")

    def test_custom_managed_root(self) -> None:
        assert resolve("site/docs/en/guide.md", "site/docs") == DocKey("en", "/guide")

    def test_only_trailing_index_removed(self) -> None:
        assert resolve("content/en/index/page.md") == DocKey("en", "/index/page")

    @pytest.mark.parametrize(
        "path",
        [
            "content/en",
            "content/a.md",
            "other/en/a.md",
            "contentx/en/a.md",
            "content//a.md",
            "content/en/",
        ],
    )
    def test_invalid_paths(self, path: str) -> None:
        with pytest.raises(InvalidPathError) as exc_info:
            resolve(path)
        assert exc_info.value.path == path


class TestNormalizeContent:
    @pytest.mark.parametrize(
        "logical",
        ["a.md", "blog/index.md", "index.md", "x.md.md", "notes/a.b", "index/index.md", "/"],
    )
    def test_idempotent(self, logical: str) -> None:
        once = normalize_content(logical)
        assert normalize_content(once) == once

    def test_unknown_extension_kept(self) -> None:
        assert normalize_content("notes/data.json") == "/notes/data.json"

    def test_markdown_variants(self) -> None:
        assert normalize_content("a.markdown") == "/a"
        assert normalize_content("a.mdx") == "/a"


class TestToStoragePath:
    @pytest.mark.parametrize(
        "path",
        [
            "content/en/a.md",
            "content/en/blog/post.md",
            "content/en/blog/index.md",
            "content/en/index.md",
        ],
    )
    def test_round_trip_from_path(self, path: str) -> None:
        assert to_storage_path(resolve(path)) == path

    @pytest.mark.parametrize(
        "key",
        [DocKey("en", "/a"), DocKey("en", "/blog/"), DocKey("en", "/"), DocKey("ja", "/x/y")],
    )
    def test_round_trip_from_key(self, key: DocKey) -> None:
        assert resolve(to_storage_path(key)) == key

    def test_extension_normalised(self) -> None:
        key = resolve("content/en/a.markdown")
        assert to_storage_path(key) == "content/en/a.md"


class TestDocId:
    def test_last_segment(self) -> None:
        assert doc_id("/blog/post") == "post"

    def test_index_content(self) -> None:
        assert doc_id("/blog/") == "blog"

    def test_language_root(self) -> None:
        assert doc_id("/") == "index"
