# tests/unit/vfs/test_paths.py — v1
"""Tests for vfs/paths.py — normalization, lookup and the resolution chain."""

from __future__ import annotations

import pytest

from wispview.core.models import DirectoryNode, FileEntry
from wispview.vfs.paths import (
    DirectoryListing,
    FileLookup,
    count_directories,
    count_files,
    find_directory,
    get_index_for_path,
    is_directory,
    is_index_path,
    lookup,
    lookup_index,
    normalize_path,
    resolve,
)


@pytest.fixture
def tree() -> DirectoryNode:
    return DirectoryNode(
        files={
            "index.html": FileEntry(cid="c-index", mime_type="text/html"),
            "about.html": FileEntry(cid="c-about"),
            "notes": FileEntry(cid="c-notes", mime_type="text/plain"),
        },
        dirs={
            "blog": DirectoryNode(
                files={"index.htm": FileEntry(cid="c-blog-index")},
                dirs={"2024": DirectoryNode(files={"post.html": FileEntry(cid="c-post")})},
            ),
            "assets": DirectoryNode(
                files={"b.js": FileEntry(cid="c-b"), "a.css": FileEntry(cid="c-a")},
                dirs={"zeta": DirectoryNode(), "alpha": DirectoryNode()},
            ),
        },
    )


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("", ""),
            ("/", ""),
            ("/a/b/", "a/b"),
            ("a//b", "a/b"),
            ("./a/./b", "a/b"),
            ("a/../b", "b"),
            ("../../a", "a"),
            ("/a/b/../../..", ""),
            ("/page.html?x=1#frag", "page.html"),
            ("/x#a?b", "x"),
        ],
    )
    def test_cases(self, raw, expected):
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize("raw", ["/a/../b/./c//", "../x?y", "/", "a/b/c", "./../.."])
    def test_idempotent(self, raw):
        once = normalize_path(raw)
        assert normalize_path(once) == once


class TestLookup:
    def test_root_is_listing(self, tree):
        found = lookup(tree, "/")
        assert isinstance(found, DirectoryListing)
        assert found.path == ""

    def test_empty_tree_root(self):
        found = lookup(DirectoryNode(), "")
        assert isinstance(found, DirectoryListing)
        assert found.files == {}
        assert found.dirs == []

    def test_file(self, tree):
        found = lookup(tree, "/blog/2024/post.html")
        assert found == FileLookup(cid="c-post", mime_type="text/html", path="blog/2024/post.html")

    def test_file_mime_inferred(self, tree):
        assert lookup(tree, "about.html").mime_type == "text/html"

    def test_file_mime_declared(self, tree):
        assert lookup(tree, "notes").mime_type == "text/plain"

    def test_directory_listing_sorted(self, tree):
        found = lookup(tree, "assets/")
        assert isinstance(found, DirectoryListing)
        assert found.dirs == ["alpha", "zeta"]
        assert set(found.files) == {"a.css", "b.js"}

    def test_missing(self, tree):
        assert lookup(tree, "nope.html") is None
        assert lookup(tree, "nope/x.html") is None

    def test_file_not_traversed_as_directory(self, tree):
        assert lookup(tree, "notes/x") is None


class TestIndex:
    def test_root_index(self, tree):
        assert lookup_index(tree, "").cid == "c-index"

    def test_htm_index(self, tree):
        found = lookup_index(tree, "blog")
        assert found.cid == "c-blog-index"
        assert found.path == "blog/index.htm"

    def test_no_index(self, tree):
        assert lookup_index(tree, "assets") is None

    def test_not_a_directory(self, tree):
        assert lookup_index(tree, "about.html") is None

    def test_index_path_helpers(self):
        assert is_index_path("/index.html")
        assert not is_index_path("blog/index.html")
        assert get_index_for_path("/blog/") == "blog/index.html"
        assert get_index_for_path("/") == "index.html"


class TestResolve:
    def test_direct_file(self, tree):
        res = resolve(tree, "/about.html")
        assert res.kind == "file"
        assert res.file.cid == "c-about"

    def test_root_serves_index(self, tree):
        res = resolve(tree, "/")
        assert res.kind == "file"
        assert res.file.cid == "c-index"

    def test_directory_serves_index(self, tree):
        assert resolve(tree, "/blog/").file.cid == "c-blog-index"

    def test_directory_without_index_lists(self, tree):
        res = resolve(tree, "/assets")
        assert res.kind == "listing"
        assert res.listing.path == "assets"

    def test_html_extension_fallback(self, tree):
        res = resolve(tree, "/about")
        assert res.kind == "file"
        assert res.file.cid == "c-about"

    def test_html_fallback_nested(self, tree):
        assert resolve(tree, "/blog/2024/post").file.cid == "c-post"

    def test_directory_beats_html_fallback(self):
        t = DirectoryNode(
            files={"docs.html": FileEntry(cid="c-docs-page")},
            dirs={"docs": DirectoryNode(files={"index.html": FileEntry(cid="c-docs-index")})},
        )
        assert resolve(t, "/docs").file.cid == "c-docs-index"

    def test_not_found(self, tree):
        res = resolve(tree, "/missing")
        assert res.kind == "not_found"
        assert res.file is None
        assert res.listing is None

    def test_empty_tree_root_lists(self):
        assert resolve(DirectoryNode(), "/").kind == "listing"

    def test_query_ignored(self, tree):
        assert resolve(tree, "/about.html?utm=1").file.cid == "c-about"


class TestHelpers:
    def test_find_directory(self, tree):
        assert find_directory(tree, "blog/2024") is tree.dirs["blog"].dirs["2024"]
        assert find_directory(tree, "about.html") is None

    def test_is_directory(self, tree):
        assert is_directory(tree, "/assets/alpha/")
        assert not is_directory(tree, "notes")

    def test_counts(self, tree):
        assert count_files(tree) == 7
        assert count_directories(tree) == 5
