# tests/unit/vfs/test_mime.py — v1
"""Tests for vfs/mime.py."""

from __future__ import annotations

import pytest

from wispview.vfs.mime import DEFAULT_MIME_TYPE, get_content_type, guess_mime_type, is_text_mime_type


class TestGuessMimeType:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("index.html", "text/html"),
            ("app.MJS", "text/javascript"),
            ("img/logo.png", "image/png"),
            ("font.woff2", "font/woff2"),
            ("style.css?v=3", "text/css"),
            ("page.htm#top", "text/html"),
            ("archive.tar.gz", "application/gzip"),
        ],
    )
    def test_known(self, name, expected):
        assert guess_mime_type(name) == expected

    @pytest.mark.parametrize("name", ["", "README", "dir.d/file", "x.unknownext"])
    def test_default(self, name):
        assert guess_mime_type(name) == DEFAULT_MIME_TYPE


class TestContentType:
    def test_text_gets_charset(self):
        assert get_content_type("text/plain") == "text/plain; charset=utf-8"
        assert get_content_type("application/json") == "application/json; charset=utf-8"

    def test_binary_unchanged(self):
        assert get_content_type("image/png") == "image/png"

    def test_existing_charset_kept(self):
        assert get_content_type("text/html; charset=latin-1") == "text/html; charset=latin-1"

    def test_is_text(self):
        assert is_text_mime_type("image/svg+xml")
        assert not is_text_mime_type("font/woff")
