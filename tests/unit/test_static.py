"""
Unit tests for static file resolution.
"""

from pathlib import Path

import pytest

from tinyserve.handlers.static import StaticFileResolver, sanitize_path
from tinyserve.http.response import HTTPResponse


class TestSanitizePath:
    """Tests for sanitize_path()."""

    def test_removes_dotdot(self):
        assert sanitize_path("/../../etc/passwd") == "//etc/passwd"

    def test_removes_every_occurrence(self):
        assert sanitize_path("/a/..../b") == "/a//b"
        assert sanitize_path("/...") == "/."

    def test_normal_paths_unchanged(self):
        assert sanitize_path("/a/b.txt") == "/a/b.txt"
        assert sanitize_path("/file.name.txt") == "/file.name.txt"


class TestCandidatePath:
    """Tests for StaticFileResolver.candidate_path()."""

    def test_file(self, public_root: Path):
        resolver = StaticFileResolver(public_root)
        assert resolver.candidate_path("/a.txt") == public_root / "a.txt"

    def test_index_for_directories(self, public_root: Path):
        resolver = StaticFileResolver(public_root)

        assert resolver.candidate_path("/") == public_root / "index.html"
        assert resolver.candidate_path("") == public_root / "index.html"
        assert resolver.candidate_path("/docs/") == public_root / "docs" / "index.html"

    def test_traversal_stays_under_root(self, public_root: Path):
        resolver = StaticFileResolver(public_root)
        candidate = resolver.candidate_path("/../../etc/passwd")

        assert candidate == public_root / "etc" / "passwd"
        assert public_root in candidate.parents


class TestServe:
    """Tests for StaticFileResolver.serve()."""

    def test_serves_file(self, public_root: Path):
        response = HTTPResponse()
        assert StaticFileResolver(public_root).serve("/a.txt", response) is True

        assert response.status == 200
        assert response.body == b"hello from a.txt\n"
        assert response.get_header("Content-Type") == "text/plain"
        assert response.get_header("Content-Length") == str(len(b"hello from a.txt\n"))

    def test_serves_index(self, public_root: Path):
        response = HTTPResponse()
        assert StaticFileResolver(public_root).serve("/", response) is True
        assert response.body == b"<h1>Home</h1>"
        assert response.get_header("Content-Type") == "text/html"

    def test_binary_file(self, public_root: Path):
        response = HTTPResponse()
        assert StaticFileResolver(public_root).serve("/blob.bin", response) is True

        assert response.body == bytes(range(256))
        assert response.get_header("Content-Type") == "application/octet-stream"

    @pytest.mark.parametrize("path", ["/missing.txt", "/docs", "/../../etc/passwd"])
    def test_no_file(self, public_root: Path, path):
        response = HTTPResponse()
        assert StaticFileResolver(public_root).serve(path, response) is False

        assert response.body == b""
        assert not response.has_header("Content-Type")

    def test_directory_without_index(self, public_root: Path):
        (public_root / "empty").mkdir()
        response = HTTPResponse()

        assert StaticFileResolver(public_root).serve("/empty/", response) is False

    def test_unrepresentable_path(self, public_root: Path):
        response = HTTPResponse()
        assert StaticFileResolver(public_root).serve("/bad\x00name", response) is False

    def test_missing_root(self, tmp_path: Path):
        response = HTTPResponse()
        resolver = StaticFileResolver(tmp_path / "nope")

        assert resolver.serve("/a.txt", response) is False
