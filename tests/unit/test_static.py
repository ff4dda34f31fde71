"""
Unit tests for the static file handler.
"""

import os
from pathlib import Path

import pytest

from rawhttp.handlers.static import StaticFileHandler
from rawhttp.http.request import Request


def get(path: str) -> Request:
    return Request(method="GET", path=path)


@pytest.fixture
def site(document_root: Path) -> Path:
    """A small document root with a few files."""
    (document_root / "hello.txt").write_text("Hello, World!\n")
    (document_root / "index.html").write_text("<!DOCTYPE html><html><body>Home</body></html>")
    (document_root / "css").mkdir()
    (document_root / "css" / "site.css").write_text("body { color: red; }")
    (document_root / "blob").write_bytes(b"\x00\x01\x02\x03")
    return document_root


@pytest.fixture
def handler(site: Path) -> StaticFileHandler:
    return StaticFileHandler(str(site))


class TestStaticFileHandler:

    def test_serves_text_file(self, handler):
        response = handler.handle(get("/hello.txt"))

        assert response.status_code == 200
        assert response.status_text == "OK"
        assert response.body == b"Hello, World!\n"
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"

    def test_content_type_sniffed_not_from_extension(self, handler):
        assert handler.handle(get("/index.html")).content_type == "text/html; charset=utf-8"
        assert handler.handle(get("/blob")).content_type == "application/octet-stream"
        # CSS has no signature, so it is plain text
        assert handler.handle(get("/css/site.css")).content_type == "text/plain; charset=utf-8"

    def test_nested_path(self, handler):
        response = handler.handle(get("/css/site.css"))
        assert response.body == b"body { color: red; }"

    def test_missing_file(self, handler):
        response = handler.handle(get("/missing.txt"))

        assert response.status_code == 404
        assert response.status_text == "Error"
        assert response.headers["Content-Type"] == "text/plain"
        assert response.body == b"File Doesn't Exist"

    def test_missing_file_in_empty_root(self, document_root):
        response = StaticFileHandler(document_root).handle(get("/missing.txt"))

        assert response.status_code == 404
        assert response.body == b"File Doesn't Exist"

    @pytest.mark.parametrize("path", ["/", "/css", "/css/"])
    def test_directory_is_not_a_file(self, handler, path):
        assert handler.handle(get(path)).status_code == 404

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "HEAD", "get"])
    def test_non_get_not_implemented(self, handler, method):
        response = handler.handle(Request(method=method, path="/hello.txt"))

        assert response.status_code == 500
        assert response.body == b"Not Implemented Yet!"

    def test_query_string_is_part_of_name(self, handler):
        assert handler.handle(get("/hello.txt?v=1")).status_code == 404

    def test_path_not_percent_decoded(self, site, handler):
        (site / "a%20b.txt").write_text("literal")
        assert handler.handle(get("/a%20b.txt")).body == b"literal"

    def test_non_ascii_file_name(self, site, handler):
        (site / "café.txt").write_text("hello")

        response = handler.handle(get("/café.txt"))

        assert response.status_code == 200
        assert response.body == b"hello"

    def test_missing_root_is_404(self, tmp_path):
        handler = StaticFileHandler(tmp_path / "does-not-exist")
        assert handler.handle(get("/anything")).status_code == 404

    def test_nul_byte_in_path(self, handler):
        assert handler.handle(get("/hello.txt\x00.png")).status_code == 404

    @pytest.mark.skipif(os.geteuid() == 0 if hasattr(os, "geteuid") else True,
                        reason="needs a non-root POSIX user for permission errors")
    def test_unreadable_file(self, site, handler):
        secret = site / "secret.txt"
        secret.write_text("nope")
        secret.chmod(0)
        try:
            response = handler.handle(get("/secret.txt"))
        finally:
            secret.chmod(0o644)

        assert response.status_code == 500
        assert response.body == b"Error reading file"

    def test_read_error(self, handler, monkeypatch):
        def broken_read_bytes(self):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(Path, "read_bytes", broken_read_bytes)
        response = handler.handle(get("/hello.txt"))

        assert response.status_code == 500
        assert response.body == b"Error reading file"


class TestPathTraversal:
    """Requests must never reach files outside the document root."""

    @pytest.fixture
    def outside(self, tmp_path: Path) -> Path:
        secret = tmp_path / "secret.txt"
        secret.write_text("top secret")
        return secret

    @pytest.mark.parametrize("path", [
        "/../secret.txt",
        "/css/../../secret.txt",
        "/../../../../../../etc/passwd",
        "../secret.txt",
    ])
    def test_parent_references_blocked(self, handler, outside, path):
        response = handler.handle(get(path))

        assert response.status_code == 404
        assert b"top secret" not in response.body

    def test_dot_dot_inside_root_allowed(self, handler):
        response = handler.handle(get("/css/../hello.txt"))
        assert response.status_code == 200

    def test_double_slash_stays_in_root(self, handler):
        assert handler.handle(get("//hello.txt")).status_code == 200

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlink_out_of_root_blocked(self, site, handler, outside):
        (site / "link.txt").symlink_to(outside)
        assert handler.handle(get("/link.txt")).status_code == 404

    def test_resolve(self, site, handler):
        assert handler.resolve("/hello.txt") == (site / "hello.txt").resolve()
        assert handler.resolve("/../secret.txt") is None
