"""
Tests for the site writer: directory tree and optional zip mirror.
"""

import zipfile

import pytest

from godoc_static.errors import OutputError
from godoc_static.output import SiteWriter


def test_writes_nested_files(tmp_path):
    with SiteWriter(tmp_path / "out") as w:
        w.write("src/example.com/x", "x.go.html", b"<html/>")
        w.write("", "index.html", "<p>café</p>")
    assert (tmp_path / "out/src/example.com/x/x.go.html").read_bytes() == b"<html/>"
    assert (tmp_path / "out/index.html").read_text(encoding="utf-8") == "<p>café</p>"
    assert not any(p.suffix == ".zip" for p in (tmp_path / "out").iterdir())


def test_zip_mirrors_files(tmp_path):
    with SiteWriter(tmp_path, "docs.zip") as w:
        w.write("lib", "style.css", "body{}")
        w.write("x", "index.html", "<html/>")
    with zipfile.ZipFile(tmp_path / "docs.zip") as zf:
        assert sorted(zf.namelist()) == ["lib/style.css", "x/index.html"]
        assert zf.read("lib/style.css") == b"body{}"


def test_write_failure(tmp_path):
    (tmp_path / "blocker").write_text("a file, not a directory")
    with SiteWriter(tmp_path) as w:
        with pytest.raises(OutputError, match="failed to write"):
            w.write("blocker", "index.html", "x")
