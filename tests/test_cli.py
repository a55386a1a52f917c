"""
Tests for the command line: flags, site text and error reporting.
"""

import pytest

from godoc_static import cli
from godoc_static.errors import ConfigError


def test_defaults():
    args = cli.parse_args(["--destination", "out", "example.com/a", "./mod"])
    assert args.packages == ["example.com/a", "./mod"]
    assert args.listen_address == "localhost:9001"
    assert args.site_name == "Documentation"
    assert args.zip == "docs.zip"
    assert args.timeout == 15.0
    assert args.warm_up == 3.0
    assert not args.link_index


def test_options_from_args(tmp_path):
    desc = tmp_path / "desc.md"
    desc.write_text("# Welcome\n\nSee <em>all</em> packages.\n")
    args = cli.parse_args([
        "--destination", str(tmp_path / "site"), "--site-description", "ignored",
        "--site-description-file", str(desc), "--site-footer", "*Footer*",
        "--exclude", "example.com/a  example.com/b", "--zip", "", "--link-index",
    ])
    opts = cli.options_from_args(args)
    assert opts.destination == tmp_path / "site"
    assert "<h1>Welcome</h1>" in opts.site_description
    assert "<em>all</em>" in opts.site_description
    assert "ignored" not in opts.site_description
    assert opts.site_footer == "<p><em>Footer</em></p>"
    assert opts.excludes == ["example.com/a", "example.com/b"]
    assert opts.zip_name == ""
    assert opts.link_index


def test_destination_required():
    with pytest.raises(ConfigError, match="--destination"):
        cli.options_from_args(cli.parse_args([]))


def test_missing_description_file(tmp_path):
    args = cli.parse_args(["--destination", "out", "--site-description-file", str(tmp_path / "nope.md")])
    with pytest.raises(ConfigError, match="description file"):
        cli.options_from_args(args)


def test_blank_site_text_renders_nothing():
    assert cli.site_text("", "", "footer") == ""
    assert cli.render_markdown("   \n") == ""


def test_markdown_links_bare_urls():
    html = cli.render_markdown("Source at https://go.dev/src and **more**.")
    assert 'href="https://go.dev/src"' in html
    assert "<strong>more</strong>" in html


def test_main_reports_config_errors(capsys):
    assert cli.main([]) == 1
    assert "--destination must be set" in capsys.readouterr().err


def test_main_runs_build(tmp_path, monkeypatch):
    seen = {}

    def fake_run(opts, packages):
        seen["opts"], seen["packages"] = opts, packages

    monkeypatch.setattr(cli, "run", fake_run)
    assert cli.main(["--destination", str(tmp_path), "--site-name", "Go", "example.com/x"]) == 0
    assert seen["packages"] == ["example.com/x"]
    assert seen["opts"].site_name == "Go"
