"""Command line entry point.

    godoc-static --destination=site [flags] [package-or-path ...]

Starts godoc, copies the documentation of the given packages (every package
`go list ...` knows about when none are given) and writes a static site.
"""

import argparse, logging, signal, sys
from pathlib import Path
from typing import List, Optional

import markdown

from .errors import ConfigError, GodocStaticError
from .golist import GoList
from .packages import resolve
from .pipeline import Options, Site, build

log = logging.getLogger(__name__)

_FMT_MINIMAL = "%(message)s"
_FMT_VERBOSE = "%(asctime)s %(message)s"
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logging(verbose: bool = False) -> None:
    level = logging.INFO if verbose else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FMT_VERBOSE if verbose else _FMT_MINIMAL, datefmt="%H:%M:%S"))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def render_markdown(text: str) -> str:
    # Raw HTML is passed through untouched; bare URLs become links.
    return markdown.markdown(text, extensions=["extra", "sane_lists", "pymdownx.magiclink"]) if text.strip() else ""

def site_text(literal: str, path: str, what: str) -> str:
    """The rendered site description/footer; a file wins over the literal flag."""
    if path:
        try:
            literal = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"failed to read site {what} file {path}: {e}") from e
    return render_markdown(literal or "")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="godoc-static", description="Generate static Go documentation")
    ap.add_argument("packages", nargs="*", help="Import paths or module directories to document")
    ap.add_argument("--listen-address", default="localhost:9001", help="address for godoc to listen on while scraping pages")
    ap.add_argument("--site-name", default="Documentation", help="site name")
    ap.add_argument("--site-description", default="", help="site description (markdown-enabled)")
    ap.add_argument("--site-description-file", default="", help="path to markdown file containing site description")
    ap.add_argument("--site-footer", default="", help="site footer (markdown-enabled)")
    ap.add_argument("--site-footer-file", default="", help="path to markdown file containing site footer")
    ap.add_argument("--destination", default="", help="path to write site HTML")
    ap.add_argument("--zip", default="docs.zip", help="name of site ZIP file (blank to disable)")
    ap.add_argument("--link-index", action="store_true", help="set link targets to index.html instead of folder")
    ap.add_argument("--exclude", default="", help="space separated list of packages to exclude from index")
    ap.add_argument("--timeout", type=float, default=15.0, help="seconds godoc has to serve the package pages")
    ap.add_argument("--warm-up", type=float, default=3.0, help="seconds to give godoc to start before scraping")
    ap.add_argument("--verbose", action="store_true", help="enable verbose logging")
    return ap.parse_args(argv)

def options_from_args(args: argparse.Namespace) -> Options:
    if not args.destination:
        raise ConfigError("--destination must be set")
    if args.timeout <= 0:
        raise ConfigError("--timeout must be positive")
    return Options(
        destination=Path(args.destination),
        listen_address=args.listen_address,
        site_name=args.site_name,
        site_description=site_text(args.site_description, args.site_description_file, "description"),
        site_footer=site_text(args.site_footer, args.site_footer_file, "footer"),
        zip_name=args.zip,
        link_index=bool(args.link_index),
        excludes=args.exclude.split(),
        timeout=args.timeout,
        warm_up=max(0.0, args.warm_up),
    )


def run(opts: Options, packages: List[str], listing: Optional[GoList] = None) -> None:
    listing = listing or GoList()
    resolution = resolve(packages, listing)
    log.info("Documenting %d packages (%d requested)", len(resolution.full), len(resolution.filter))
    with Site(opts, listing=listing) as site:
        build(site, resolution)

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)
    # SIGTERM unwinds like Ctrl-C so Site.__exit__ kills godoc.
    signal.signal(signal.SIGTERM, signal.default_int_handler)
    try:
        run(options_from_args(args), args.packages)
    except GodocStaticError as e:
        print(e, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return 1
    return 0
