"""Fetch pipeline: package docs, then source pages, then style.css and the index.

Phase 1 (package docs) runs on one background thread racing a shared
deadline. Phase 2 (sources) runs afterwards on the caller's thread, one
request at a time, under a deadline of its own.
"""

import logging, queue, threading, time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import requests
from bs4 import BeautifulSoup

from .backend import CALL_TIMEOUT, Backend, fetch_body, fetch_document
from .errors import FetchTimeout, GodocStaticError, ListingError, PageError
from .golist import GoList
from .index import build_index
from .output import SiteWriter
from .packages import Resolution, relative_base_path
from .page import ADDITIONAL_CSS, render, retitle, transform

log = logging.getLogger(__name__)


@dataclass
class Options:
    destination: Path
    listen_address: str = "localhost:9001"
    site_name: str = "Documentation"
    site_description: str = ""  # rendered HTML
    site_footer: str = ""       # rendered HTML
    zip_name: str = "docs.zip"
    link_index: bool = False
    excludes: List[str] = field(default_factory=list)
    timeout: float = 15.0
    warm_up: float = 3.0
    call_timeout: float = CALL_TIMEOUT


class Site:
    """Everything one run shares: the godoc process, the HTTP session, the
    output writer and go list. Leaving the `with` block always stops godoc."""

    def __init__(self, options: Options, backend: Optional[Backend] = None, writer: Optional[SiteWriter] = None,
                 session: Optional[requests.Session] = None, listing: Optional[GoList] = None):
        self.options = options
        self.listing = listing or GoList()
        self.backend = backend or Backend(options.listen_address, env=self.listing.env)
        self.writer = writer or SiteWriter(options.destination, options.zip_name)
        self.session = session or requests.Session()

    def __enter__(self):
        self.writer.open()
        return self

    def __exit__(self, *exc):
        try:
            self.backend.stop()
        finally:
            self.writer.close()
            self.session.close()

    def deadline(self) -> float:
        return time.monotonic() + self.options.timeout

    def get_document(self, path: str, deadline: float, cancel: Optional[threading.Event] = None) -> BeautifulSoup:
        return fetch_document(self.session, self.backend.address, path, deadline,
                              self.options.call_timeout, cancel)

    def get_body(self, path: str, deadline: float) -> bytes:
        return fetch_body(self.session, self.backend.address, path, deadline, self.options.call_timeout)


# ----------------- Phase 1: package docs -----------------

def copy_docs(site: Site, resolution: Resolution, deadline: float, cancel: threading.Event) -> None:
    opts = site.options
    for pkg in resolution.full:
        if cancel.is_set():
            return
        log.info("Copying %s documentation...", pkg)
        site.backend.ensure_root(resolution.root(pkg))
        doc = site.get_document(f"/pkg/{pkg}/", deadline, cancel)
        retitle(doc, pkg, opts.site_name)
        transform(doc, relative_base_path(pkg), opts.site_name, opts.link_index)
        site.writer.write(pkg, "index.html", render(doc))

def race_deadline(work: Callable[[float, threading.Event], None], timeout: float, name: str = "worker") -> None:
    """Run work(deadline, cancel) on a background thread and wait for it or the deadline.

    Raises FetchTimeout if the deadline fires first (the worker is told to
    stop and abandoned), and re-raises the worker's error otherwise.
    """
    deadline = time.monotonic() + timeout
    cancel = threading.Event()
    done: "queue.Queue[Optional[Exception]]" = queue.Queue(maxsize=1)

    def run():
        try:
            work(deadline, cancel)
        except Exception as e:
            done.put(e)
        else:
            done.put(None)

    threading.Thread(target=run, name=name, daemon=True).start()
    try:
        err = done.get(timeout=max(0.0, deadline - time.monotonic()))
    except queue.Empty:
        cancel.set()
        raise FetchTimeout(f"godoc failed to respond in time ({timeout:g}s)") from None
    if err is None:
        return
    if isinstance(err, GodocStaticError):
        raise err
    raise PageError(f"failed to copy docs: {err}") from err


# ----------------- Phase 2: sources -----------------

def copy_sources(site: Site, resolution: Resolution) -> None:
    """Phase 2. Each package gets its own deadline."""
    opts = site.options
    for pkg in resolution.filter:
        root = resolution.root(pkg)
        try:
            files = site.listing.source_files(pkg, cwd=root)
        except ListingError as e:
            log.debug("No sources for %s: %s", pkg, e)
            continue
        if not files:
            continue

        log.info("Copying %s sources...", pkg)
        site.backend.ensure_root(root)
        base_path = relative_base_path("src/" + pkg)
        deadline = site.deadline()
        for name in files + ["index.html"]:
            doc = site.get_document(f"/src/{pkg}/{name}", deadline)
            retitle(doc, pkg, opts.site_name)
            transform(doc, base_path, opts.site_name, opts.link_index, source_listing=True)
            out_name = name if name.endswith(".html") else name + ".html"
            site.writer.write(f"src/{pkg}", out_name, render(doc))


# ----------------- Assets & index -----------------

def copy_style(site: Site, deadline: float) -> None:
    log.info("Copying style.css...")
    body = site.get_body("/lib/godoc/style.css", deadline)
    site.writer.write("lib", "style.css", body.rstrip(b"\n") + b"\n" + ADDITIONAL_CSS.encode("utf-8"))

def write_index(site: Site, resolution: Resolution) -> None:
    log.info("Writing index.html...")
    opts = site.options

    def synopsis(pkg: str) -> str:
        return site.listing.synopsis(pkg, cwd=resolution.root(pkg))

    html = build_index(resolution.full, resolution.filter, synopsis, opts.site_name,
                       description=opts.site_description, footer=opts.site_footer,
                       link_index=opts.link_index, excludes=opts.excludes)
    site.writer.write("", "index.html", html)


def build(site: Site, resolution: Resolution) -> float:
    """Generate the whole site. Returns the elapsed time in seconds."""
    started = time.monotonic()
    site.backend.ensure_root(resolution.root(resolution.full[0]) if resolution.full else None)
    site.backend.warm_up(site.options.warm_up)

    race_deadline(lambda deadline, cancel: copy_docs(site, resolution, deadline, cancel),
                  site.options.timeout, name="copy-docs")
    copy_sources(site, resolution)
    copy_style(site, site.deadline())
    write_index(site, resolution)

    elapsed = time.monotonic() - started
    log.info("Generated documentation in %.0fs.", elapsed)
    return elapsed
