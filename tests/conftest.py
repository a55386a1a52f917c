"""Fakes for godoc, its HTTP server and go list."""

import textwrap
from typing import Dict, List

import pytest
import requests

from godoc_static.backend import SCAN_INCOMPLETE, Backend
from godoc_static.errors import ListingError

ADDRESS = "localhost:9001"

PKG_PAGE = textwrap.dedent("""\
    <!DOCTYPE html>
    <html>
    <head>
    <title>x - The Go Programming Language</title>
    <link type="text/css" rel="stylesheet" href="/lib/godoc/style.css">
    <script src="/lib/godoc/jquery.js"></script>
    </head>
    <body>
    <div id="topbar" class="wide"><div class="container"><form method="GET" action="/search">old nav</form></div></div>
    <div id="page" class="wide">
    <div class="container">
    <h1>Package x</h1>
    <a href="/pkg/x/y/">y</a>
    <a href="/src/x/x.go?s=10:20#L3">source</a>
    <a href="/pkg/builtin/#string">string</a>
    <a href="https://golang.org/">external</a>
    <div class="toggle" id="example_Foo">
      <div class="collapsed">
        <p class="exampleHeading toggleButton">&#9657; <span class="text">Example</span></p>
      </div>
      <div class="expanded">
        <p class="exampleHeading toggleButton">&#9663; <span class="text">Example</span></p>
        <p>Code:</p>
      </div>
    </div>
    <div id="footer">Build version go1.20.</div>
    </div>
    </div>
    <script>playground();</script>
    </body>
    </html>
""")

SOURCE_PAGE = textwrap.dedent("""\
    <html><head><title>x.go</title></head>
    <body>
    <div id="topbar"></div>
    <div id="page"><pre>package x</pre>
    <a href="/pkg/x/">docs</a>
    <div id="footer">go</div></div>
    </body></html>
""")

SOURCE_DIR_PAGE = textwrap.dedent("""\
    <html><head><title>Directory /src/x</title></head>
    <body>
    <div id="topbar"></div>
    <div id="page">
    <table class="layout">
    <tr><td><a href="..">..</a></td></tr>
    <tr><td><a href="x.go">x.go</a></td></tr>
    <tr><td><a href="y/">y/</a></td></tr>
    <tr><td><a href="/src/x/x.go">x.go</a></td></tr>
    </table>
    <div id="footer">go</div>
    </div>
    </body></html>
""")


class FakeResponse:
    def __init__(self, body, status_code: int = 200):
        self.content = body.encode("utf-8") if isinstance(body, str) else body
        self.status_code = status_code


class FakeSession:
    """Serves canned bodies by path. A list of answers is played in order,
    its last entry repeating; an exception instance is raised."""

    def __init__(self, routes: Dict[str, object] = None, default=None):
        self.routes = dict(routes or {})
        self.default = default
        self.calls: List[tuple] = []
        self.closed = False

    def get(self, url, timeout=None):
        path = url.split(ADDRESS, 1)[1]
        self.calls.append((path, timeout))
        answer = self.routes.get(path, self.default)
        if isinstance(answer, list):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return FakeResponse("<html><body>not found</body></html>", 404)
        if isinstance(answer, FakeResponse):
            return answer
        return FakeResponse(answer)

    def paths(self):
        return [p for p, _ in self.calls]

    def close(self):
        self.closed = True


class FakeListing:
    def __init__(self, dirs=None, sources=None, synopses=None, packages=None):
        self.env = {}
        self.dirs = dirs or {}
        self.sources = sources or {}
        self.synopses = synopses or {}
        self.packages = packages or []
        self.source_calls = []

    def all_packages(self):
        return list(self.packages)

    def package_dir(self, identifier):
        if identifier not in self.dirs:
            raise ListingError(f"cannot find package {identifier}")
        return self.dirs[identifier]

    def source_files(self, identifier, cwd=None):
        self.source_calls.append((identifier, cwd))
        if identifier not in self.sources:
            raise ListingError(f"no Go files in {identifier}")
        return list(self.sources[identifier])

    def synopsis(self, identifier, cwd=None):
        if identifier not in self.synopses:
            raise ListingError(f"cannot find package {identifier}")
        return self.synopses[identifier]


class FakeProc:
    def __init__(self, args, cwd=None, **kwargs):
        self.args = args
        self.cwd = cwd
        self.kwargs = kwargs
        self.pid = 4242
        self.killed = False

    def kill(self):
        self.killed = True

    def wait(self):
        return -9


class FakePopen:
    def __init__(self):
        self.procs: List[FakeProc] = []

    def __call__(self, args, **kwargs):
        proc = FakeProc(args, **kwargs)
        self.procs.append(proc)
        return proc


@pytest.fixture
def popen():
    return FakePopen()


@pytest.fixture
def backend(popen):
    return Backend(ADDRESS, env={}, popen=popen)


@pytest.fixture
def scan_page():
    return b"<html><body>" + SCAN_INCOMPLETE + b"</span></body></html>"


@pytest.fixture
def refused():
    return requests.ConnectionError("connection refused")
