"""The godoc process we scrape, and the loop that polls it for pages."""

import ctypes, logging, signal, subprocess, sys, tempfile, threading, time
from typing import Callable, Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from .errors import BackendError, FetchTimeout
from .golist import go_env

log = logging.getLogger(__name__)

# godoc serves this placeholder while it is still building its index.
SCAN_INCOMPLETE = b'<span class="alert" style="font-size:120%">Scan is not yet complete.'
SCAN_RETRY_DELAY = 0.025
CALL_TIMEOUT = 10.0

INSTALL_HINT = ("install godoc by running: go install golang.org/x/tools/cmd/godoc@latest\n"
                "then ensure ~/go/bin is in $PATH")


class ScanIncomplete(Exception):
    pass


PR_SET_PDEATHSIG = 1

def die_with_parent() -> None:
    """Runs in the child before exec: have the kernel kill godoc if we die first."""
    libc = ctypes.CDLL(None, use_errno=True)
    libc.prctl(PR_SET_PDEATHSIG, signal.SIGKILL)

def child_setup() -> Optional[Callable[[], None]]:
    return die_with_parent if sys.platform.startswith("linux") else None


# ----------------- Process -----------------

class Backend:
    """Owns the godoc process. States: stopped -> starting -> ready(root).

    godoc resolves modules relative to its working directory, so serving a
    package from another module root means restarting it there. ensure_root
    is the only call that (re)starts the process.
    """

    STOPPED, STARTING, READY = "stopped", "starting", "ready"

    def __init__(self, address: str, command: str = "godoc", env: Optional[Dict[str, str]] = None,
                 popen: Callable[..., subprocess.Popen] = subprocess.Popen):
        self.address = address
        self.command = command
        self.env = env if env is not None else go_env()
        self.popen = popen
        self.state = self.STOPPED
        self.root: Optional[str] = None
        self.proc: Optional[subprocess.Popen] = None
        self.started_at: Optional[float] = None
        self.closed = False
        self._lock = threading.Lock()

    def args(self) -> List[str]:
        return [self.command, f"-http={self.address}"]

    def ensure_root(self, root: Optional[str]) -> None:
        with self._lock:
            if self.closed:
                raise BackendError("godoc has already been shut down")
            if self.state != self.STOPPED and root == self.root:
                return
            if self.state != self.STOPPED:
                log.info("Restarting godoc in %s", root or "temporary directory")
            self._stop()
            self._start(root)

    def warm_up(self, delay: float) -> None:
        """Give a freshly started godoc `delay` seconds, minus time already spent."""
        if self.state == self.STARTING and self.started_at is not None:
            remaining = delay - (time.monotonic() - self.started_at)
            if remaining > 0:
                log.debug("Waiting %.1fs for godoc to start", remaining)
                time.sleep(remaining)
        if self.state == self.STARTING:
            self.state = self.READY

    def stop(self) -> None:
        with self._lock:
            self.closed = True
            self._stop()

    def _start(self, root: Optional[str]) -> None:
        try:
            self.proc = self.popen(self.args(), cwd=root or tempfile.gettempdir(), env=self.env,
                                   stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL,
                                   stderr=subprocess.DEVNULL, preexec_fn=child_setup())
        except OSError as e:
            raise BackendError(f"failed to execute {self.command}: {e}\n{INSTALL_HINT}") from e
        self.root = root
        self.state = self.STARTING
        self.started_at = time.monotonic()
        log.debug("Started godoc on %s (pid %s)", self.address, getattr(self.proc, "pid", "?"))

    def _stop(self) -> None:
        if self.proc is not None:
            self.proc.kill()
            self.proc.wait()
            self.proc = None
        self.state = self.STOPPED

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.stop()


# ----------------- Polling -----------------

def check_ready(body: bytes) -> bytes:
    if SCAN_INCOMPLETE in body:
        raise ScanIncomplete()
    return body

def fetch_body(session: requests.Session, address: str, path: str, deadline: float,
               call_timeout: float = CALL_TIMEOUT, cancel: Optional[threading.Event] = None) -> bytes:
    """GET `path` from godoc until it answers with a real page.

    Connection errors and 5xx answers are retried immediately, the scan
    placeholder after a short sleep. Gives up with FetchTimeout once
    `deadline` (a time.monotonic() value) passes or `cancel` is set.
    """
    url = f"http://{address}{path}"
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0 or (cancel is not None and cancel.is_set()):
            raise FetchTimeout(f"godoc failed to respond in time ({path})")
        try:
            r = session.get(url, timeout=min(call_timeout, remaining))
        except requests.RequestException as e:
            log.debug("GET %s: %s", url, e)
            continue
        if r.status_code >= 500:
            log.debug("GET %s: status %d", url, r.status_code)
            continue
        if r.status_code >= 400:
            log.warning("GET %s: status %d", url, r.status_code)
        try:
            return check_ready(r.content)
        except ScanIncomplete:
            log.debug("godoc is still scanning, retrying %s", path)
            time.sleep(SCAN_RETRY_DELAY)

def fetch_document(session: requests.Session, address: str, path: str, deadline: float,
                   call_timeout: float = CALL_TIMEOUT, cancel: Optional[threading.Event] = None) -> BeautifulSoup:
    body = fetch_body(session, address, path, deadline, call_timeout, cancel)
    return BeautifulSoup(body, "lxml")
