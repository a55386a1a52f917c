"""Thin wrapper around `go list`, used to find packages, their source files
and their one-line synopsis."""

import os, re, subprocess, tempfile
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ConfigError, ListingError

MODULE_RE = re.compile(r"^\s*module\s+\"?([^\s\"]+)\"?", re.MULTILINE)

# Every file category godoc can render a source page for.
SOURCE_FIELDS = (
    "GoFiles", "CgoFiles", "CFiles", "CXXFiles", "MFiles", "HFiles", "FFiles",
    "SFiles", "SwigFiles", "SwigCXXFiles", "TestGoFiles", "XTestGoFiles",
)
SOURCE_TEMPLATE = "\n".join('{{ join .%s "\\n" }}' % f for f in SOURCE_FIELDS)


def go_env(base: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Environment for go and godoc: module mode decided by the working directory."""
    env = {k: v for k, v in (base if base is not None else os.environ).items() if k != "GO111MODULE"}
    env["GO111MODULE"] = "auto"
    return env


def go_path(env: Optional[Dict[str, str]] = None) -> Path:
    env = env if env is not None else os.environ
    gp = env.get("GOPATH", "").split(os.pathsep)[0]
    return Path(gp) if gp else Path.home() / "go"


def module_path(directory: Path) -> str:
    mod_file = Path(directory) / "go.mod"
    try:
        text = mod_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to read mod file {mod_file}: {e}") from e
    m = MODULE_RE.search(text)
    if not m:
        raise ConfigError(f"failed to parse mod file {mod_file}: no module directive")
    return m.group(1)


class GoList:
    def __init__(self, go: str = "go", env: Optional[Dict[str, str]] = None):
        self.go = go
        self.env = env if env is not None else go_env()

    def run(self, args: List[str], cwd: Optional[str] = None) -> str:
        cmd = [self.go, "list"] + args
        try:
            proc = subprocess.run(cmd, cwd=cwd or tempfile.gettempdir(), env=self.env,
                                  capture_output=True, text=True, check=False)
        except OSError as e:
            raise ListingError(f"failed to run {self.go}: {e}") from e
        if proc.returncode != 0:
            raise ListingError(f"{' '.join(cmd)}: {proc.stderr.strip() or 'exit status %d' % proc.returncode}")
        return proc.stdout

    def all_packages(self) -> List[str]:
        try:
            out = self.run(["..."])
        except ListingError as e:
            raise ConfigError(f"failed to list system packages: {e}") from e
        return [line.strip() for line in out.splitlines() if line.strip()]

    def package_dir(self, identifier: str) -> Optional[str]:
        out = self.run(["-find", "-f", "{{ .Dir }}", identifier]).strip()
        return out.splitlines()[0] if out else None

    def source_files(self, identifier: str, cwd: Optional[str] = None) -> List[str]:
        out = self.run(["-find", "-f", SOURCE_TEMPLATE, identifier], cwd=cwd)
        return [name.strip() for name in out.splitlines() if name.strip()]

    def synopsis(self, identifier: str, cwd: Optional[str] = None) -> str:
        return self.run(["-find", "-f", "{{ .Doc }}", identifier], cwd=cwd).strip()
