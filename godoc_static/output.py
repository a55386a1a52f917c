import logging, zipfile
from pathlib import Path
from typing import Optional, Union

from .errors import OutputError

log = logging.getLogger(__name__)


class SiteWriter:
    """Writes site files under `destination`, mirroring each into an optional zip
    archive (stored inside `destination`) under the same relative name."""

    def __init__(self, destination: Union[str, Path], zip_name: Optional[str] = None):
        self.destination = Path(destination)
        self.zip_name = zip_name or None
        self.archive: Optional[zipfile.ZipFile] = None

    def open(self) -> "SiteWriter":
        try:
            self.destination.mkdir(parents=True, exist_ok=True)
            if self.zip_name:
                self.archive = zipfile.ZipFile(self.destination / self.zip_name, "w", zipfile.ZIP_DEFLATED)
        except OSError as e:
            raise OutputError(f"failed to prepare {self.destination}: {e}") from e
        return self

    def write(self, directory: str, name: str, data: Union[bytes, str]) -> Path:
        if isinstance(data, str):
            data = data.encode("utf-8")
        rel = f"{directory}/{name}" if directory else name
        target = self.destination / rel
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            if self.archive is not None:
                self.archive.writestr(rel, data)
        except OSError as e:
            raise OutputError(f"failed to write {target}: {e}") from e
        log.debug("Wrote %s", rel)
        return target

    def close(self) -> None:
        if self.archive is not None:
            self.archive.close()
            self.archive = None

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()
