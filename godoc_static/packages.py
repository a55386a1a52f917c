"""Package discovery: turns the identifiers given on the command line into
the linkable filter set and the full set needed for a connected index tree."""

import logging, os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import ConfigError, ListingError
from .golist import GoList, go_path, module_path

log = logging.getLogger(__name__)


@dataclass
class Resolution:
    full: List[str]
    filter: List[str]
    # identifier -> directory godoc must be started in to serve it
    roots: Dict[str, str] = field(default_factory=dict)

    def root(self, identifier: str) -> Optional[str]:
        """Directory to serve `identifier` from. Ancestors borrow a descendant's root."""
        if identifier in self.roots:
            return self.roots[identifier]
        prefix = identifier + "/"
        for pkg, root in self.roots.items():
            if pkg.startswith(prefix):
                return root
        return None


# ----------------- Set helpers -----------------

def unique(items: Iterable[str]) -> List[str]:
    seen, out = set(), []
    for item in items:
        if item not in seen:
            seen.add(item); out.append(item)
    return out

def ancestors(identifier: str) -> List[str]:
    parts = identifier.split("/")
    return ["/".join(parts[:i]) for i in range(1, len(parts))]

def sort_packages(items: Iterable[str]) -> List[str]:
    return sorted(items, key=lambda p: (p.lower(), p))

def is_excluded(identifier: str, excludes: Sequence[str] = ()) -> bool:
    if "\\" in identifier or "testdata" in identifier or "internal" in identifier or identifier == "cmd":
        return True
    for ex in excludes:
        if ex and (identifier == ex or identifier.startswith(ex + "/")):
            return True
    return False

def relative_base_path(path: str) -> str:
    """Prefix leading from a page written under `path` back to the site root."""
    if not path:
        return ""
    return "../" * (path.replace("\\", "/").count("/") + 1)


# ----------------- Discovery -----------------

def walk_packages(identifier: str, directory: Path) -> Iterator[Tuple[str, str]]:
    """Yield (identifier, dir) for `directory` and every sub-directory below it.
    Directories starting with "." are pruned together with their subtree."""
    for dirpath, dirnames, _ in os.walk(directory):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        rel = Path(dirpath).relative_to(directory).as_posix()
        yield (identifier if rel == "." else f"{identifier}/{rel}"), dirpath

def locate(identifier: str, listing: GoList, gopath: Path) -> Tuple[Optional[Path], bool]:
    """Return (directory, is_root). is_root means godoc has to be started there."""
    src_dir = gopath / "src" / identifier
    if src_dir.is_dir():
        return src_dir, True
    try:
        found = listing.package_dir(identifier)
    except ListingError as e:
        log.debug("go list could not locate %s: %s", identifier, e)
        return None, False
    return (Path(found), False) if found and Path(found).is_dir() else (None, False)

def resolve(identifiers: Sequence[str], listing: GoList, gopath: Optional[Path] = None) -> Resolution:
    """Expand `identifiers` into the filter set and the full set.
    Exclusions are not applied here: excluded packages still get pages, they
    are only left out of the index."""
    requested = [i.strip() for i in identifiers if i and i.strip()]
    if not requested:
        log.info("No packages given, documenting every package go list knows about")
        requested = listing.all_packages()
    gopath = gopath if gopath is not None else go_path(listing.env)

    found: List[str] = []
    roots: Dict[str, str] = {}
    for ident in requested:
        if os.path.isdir(ident):
            directory, is_root = Path(ident).resolve(), True
            ident = module_path(directory)
        else:
            directory, is_root = locate(ident, listing, gopath)

        found.append(ident)
        if directory is None:
            continue
        for pkg, _ in walk_packages(ident, directory):
            found.append(pkg)
            if is_root:
                roots.setdefault(pkg, str(directory))

    filter_pkgs = unique(found)
    if not filter_pkgs:
        raise ConfigError("failed to generate docs: provide the name of at least one package to generate documentation for")

    full = list(filter_pkgs)
    for pkg in filter_pkgs:
        full.extend(ancestors(pkg))
    full = sort_packages(unique(full))
    log.debug("Resolved %d packages (%d linkable)", len(full), len(filter_pkgs))
    return Resolution(full=full, filter=sort_packages(filter_pkgs), roots=roots)
