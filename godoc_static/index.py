"""Root index.html: the package tree, indented by shared path prefix."""

import logging
from html import escape
from typing import Callable, List, Sequence, Tuple

from .errors import ListingError
from .packages import is_excluded
from .page import top_bar

log = logging.getLogger(__name__)

ROW_INDENT = 20  # px per shared path segment


def shared_segments(previous: str, current: str) -> int:
    """Leading path segments `current` shares with `previous`, compared case-insensitively.
    Always leaves at least one segment of `current` to show."""
    if not previous:
        return 0
    prev_parts, parts = previous.split("/"), current.split("/")
    shared = 0
    for a, b in zip(prev_parts, parts):
        if a.lower() != b.lower():
            break
        shared += 1
    return min(shared, len(parts) - 1)

def indent_rows(packages: Sequence[str]) -> List[Tuple[str, str, int]]:
    """(identifier, label, depth) for every package, in the given order."""
    rows, previous = [], ""
    for pkg in packages:
        depth = shared_segments(previous, pkg)
        rows.append((pkg, "/".join(pkg.split("/")[depth:]), depth))
        previous = pkg
    return rows


def visible_packages(full: Sequence[str], excludes: Sequence[str] = ()) -> List[str]:
    """Drop excluded packages from `full`, keeping an excluded one only while a
    package below it is still shown."""
    shown = [p for p in full if not is_excluded(p, excludes)]
    kept = set(shown)
    return [p for p in full if p in kept or any(s.startswith(p + "/") for s in shown)]


def build_index(full: Sequence[str], filter_pkgs: Sequence[str], synopsis: Callable[[str], str],
                site_name: str, description: str = "", footer: str = "", link_index: bool = False,
                excludes: Sequence[str] = ()) -> str:
    """Render the site index.

    `full` must already be sorted. Excluded packages are dropped before the
    rows are laid out. Only non-excluded members of `filter_pkgs` are linked;
    the rest are ancestors kept to connect the tree. `description` and
    `footer` are pre-rendered HTML.
    """
    linked = {p for p in filter_pkgs if not is_excluded(p, excludes)}
    suffix = "/index.html" if link_index else ""

    b = [f"""<!DOCTYPE html>
<html>
<head>
<meta http-equiv="Content-Type" content="text/html; charset=utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta name="theme-color" content="#375EAB">
<title>{escape(site_name)}</title>
<link type="text/css" rel="stylesheet" href="lib/style.css">
</head>
<body>

<div id="topbar" class="wide">{top_bar("", site_name, link_index)}</div>
<div id="page" class="wide">
<div class="container">
"""]
    if description:
        b.append(description)
    b.append("""
<h1>
	Packages
</h1>
<div class="pkg-dir">
	<table>
		<tr>
			<th class="pkg-name">Name</th>
			<th class="pkg-synopsis">Synopsis</th>
		</tr>
""")

    for pkg, label, depth in indent_rows(visible_packages(full, excludes)):
        try:
            text = synopsis(pkg)
        except ListingError as e:
            log.debug("No synopsis for %s: %s", pkg, e)
            text = ""
        if pkg in linked:
            name = f'<a href="{escape(pkg + suffix)}">{escape(label)}</a>'
        else:
            name = escape(label)
        b.append(f"""
		<tr>
			<td class="pkg-name" style="padding-left: {depth * ROW_INDENT}px;">{name}</td>
			<td class="pkg-synopsis">
				{escape(text)}
			</td>
		</tr>
""")

    b.append("""
	</table>
</div>
""")
    if footer:
        b.append(f'<div id="footer">\n{footer}\n</div>\n')
    b.append("""</div>
</div>
</body>
</html>
""")
    return "".join(b)
