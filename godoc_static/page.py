"""Rewrites a page scraped from godoc so it works from static hosting.

transform() applies the rules in a fixed order; later rules rely on the
earlier ones (the top bar is built after the old assets are gone, the
source-listing pass skips anchors the link pass already rewrote).
"""

import posixpath
from html import escape
from typing import Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

LINK_PREFIXES = ("/src/", "/pkg/")
SUMMARY_PLACEHOLDER = "Summary not available"

# Appended to godoc's style.css: disclosure widgets are <details> in static output.
ADDITIONAL_CSS = """
details > summary {
  cursor: pointer;
  color: #375EAB;
  font-weight: bold;
  margin: 20px 0 10px 0;
}
details > summary:hover {
  text-decoration: underline;
}
details[open] > summary {
  margin-bottom: 10px;
}
details > summary::-webkit-details-marker {
  color: #375EAB;
}
#topbar .top-heading a, #menu a {
  text-decoration: none;
}
"""


def top_bar(base_path: str, site_name: str, link_index: bool = False) -> str:
    home = escape(base_path + ("index.html" if link_index else ""))
    name = escape(site_name)
    return f"""<div class="container">
<div class="top-heading" id="heading-wide"><a href="{home}">{name}</a></div>
<div class="top-heading" id="heading-narrow"><a href="{home}">{name}</a></div>
<div id="menu">
<a href="{home}" style="margin-right: 10px;">Packages</a>
</div>
</div>"""


# ----------------- Links -----------------

def split_suffix(href: str) -> Tuple[str, str]:
    """Split off the ?query / #fragment part of an href."""
    cut = len(href)
    for ch in "?#":
        pos = href.find(ch)
        if 0 <= pos < cut:
            cut = pos
    return href[:cut], href[cut:]

def rewrite_href(href: str, base_path: str, link_index: bool = False) -> str:
    """Map a godoc-absolute /src/ or /pkg/ href onto the static tree."""
    if not href.startswith(LINK_PREFIXES):
        return href
    path, rest = split_suffix(href)
    if "." in path.rsplit("/", 1)[-1]:
        path += ".html"
    elif link_index:
        path += "index.html" if path.endswith("/") else "/index.html"
    if path.startswith("/pkg/"):
        path = path[4:]
    return base_path + path[1:] + rest


# ----------------- Rules -----------------

def strip_assets(doc: BeautifulSoup) -> None:
    for tag in doc.find_all(["link", "script"]):
        tag.decompose()

def add_stylesheet(doc: BeautifulSoup, base_path: str) -> None:
    head = doc.head
    if head is None:
        head = doc.new_tag("head")
        (doc.html or doc).insert(0, head)
    head.append(doc.new_tag("link", attrs={
        "type": "text/css", "rel": "stylesheet", "href": base_path + "lib/style.css"}))

def replace_top_bar(doc: BeautifulSoup, base_path: str, site_name: str, link_index: bool = False) -> None:
    bar = doc.find(id="topbar")
    if bar is None:
        return
    bar.clear()
    fragment = BeautifulSoup(top_bar(base_path, site_name, link_index), "html.parser")
    for node in list(fragment.contents):
        bar.append(node.extract())

def rewrite_links(doc: BeautifulSoup, base_path: str, link_index: bool = False) -> Dict[int, Tag]:
    """Rewrite /src/ and /pkg/ anchors in place; returns the anchors touched, keyed by id()."""
    touched = {}
    for a in doc.find_all("a", href=True):
        if a["href"].startswith(LINK_PREFIXES):
            a["href"] = rewrite_href(a["href"], base_path, link_index)
            touched[id(a)] = a
    return touched

def convert_toggles(doc: BeautifulSoup) -> None:
    """Turn godoc's javascript toggles into <details>/<summary>."""
    for el in doc.find_all(class_="toggle"):
        if getattr(el, "decomposed", False):
            continue  # sat inside an outer toggle's collapsed block
        summary = None
        for collapsed in el.find_all(class_="collapsed", recursive=False):
            text = collapsed.select_one("span.text")
            if summary is None and text is not None:
                summary = text.decode_contents()
            collapsed.decompose()
        for button in el.find_all(class_="toggleButton"):
            if button.find_parent(class_="toggle") is el:
                button.decompose()

        fragment = BeautifulSoup("<summary></summary>", "html.parser")
        tag = fragment.summary
        body = BeautifulSoup(summary if summary is not None else SUMMARY_PLACEHOLDER, "html.parser")
        for node in list(body.contents):
            tag.append(node.extract())
        el.insert(0, tag.extract())

        classes = [c for c in el.get("class", []) if c != "toggle"]
        if classes:
            el["class"] = classes
        else:
            del el["class"]
        el.name = "details"

def fix_source_links(doc: BeautifulSoup, skip: Optional[Mapping[int, Tag]] = None) -> None:
    """Source directory listings link to bare file names; point them at the .html copies."""
    skip = skip or {}
    for layout in doc.find_all(class_="layout"):
        for a in layout.find_all("a", href=True):
            if id(a) in skip:
                continue
            path, rest = split_suffix(a["href"])
            if not path or urlsplit(path).scheme or path.endswith((".", "/", ".html")):
                continue
            a["href"] = path + ".html" + rest

def remove_footer(doc: BeautifulSoup) -> None:
    footers = doc.find_all(id="footer")
    if footers:
        footers[-1].decompose()


# ----------------- Entry points -----------------

def retitle(doc: BeautifulSoup, identifier: str, site_name: str) -> None:
    title = doc.find("title")
    if isinstance(title, Tag):
        title.string = f"{posixpath.basename(identifier) or identifier} - {site_name}"

def transform(doc: BeautifulSoup, base_path: str, site_name: str,
              link_index: bool = False, source_listing: bool = False) -> BeautifulSoup:
    """Rewrite `doc` in place. Must run once per document: the link pass is not idempotent."""
    strip_assets(doc)
    add_stylesheet(doc, base_path)
    replace_top_bar(doc, base_path, site_name, link_index)
    touched = rewrite_links(doc, base_path, link_index)
    convert_toggles(doc)
    if source_listing:
        fix_source_links(doc, skip=touched)
    remove_footer(doc)
    return doc

def render(doc: BeautifulSoup) -> bytes:
    return doc.encode(formatter="html")
