"""Breadcrumb trails derived from a document's site path.

``/dev/phoenix-guides/liveview`` becomes::

    Home (/) > Developer Documentation (/dev) > Phoenix Guides (/dev/phoenix-guides) > <title>

The last crumb always carries the document's own title.
"""

from __future__ import annotations

from docs_search_engine.domain.model import Breadcrumb


HOME = Breadcrumb(title="Home", path="/")

SECTION_TITLES: dict[str, str] = {
    "dev": "Developer Documentation",
    "user": "User Guide",
    "api": "API Reference",
}


def segment_title(segment: str) -> str:
    """Human title for one path segment."""
    known = SECTION_TITLES.get(segment)
    if known is not None:
        return known
    words = segment.replace("-", " ").replace("_", " ").split()
    return " ".join(word.capitalize() for word in words)


def build_breadcrumbs(path: str, title: str) -> tuple[Breadcrumb, ...]:
    segments = [segment for segment in (path or "").strip("/").split("/") if segment]
    crumbs = [HOME]
    for position, segment in enumerate(segments):
        current = "/" + "/".join(segments[: position + 1])
        crumb_title = segment_title(segment)
        if position == len(segments) - 1 and title:
            crumb_title = title
        crumbs.append(Breadcrumb(title=crumb_title, path=current))
    return tuple(crumbs)
