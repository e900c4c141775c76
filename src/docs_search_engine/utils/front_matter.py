"""YAML front matter parsing for markdown documentation pages.

Front matter is a YAML mapping between two '---' lines at the very top of the
file:

    ---
    title: Phoenix LiveView Guide
    category: dev
    tags: [phoenix, liveview]
    ---
    # Phoenix LiveView Guide

    LiveView lets you...
"""

import re
from typing import Any

import yaml


DELIMITER = "---"

_FRONT_MATTER_PATTERN = re.compile(
    rf"\A{re.escape(DELIMITER)}[ \t]*\r?\n(.*?)\r?\n{re.escape(DELIMITER)}[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Split markdown content into (metadata, body).

    Returns ``({}, content)`` unchanged when there is no front matter block,
    when the YAML is invalid, or when it does not describe a mapping. When a
    block is found the body is stripped of surrounding whitespace.

    Example:
        >>> metadata, body = parse_front_matter("---\\ntitle: Intro\\n---\\n# Intro\\n")
        >>> metadata["title"]
        'Intro'
        >>> body
        '# Intro'
    """
    match = _FRONT_MATTER_PATTERN.match(content)
    if not match:
        return {}, content

    try:
        metadata = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, content

    if not isinstance(metadata, dict):
        return {}, content

    return metadata, content[match.end() :].strip()
