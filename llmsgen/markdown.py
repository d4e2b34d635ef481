"""Markdown helpers shared by the reader, stores and composer."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple

import yaml

PLACEHOLDER_MARKER = "<!-- llmsgen:placeholder -->"

_FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
_HEADING_PATTERN = re.compile(r"^#\s+(.+?)\s*#*\s*$")


class FrontmatterError(ValueError):
    """Raised when a frontmatter block exists but is not a YAML mapping."""


def split_frontmatter(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """Split ``text`` into its YAML frontmatter mapping and the remaining body.

    Returns ``(None, text)`` when there is no frontmatter block. The body is
    returned with surrounding whitespace stripped.
    """
    match = _FRONTMATTER_PATTERN.match(text)
    if not match:
        return None, text.strip()
    try:
        loaded = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"invalid YAML frontmatter: {exc}") from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise FrontmatterError("frontmatter must be a mapping")
    return loaded, text[match.end():].strip()


def strip_frontmatter(text: str) -> str:
    """Return ``text`` without a leading frontmatter block, ignoring bad YAML."""
    match = _FRONTMATTER_PATTERN.match(text)
    if not match:
        return text.strip()
    return text[match.end():].strip()


def render_frontmatter(metadata: Dict[str, Any], body: str) -> str:
    """Serialise ``metadata`` and ``body`` into the persisted artifact layout."""
    header = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True, width=1000)
    return f"---\n{header}---\n\n{body.strip()}\n"


def strip_comments(text: str) -> str:
    return _COMMENT_PATTERN.sub("", text).strip()


def is_placeholder(body: str) -> bool:
    """Return True when ``body`` still carries the placeholder marker or no authored text."""
    if PLACEHOLDER_MARKER in body:
        return True
    return not strip_comments(body)


def extract_title(text: str, fallback: str) -> str:
    in_code = False
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("```"):
            in_code = not in_code
            continue
        if in_code:
            continue
        match = _HEADING_PATTERN.match(stripped)
        if match:
            return match.group(1).strip()
    return fallback


def title_from_slug(slug: str) -> str:
    """Turn ``getting-started--basics`` into ``Getting Started Basics``."""
    words = [word for word in re.split(r"-+", slug) if word]
    if not words:
        return slug
    return " ".join(word.capitalize() for word in words)


__all__ = [
    "FrontmatterError",
    "PLACEHOLDER_MARKER",
    "extract_title",
    "is_placeholder",
    "render_frontmatter",
    "split_frontmatter",
    "strip_comments",
    "strip_frontmatter",
    "title_from_slug",
]
