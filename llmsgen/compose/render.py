"""Text layout for composed outputs."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from jinja2 import Environment

from ..models import Pattern, Tier
from .packing import PackingCandidate, PackingUnit, Selection

HEADER_TEMPLATE = "output_header.txt.j2"

SECTION_SEPARATOR = "\n\n---\n\n"
INDEX_GROUP_SEPARATOR = "\n\n"
TOC_HEADING = "## Contents"
TOC_ELLIPSIS = "- ...\n"

_TIER_ORDER = (Tier.HIGH.value, Tier.MEDIUM.value, Tier.LOW.value)


def section_text(title: str, body: str) -> str:
    return f"## {title}\n\n{body}"


def section_cost(candidate: PackingCandidate, unit: PackingUnit, selected: Sequence[Selection]) -> int:
    """Cost of a standard section: its text plus one separator."""
    return len(unit.text) + len(SECTION_SEPARATOR)


def join_sections(selections: Sequence[Selection]) -> str:
    return SECTION_SEPARATOR.join(selection.unit.text for selection in selections)


def table_of_contents(titles: Sequence[str], limit: int) -> str:
    """Titles-only contents list that never exceeds ``limit`` characters.

    Entries that no longer fit are replaced by a single ``- ...`` line when
    that still fits. Returns an empty string when not even one title fits.
    """
    heading = f"{TOC_HEADING}\n\n"
    lines: List[str] = []
    used = len(heading)
    for title in titles:
        line = f"- {title}\n"
        if used + len(line) > limit:
            if lines and used + len(TOC_ELLIPSIS) <= limit:
                lines.append(TOC_ELLIPSIS)
            break
        lines.append(line)
        used += len(line)
    if not lines:
        return ""
    return (heading + "".join(lines)).strip()


def join_body(toc: str, sections: str) -> str:
    return SECTION_SEPARATOR.join(part for part in (toc, sections) if part)


def index_line(title: str, source_path: str, score: int, tier: str) -> str:
    return f"- [{title}]({source_path}) - Priority: {score} ({tier})"


def tier_heading(tier: str) -> str:
    return f"## {tier.capitalize()} Priority"


def index_cost(candidate: PackingCandidate, unit: PackingUnit, selected: Sequence[Selection]) -> int:
    """Cost of an index line, charging its tier heading when the tier opens.

    A line costs its text plus a newline; a heading costs its text plus the
    blank line after it and the group separator before it.
    """
    cost = len(unit.text) + 1
    if not any(selection.candidate.tier == candidate.tier for selection in selected):
        cost += len(tier_heading(candidate.tier)) + 2 + len(INDEX_GROUP_SEPARATOR)
    return cost


def render_index(selections: Sequence[Selection]) -> str:
    """Group index lines under tier headings, high tier first."""
    groups: Dict[str, List[str]] = {}
    for selection in selections:
        groups.setdefault(selection.candidate.tier, []).append(selection.unit.text)
    ordered = [tier for tier in _TIER_ORDER if tier in groups]
    ordered.extend(sorted(tier for tier in groups if tier not in _TIER_ORDER))
    blocks = [f"{tier_heading(tier)}\n\n" + "\n".join(groups[tier]) for tier in ordered]
    return INDEX_GROUP_SEPARATOR.join(blocks)


def origin_section(title: str, source_path: str, score: int, tier: str, text: str) -> str:
    lines = [f"# {title}", "", f"Source: {source_path}", f"Priority: {score} ({tier})"]
    if text:
        lines.extend(["", text])
    return "\n".join(lines)


def render_header(
    env: Environment,
    *,
    project_name: str,
    pattern: Pattern,
    language: str,
    generated_at: datetime,
    character_limit: Optional[int],
    document_count: int,
) -> str:
    template = env.get_template(HEADER_TEMPLATE)
    return template.render(
        project_name=project_name,
        pattern=pattern.value,
        pattern_label=pattern.value.capitalize(),
        language=language,
        generated_on=generated_at.date().isoformat(),
        character_limit=character_limit,
        document_count=document_count,
        empty=document_count == 0,
    )


__all__ = [
    "HEADER_TEMPLATE",
    "SECTION_SEPARATOR",
    "index_cost",
    "index_line",
    "join_body",
    "join_sections",
    "origin_section",
    "render_header",
    "render_index",
    "section_cost",
    "section_text",
    "table_of_contents",
    "tier_heading",
]
