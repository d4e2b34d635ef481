"""Checks for artifact bodies and a heuristic quality score."""

from __future__ import annotations

import re
from collections import Counter
from pathlib import Path
from typing import List, Sequence

from ..logging import get_logger
from ..markdown import is_placeholder, strip_comments
from ..stores import ArtifactFormatError
from .base import ValidationContext, ValidationIssue, error, location_for, warning

OVERSIZE_RATIO = 1.2
UNDERSIZE_RATIO = 0.5

TEMPLATE_INDICATORS = (
    "lorem ipsum",
    "todo",
    "tbd",
    "placeholder",
    "write a summary",
    "fill in",
)

TEMPLATE_PENALTY = 30
UNDERSIZE_PENALTY = 15
OVERSIZE_PENALTY = 15
FEW_SENTENCES_PENALTY = 25
# Short summaries are routinely a single sentence.
SENTENCE_CHECK_MIN_LIMIT = 300
MINIMAL_CONTENT_CHARS = 10

_SENTENCE_SPLIT = re.compile(r"[.!?]")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


def quality_score(body: str, length_budget: int) -> int:
    """Score an authored body from 0 to 100.

    Penalises leftover template wording, bodies far from their length
    budget and, for longer budgets, bodies with fewer than two sentences.
    """
    text = strip_comments(body)
    if len(text) < MINIMAL_CONTENT_CHARS:
        return 0

    score = 100
    lowered = text.lower()
    if any(indicator in lowered for indicator in TEMPLATE_INDICATORS):
        score -= TEMPLATE_PENALTY

    if length_budget > 0:
        ratio = len(text) / length_budget
        if ratio < UNDERSIZE_RATIO:
            score -= UNDERSIZE_PENALTY
        elif ratio > OVERSIZE_RATIO:
            score -= OVERSIZE_PENALTY

    if length_budget >= SENTENCE_CHECK_MIN_LIMIT:
        sentences = [part for part in _SENTENCE_SPLIT.split(text) if part.strip()]
        if len(sentences) < 2:
            score -= FEW_SENTENCES_PENALTY

    return max(0, min(100, score))


def duplicated_paragraphs(body: str) -> List[str]:
    paragraphs = [" ".join(part.split()) for part in _PARAGRAPH_SPLIT.split(strip_comments(body))]
    counts = Counter(paragraph for paragraph in paragraphs if paragraph)
    return [paragraph for paragraph, count in counts.items() if count > 1]


class ContentValidator:
    """Validates artifact bodies against their recorded status and length budget."""

    name = "content"

    def __init__(self, context: ValidationContext) -> None:
        self.context = context
        self.store = context.artifact_store
        self.logger = get_logger("validators.content")

    def items(self) -> Sequence[Path]:
        paths: List[Path] = []
        for language in self.context.languages:
            paths.extend(self.store.iter_paths(language))
        return paths

    def check(self, item: Path) -> List[ValidationIssue]:
        location = location_for(item, self.context.config.paths.data_dir)
        try:
            artifact = self.store.load_path(item)
        except (ArtifactFormatError, OSError, UnicodeDecodeError) as exc:
            return [error("unreadable", f"cannot check content: {exc}", location)]

        issues: List[ValidationIssue] = []
        placeholder = is_placeholder(artifact.body)
        status = artifact.completion_status

        if status == "completed" and placeholder:
            issues.append(error("completed_placeholder", "marked completed but still a placeholder", location))
        if status == "template" and not placeholder:
            issues.append(
                warning(
                    "authored_template",
                    "authored content is still marked as template",
                    location,
                    fixable=True,
                )
            )

        if not placeholder:
            length = len(strip_comments(artifact.body))
            if length > artifact.length_budget * OVERSIZE_RATIO:
                issues.append(
                    warning(
                        "oversize",
                        f"content is {length} characters for a {artifact.length_budget}-character budget",
                        location,
                    )
                )
            score = quality_score(artifact.body, artifact.length_budget)
            if score < self.context.config.quality_threshold:
                issues.append(
                    warning(
                        "low_quality",
                        f"quality score {score} below threshold {self.context.config.quality_threshold}",
                        location,
                    )
                )
            if self.context.strict:
                for paragraph in duplicated_paragraphs(artifact.body):
                    preview = paragraph if len(paragraph) <= 40 else paragraph[:37] + "..."
                    issues.append(warning("duplicate_paragraph", f"paragraph repeated: {preview!r}", location))

        return issues

    def fix(self, item: Path, issues: Sequence[ValidationIssue]) -> int:
        codes = {issue.code for issue in issues if issue.fixable}
        if "authored_template" not in codes:
            return 0
        metadata, body = self.store.read_raw(item)
        if metadata is None:
            return 0
        metadata["completion_status"] = "draft"
        metadata["workflow_stage"] = "content_drafting"
        self.store.write_raw(item, metadata, body)
        self.logger.debug("Promoted %s to draft", item.name)
        return 1


__all__ = ["ContentValidator", "duplicated_paragraphs", "quality_score"]
