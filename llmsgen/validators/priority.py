"""Checks for persisted priority.json records."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..logging import get_logger
from ..markdown import title_from_slug
from ..models import Tier
from ..priority import tier_for_score
from ..stores import PriorityRecordError
from .base import ValidationContext, ValidationIssue, error, is_int, location_for, warning


class PriorityValidator:
    """Validates each ``priority.json`` under the data directory."""

    name = "priority"

    def __init__(self, context: ValidationContext) -> None:
        self.context = context
        self.store = context.priority_store
        self.logger = get_logger("validators.priority")

    def items(self) -> Sequence[Path]:
        paths: List[Path] = []
        for language in self.context.languages:
            paths.extend(self.store.iter_paths(language))
        return paths

    def check(self, item: Path) -> List[ValidationIssue]:
        location = location_for(item, self.context.config.paths.data_dir)
        try:
            payload = self.store.read_raw(item)
        except PriorityRecordError as exc:
            return [error("invalid_json", str(exc), location)]

        issues: List[ValidationIssue] = []
        document = _section(payload, "document")
        priority = _section(payload, "priority")
        purpose = _section(payload, "purpose")

        for key in ("id", "title", "category"):
            if not _text(document.get(key)):
                issues.append(error(f"missing_{key}", f"document.{key} is missing", location, fixable=True))
        source_path = _text(document.get("source_path"))
        if not source_path:
            issues.append(error("missing_source_path", "document.source_path is missing", location))

        category = self._category(item, document)
        score = priority.get("score")
        if not is_int(score):
            issues.append(error("missing_score", "priority.score must be an integer", location, fixable=True))
            score = self.context.config.category_priority(category)
        elif not 0 <= score <= 100:
            issues.append(error("score_range", f"priority.score {score} outside 0-100", location))

        expected_tier = tier_for_score(score).value
        tier = priority.get("tier")
        if tier not in {item.value for item in Tier}:
            issues.append(error("missing_tier", "priority.tier is missing or unknown", location, fixable=True))
        elif tier != expected_tier:
            issues.append(
                error(
                    "tier_mismatch",
                    f"priority.tier {tier!r} does not match score {score} (expected {expected_tier!r})",
                    location,
                    fixable=True,
                )
            )

        audience = purpose.get("target_audience")
        if not isinstance(audience, list) or not audience:
            issues.append(
                error("missing_audience", "purpose.target_audience is missing", location, fixable=True)
            )
        elif self.context.strict and len(set(map(str, audience))) != len(audience):
            issues.append(
                warning("duplicate_audience", "purpose.target_audience has duplicate labels", location, fixable=True)
            )

        if self.context.strict:
            if not _text(priority.get("rationale")):
                issues.append(warning("empty_rationale", "priority.rationale is empty", location))
            language = item.parent.parent.name
            if source_path and not self.context.source_exists(language, source_path):
                issues.append(
                    warning("source_missing", f"source document {source_path} not found", location)
                )

        return issues

    def fix(self, item: Path, issues: Sequence[ValidationIssue]) -> int:
        codes = {issue.code for issue in issues if issue.fixable}
        if not codes:
            return 0
        try:
            payload = self.store.read_raw(item)
        except PriorityRecordError as exc:
            self.logger.warning("Cannot fix %s: %s", item, exc)
            return 0

        document = _ensure_section(payload, "document")
        priority = _ensure_section(payload, "priority")
        purpose = _ensure_section(payload, "purpose")
        fixed = 0

        if "missing_id" in codes:
            document["id"] = item.parent.name
            fixed += 1
        if "missing_category" in codes:
            document["category"] = self._category(item, document)
            fixed += 1
        if "missing_title" in codes:
            category = self._category(item, document)
            document_id = _text(document.get("id")) or item.parent.name
            slug = document_id[len(category) + 2:] if document_id.startswith(f"{category}--") else document_id
            document["title"] = title_from_slug(slug)
            fixed += 1
        if "missing_score" in codes:
            priority["score"] = self.context.config.category_priority(self._category(item, document))
            fixed += 1
        if codes & {"missing_tier", "tier_mismatch"}:
            priority["tier"] = tier_for_score(priority["score"]).value
            fixed += len(codes & {"missing_tier", "tier_mismatch"})
        if "missing_audience" in codes:
            purpose["target_audience"] = list(self.context.config.category_audience(self._category(item, document)))
            fixed += 1
        if "duplicate_audience" in codes:
            seen: List[str] = []
            for label in map(str, purpose.get("target_audience") or []):
                if label not in seen:
                    seen.append(label)
            purpose["target_audience"] = seen
            fixed += 1

        self.store.write_raw(item, payload)
        return fixed

    @staticmethod
    def _category(item: Path, document: Dict[str, Any]) -> str:
        category = _text(document.get("category"))
        if category:
            return category
        document_id = _text(document.get("id")) or item.parent.name
        return document_id.split("--", 1)[0]


def _section(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, dict) else {}


def _ensure_section(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = payload.get(key)
    if not isinstance(value, dict):
        value = {}
        payload[key] = value
    return value


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


__all__ = ["PriorityValidator"]
