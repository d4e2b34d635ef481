"""Checks for artifact frontmatter."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import ArtifactState, PriorityRecord
from ..status import COMPLETION_STATUSES, WORKFLOW_STAGES, derive_state
from ..stores import ArtifactFormatError, PriorityRecordError
from ..stores.artifact_store import ARTIFACT_FIELDS, format_timestamp, parse_artifact_name, parse_timestamp
from .base import ValidationContext, ValidationIssue, error, is_int, location_for, warning

_STATUS_FOR_STATE = {
    ArtifactState.PLACEHOLDER: "template",
    ArtifactState.DRAFTED: "draft",
    ArtifactState.REVIEWED: "review",
    ArtifactState.APPROVED: "approved",
    ArtifactState.COMPLETED: "completed",
}


def status_for_state(state: ArtifactState) -> str:
    return _STATUS_FOR_STATE.get(state, "template")


def iter_artifact_files(data_dir: Path, languages: Sequence[str]) -> List[Path]:
    """Every Markdown file inside a document directory, whatever its name."""
    paths: List[Path] = []
    for language in languages:
        root = data_dir / language
        if not root.is_dir():
            continue
        for document_dir in sorted(entry for entry in root.iterdir() if entry.is_dir()):
            paths.extend(sorted(document_dir.glob("*.md")))
    return paths


class FrontmatterValidator:
    """Validates the YAML block at the top of each artifact."""

    name = "frontmatter"

    def __init__(self, context: ValidationContext) -> None:
        self.context = context
        self.store = context.artifact_store
        self.logger = get_logger("validators.frontmatter")

    def items(self) -> Sequence[Path]:
        return iter_artifact_files(self.context.config.paths.data_dir, self.context.languages)

    def check(self, item: Path) -> List[ValidationIssue]:
        config = self.context.config
        location = location_for(item, config.paths.data_dir)
        try:
            metadata, body = self.store.read_raw(item)
        except (ArtifactFormatError, OSError, UnicodeDecodeError) as exc:
            return [error("unparsable_frontmatter", str(exc), location)]
        if metadata is None:
            return [error("missing_frontmatter", "artifact has no frontmatter", location)]

        issues: List[ValidationIssue] = []
        parsed_name = parse_artifact_name(item.name)

        document_id = _text(metadata.get("document_id"))
        if not document_id:
            issues.append(error("missing_document_id", "document_id is missing", location, fixable=True))
            document_id = self._fallback_id(item)

        limit = metadata.get("character_limit")
        if not is_int(limit):
            issues.append(
                error(
                    "missing_character_limit",
                    "character_limit is missing",
                    location,
                    fixable=parsed_name is not None,
                )
            )
            limit = parsed_name[1] if parsed_name else None
        elif limit not in config.character_limits:
            issues.append(
                warning("unknown_limit", f"character_limit {limit} is not a configured limit", location)
            )

        if not _text(metadata.get("category")):
            issues.append(error("missing_category", "category is missing", location, fixable=True))

        source_path = _text(metadata.get("source_path"))
        if not source_path:
            issues.append(error("missing_source_path", "source_path is missing", location))

        if parse_timestamp(metadata.get("last_update")) is None:
            issues.append(
                error("missing_last_update", "last_update is missing or not a timestamp", location, fixable=True)
            )

        status = metadata.get("completion_status")
        if status is None or status == "":
            issues.append(error("missing_status", "completion_status is missing", location, fixable=True))
        elif str(status) not in COMPLETION_STATUSES:
            issues.append(error("invalid_status", f"invalid completion_status {status!r}", location))

        stage = metadata.get("workflow_stage")
        if stage not in (None, "") and str(stage) not in WORKFLOW_STAGES:
            issues.append(error("invalid_stage", f"invalid workflow_stage {stage!r}", location))

        score = metadata.get("priority_score")
        if score is not None and (not is_int(score) or not 0 <= score <= 100):
            issues.append(error("score_range", f"priority_score {score!r} outside 0-100", location))

        if limit is not None and item.name != f"{document_id}-{limit}.md":
            issues.append(
                warning("file_name", f"file name should be {document_id}-{limit}.md", location)
            )

        if self.context.strict:
            language = self._language(item)
            record = self._record(language, document_id)
            if record is not None and (
                score != record.score or metadata.get("priority_tier") != record.tier.value
            ):
                issues.append(
                    warning(
                        "priority_mismatch",
                        f"priority {score}/{metadata.get('priority_tier')} differs from record "
                        f"{record.score}/{record.tier.value}",
                        location,
                        fixable=True,
                    )
                )
            if source_path and not self.context.source_exists(language, source_path):
                issues.append(warning("source_missing", f"source document {source_path} not found", location))

        return issues

    def fix(self, item: Path, issues: Sequence[ValidationIssue]) -> int:
        codes = {issue.code for issue in issues if issue.fixable}
        if not codes:
            return 0
        try:
            metadata, body = self.store.read_raw(item)
        except (ArtifactFormatError, OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Cannot fix %s: %s", item, exc)
            return 0
        if metadata is None:
            return 0

        fixed = 0
        parsed_name = parse_artifact_name(item.name)
        if "missing_document_id" in codes:
            metadata["document_id"] = self._fallback_id(item)
            fixed += 1
        if "missing_character_limit" in codes and parsed_name is not None:
            metadata["character_limit"] = parsed_name[1]
            fixed += 1
        if "missing_category" in codes:
            metadata["category"] = str(metadata["document_id"]).split("--", 1)[0]
            fixed += 1
        if "missing_last_update" in codes:
            mtime = datetime.fromtimestamp(item.stat().st_mtime, tz=UTC)
            metadata["last_update"] = format_timestamp(mtime)
            fixed += 1
        if "missing_status" in codes:
            metadata["completion_status"] = status_for_state(derive_state(metadata, body, True))
            fixed += 1
        if "priority_mismatch" in codes:
            record = self._record(self._language(item), str(metadata["document_id"]))
            if record is not None:
                metadata["priority_score"] = record.score
                metadata["priority_tier"] = record.tier.value
                fixed += 1

        self.store.write_raw(item, _ordered(metadata), body)
        return fixed

    def _record(self, language: str, document_id: str) -> Optional[PriorityRecord]:
        try:
            return self.context.priority_store.load(language, document_id)
        except PriorityRecordError:
            return None

    @staticmethod
    def _fallback_id(item: Path) -> str:
        parsed = parse_artifact_name(item.name)
        return parsed[0] if parsed else item.parent.name

    @staticmethod
    def _language(item: Path) -> str:
        return item.parent.parent.name


def _ordered(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Put known keys first, in their canonical order, keeping unknown keys after them."""
    ordered = {key: metadata[key] for key in ARTIFACT_FIELDS if key in metadata}
    ordered.update((key, value) for key, value in metadata.items() if key not in ordered)
    return ordered


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


__all__ = ["FrontmatterValidator", "iter_artifact_files", "status_for_state"]
