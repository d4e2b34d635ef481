"""Flat-file persistence for length-budgeted artifacts (Markdown + YAML frontmatter)."""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..logging import get_logger
from ..markdown import FrontmatterError, render_frontmatter, split_frontmatter
from ..models import Artifact

ARTIFACT_FIELDS: Tuple[str, ...] = (
    "document_id",
    "category",
    "source_path",
    "character_limit",
    "last_update",
    "completion_status",
    "workflow_stage",
    "priority_score",
    "priority_tier",
)

_ARTIFACT_NAME = re.compile(r"^(?P<document_id>.+)-(?P<limit>\d+)\.md$")


class ArtifactFormatError(ValueError):
    """Raised when an artifact file lacks usable frontmatter."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a frontmatter timestamp; naive values are treated as UTC."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def parse_artifact_name(filename: str) -> Optional[Tuple[str, int]]:
    """Return ``(document_id, limit)`` for ``<document_id>-<limit>.md`` names."""
    match = _ARTIFACT_NAME.match(filename)
    if not match:
        return None
    return match.group("document_id"), int(match.group("limit"))


class ArtifactStore:
    """Reads and writes ``<data_dir>/<language>/<document_id>/<document_id>-<limit>.md``."""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self.logger = get_logger("stores.artifact")

    def path_for(self, language: str, document_id: str, length_budget: int) -> Path:
        return self._data_dir / language / document_id / f"{document_id}-{length_budget}.md"

    def exists(self, language: str, document_id: str, length_budget: int) -> bool:
        return self.path_for(language, document_id, length_budget).is_file()

    def load(self, language: str, document_id: str, length_budget: int) -> Optional[Artifact]:
        path = self.path_for(language, document_id, length_budget)
        if not path.is_file():
            return None
        return self.load_path(path)

    def load_path(self, path: Path) -> Artifact:
        metadata, body = self.read_raw(path)
        if metadata is None:
            raise ArtifactFormatError(path, "missing frontmatter")
        return artifact_from_metadata(metadata, body, path=path)

    def load_all(self, language: str, failures: Optional[List[Path]] = None) -> Dict[str, List[Artifact]]:
        """Group every parsable artifact of ``language`` by document id, smallest budget first.

        Paths that cannot be loaded are skipped and appended to ``failures`` when given.
        """
        grouped: Dict[str, List[Artifact]] = {}
        for path in self.iter_paths(language):
            try:
                artifact = self.load_path(path)
            except (ArtifactFormatError, OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Skipping unreadable artifact %s: %s", path, exc)
                if failures is not None:
                    failures.append(path)
                continue
            grouped.setdefault(artifact.document_id, []).append(artifact)
        for artifacts in grouped.values():
            artifacts.sort(key=lambda artifact: artifact.length_budget)
        return grouped

    def iter_paths(self, language: str) -> List[Path]:
        root = self._data_dir / language
        if not root.is_dir():
            return []
        paths: List[Path] = []
        for document_dir in sorted(entry for entry in root.iterdir() if entry.is_dir()):
            for candidate in sorted(document_dir.glob("*.md")):
                if parse_artifact_name(candidate.name) is not None:
                    paths.append(candidate)
        return paths

    def write(self, language: str, artifact: Artifact) -> Path:
        path = self.path_for(language, artifact.document_id, artifact.length_budget)
        self.write_raw(path, artifact_metadata(artifact), artifact.body)
        return path

    # ------------------------------------------------------------------
    # Raw access for validators and fixers

    def read_raw(self, path: Path) -> Tuple[Optional[Dict[str, Any]], str]:
        text = path.read_text(encoding="utf-8")
        try:
            return split_frontmatter(text)
        except FrontmatterError as exc:
            raise ArtifactFormatError(path, str(exc)) from exc

    def write_raw(self, path: Path, metadata: Dict[str, Any], body: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_frontmatter(metadata, body), encoding="utf-8")


def artifact_metadata(artifact: Artifact) -> Dict[str, Any]:
    return {
        "document_id": artifact.document_id,
        "category": artifact.category,
        "source_path": artifact.source_path,
        "character_limit": artifact.length_budget,
        "last_update": format_timestamp(artifact.last_update) if artifact.last_update else None,
        "completion_status": artifact.completion_status,
        "workflow_stage": artifact.workflow_stage,
        "priority_score": artifact.priority_score,
        "priority_tier": artifact.priority_tier,
    }


def artifact_from_metadata(metadata: Dict[str, Any], body: str, *, path: Path) -> Artifact:
    """Build an :class:`Artifact`, filling gaps from the file name where possible."""
    parsed_name = parse_artifact_name(path.name)
    document_id = metadata.get("document_id")
    if not isinstance(document_id, str) or not document_id:
        if parsed_name is None:
            raise ArtifactFormatError(path, "missing document_id")
        document_id = parsed_name[0]

    limit = metadata.get("character_limit")
    if isinstance(limit, bool) or not isinstance(limit, int):
        if parsed_name is None:
            raise ArtifactFormatError(path, "missing character_limit")
        limit = parsed_name[1]

    score = metadata.get("priority_score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        score = 0

    return Artifact(
        document_id=document_id,
        category=str(metadata.get("category") or document_id.split("--", 1)[0]),
        source_path=str(metadata.get("source_path") or ""),
        length_budget=limit,
        last_update=parse_timestamp(metadata.get("last_update")),
        completion_status=str(metadata.get("completion_status") or ""),
        workflow_stage=str(metadata.get("workflow_stage") or ""),
        priority_score=int(score),
        priority_tier=str(metadata.get("priority_tier") or ""),
        body=body,
        path=path,
    )


__all__ = [
    "ARTIFACT_FIELDS",
    "ArtifactFormatError",
    "ArtifactStore",
    "artifact_from_metadata",
    "artifact_metadata",
    "format_timestamp",
    "parse_artifact_name",
    "parse_timestamp",
    "utc_now",
]
