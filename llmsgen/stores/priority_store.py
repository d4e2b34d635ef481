"""Flat-file persistence for per-document priority records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..logging import get_logger
from ..models import PriorityRecord, Tier

PRIORITY_FILENAME = "priority.json"


class PriorityRecordError(ValueError):
    """Raised when a priority.json file cannot be parsed into a record."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class PriorityStore:
    """Reads and writes ``<data_dir>/<language>/<document_id>/priority.json``."""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self.logger = get_logger("stores.priority")

    def language_dir(self, language: str) -> Path:
        return self._data_dir / language

    def path_for(self, language: str, document_id: str) -> Path:
        return self.language_dir(language) / document_id / PRIORITY_FILENAME

    def exists(self, language: str, document_id: str) -> bool:
        return self.path_for(language, document_id).is_file()

    def load(self, language: str, document_id: str) -> Optional[PriorityRecord]:
        """Return the stored record, ``None`` when absent.

        Raises :class:`PriorityRecordError` when the file exists but is malformed.
        """
        path = self.path_for(language, document_id)
        if not path.is_file():
            return None
        return record_from_dict(self.read_raw(path), path=path)

    def load_all(self, language: str) -> Dict[str, PriorityRecord]:
        """Return every parsable record for ``language``; malformed files are skipped."""
        records: Dict[str, PriorityRecord] = {}
        for path in self.iter_paths(language):
            try:
                record = record_from_dict(self.read_raw(path), path=path)
            except PriorityRecordError as exc:
                self.logger.warning("Skipping malformed priority record: %s", exc)
                continue
            records[record.document_id] = record
        return records

    def save(self, language: str, record: PriorityRecord) -> Path:
        path = self.path_for(language, record.document_id)
        self.write_raw(path, record_to_dict(record))
        return path

    def iter_paths(self, language: str) -> List[Path]:
        root = self.language_dir(language)
        if not root.is_dir():
            return []
        return sorted(
            entry / PRIORITY_FILENAME
            for entry in root.iterdir()
            if entry.is_dir() and (entry / PRIORITY_FILENAME).is_file()
        )

    # ------------------------------------------------------------------
    # Raw payload access for validators

    def read_raw(self, path: Path) -> Dict[str, Any]:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise PriorityRecordError(path, f"unreadable: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise PriorityRecordError(path, f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise PriorityRecordError(path, "root must be an object")
        return payload

    def write_raw(self, path: Path, payload: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def record_to_dict(record: PriorityRecord) -> Dict[str, Any]:
    return {
        "document": {
            "id": record.document_id,
            "title": record.title,
            "source_path": record.source_path,
            "category": record.category,
        },
        "priority": {
            "score": record.score,
            "tier": record.tier.value,
            "rationale": record.rationale,
        },
        "purpose": {
            "target_audience": list(record.target_audience),
        },
        "workflow_stage": record.workflow_stage,
    }


def record_from_dict(payload: Dict[str, Any], *, path: Path) -> PriorityRecord:
    document = payload.get("document")
    priority = payload.get("priority")
    if not isinstance(document, dict):
        raise PriorityRecordError(path, "missing 'document' section")
    if not isinstance(priority, dict):
        raise PriorityRecordError(path, "missing 'priority' section")

    document_id = document.get("id")
    if not isinstance(document_id, str) or not document_id:
        raise PriorityRecordError(path, "missing document.id")
    score = priority.get("score")
    if isinstance(score, bool) or not isinstance(score, int):
        raise PriorityRecordError(path, "priority.score must be an integer")
    tier_value = priority.get("tier")
    try:
        tier = Tier(tier_value)
    except ValueError as exc:
        raise PriorityRecordError(path, f"unknown tier {tier_value!r}") from exc

    purpose = payload.get("purpose")
    audience_raw = purpose.get("target_audience") if isinstance(purpose, dict) else None
    audience = tuple(str(item) for item in audience_raw) if isinstance(audience_raw, list) else ()

    return PriorityRecord(
        document_id=document_id,
        title=str(document.get("title") or document_id),
        source_path=str(document.get("source_path") or ""),
        category=str(document.get("category") or document_id.split("--", 1)[0]),
        score=score,
        tier=tier,
        rationale=str(priority.get("rationale") or ""),
        target_audience=audience,
        workflow_stage=str(payload.get("workflow_stage") or "priority_assigned"),
    )


__all__ = ["PRIORITY_FILENAME", "PriorityRecordError", "PriorityStore", "record_from_dict", "record_to_dict"]
