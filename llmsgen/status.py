"""Derived artifact states and the diagnostic work list."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .config import LLMSConfig
from .logging import get_logger
from .markdown import is_placeholder, strip_frontmatter
from .models import Artifact, ArtifactState, Document, PriorityRecord, WorkAction, WorkItem
from .stores import ArtifactFormatError, ArtifactStore, PriorityRecordError, PriorityStore
from .stores.artifact_store import parse_timestamp

COMPLETION_STATUSES: Dict[str, ArtifactState] = {
    "template": ArtifactState.PLACEHOLDER,
    "draft": ArtifactState.DRAFTED,
    "review": ArtifactState.REVIEWED,
    "approved": ArtifactState.APPROVED,
    "completed": ArtifactState.COMPLETED,
}

WORKFLOW_STAGES: Dict[str, ArtifactState] = {
    "template_generation": ArtifactState.PLACEHOLDER,
    "content_drafting": ArtifactState.DRAFTED,
    "content_review": ArtifactState.REVIEWED,
    "quality_validation": ArtifactState.REVIEWED,
    "final_approval": ArtifactState.APPROVED,
    "published": ArtifactState.COMPLETED,
}

_STATE_ACTIONS: Dict[ArtifactState, WorkAction] = {
    ArtifactState.MISSING: WorkAction.MATERIALIZE_TEMPLATE,
    ArtifactState.PLACEHOLDER: WorkAction.REPLACE_PLACEHOLDER,
    ArtifactState.DRAFTED: WorkAction.REVIEW_DRAFT,
    ArtifactState.REVIEWED: WorkAction.APPROVE,
    ArtifactState.APPROVED: WorkAction.MARK_COMPLETED,
    ArtifactState.COMPLETED: WorkAction.NONE,
}


def derive_state(metadata: Optional[Mapping[str, Any]], body: str, present: bool) -> ArtifactState:
    """Return the lifecycle state implied by an artifact's literal contents.

    The placeholder check wins over any recorded status, so a file marked
    ``completed`` that still carries the marker is reported as a placeholder.
    Authored bodies never fall below ``DRAFTED``.
    """
    if not present:
        return ArtifactState.MISSING
    if is_placeholder(body):
        return ArtifactState.PLACEHOLDER

    metadata = metadata or {}
    implied = [ArtifactState.DRAFTED]
    status = metadata.get("completion_status")
    if isinstance(status, str) and status.strip().lower() in COMPLETION_STATUSES:
        implied.append(COMPLETION_STATUSES[status.strip().lower()])
    stage = metadata.get("workflow_stage")
    if isinstance(stage, str) and stage.strip().lower() in WORKFLOW_STAGES:
        implied.append(WORKFLOW_STAGES[stage.strip().lower()])
    return max(implied)


def needs_update(last_update: Any, source_modified_at: datetime) -> bool:
    """Return True when the artifact predates its source or carries no usable timestamp."""
    recorded = parse_timestamp(last_update)
    if recorded is None:
        return True
    return recorded < source_modified_at


def malformed_state(path: Path) -> ArtifactState:
    """State of a file whose frontmatter is unusable, judged from its body alone.

    Bytes that cannot be read at all count as authored text.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ArtifactState.DRAFTED
    return derive_state(None, strip_frontmatter(text), True)


def state_for_artifact(artifact: Optional[Artifact]) -> ArtifactState:
    if artifact is None:
        return ArtifactState.MISSING
    metadata = {
        "completion_status": artifact.completion_status,
        "workflow_stage": artifact.workflow_stage,
    }
    return derive_state(metadata, artifact.body, True)


@dataclass(frozen=True)
class StateReport:
    """State of one (document, length budget) pair as read from disk."""

    state: ArtifactState
    needs_update: bool
    artifact: Optional[Artifact] = None
    error: Optional[str] = None


@dataclass
class WorkSummary:
    """Counts over a work list."""

    total: int = 0
    by_state: Dict[str, int] = field(default_factory=dict)
    needs_update: int = 0
    missing_priority: int = 0

    @property
    def completed(self) -> int:
        return self.by_state.get(ArtifactState.COMPLETED.label, 0)


class ArtifactStateTracker:
    """Reads artifacts from the store and reports their derived state."""

    def __init__(
        self,
        config: LLMSConfig,
        *,
        artifact_store: ArtifactStore | None = None,
        priority_store: PriorityStore | None = None,
    ) -> None:
        self.config = config
        self.artifact_store = artifact_store or ArtifactStore(config.paths.data_dir)
        self.priority_store = priority_store or PriorityStore(config.paths.data_dir)
        self.logger = get_logger("status")

    def derive_state(self, document: Document, length_budget: int) -> StateReport:
        try:
            artifact = self.artifact_store.load(document.language, document.id, length_budget)
        except ArtifactFormatError as exc:
            self.logger.warning("Artifact for %s (%d) is malformed: %s", document.id, length_budget, exc)
            return StateReport(state=malformed_state(exc.path), needs_update=True, error=str(exc))
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Artifact for %s (%d) is unreadable: %s", document.id, length_budget, exc)
            return StateReport(state=ArtifactState.DRAFTED, needs_update=True, error=str(exc))

        state = state_for_artifact(artifact)
        if artifact is None:
            return StateReport(state=state, needs_update=False)
        return StateReport(
            state=state,
            needs_update=needs_update(artifact.last_update, document.modified_at),
            artifact=artifact,
        )

    def work_items(
        self,
        documents: Sequence[Document],
        length_budgets: Sequence[int] | None = None,
    ) -> List[WorkItem]:
        """Build the work list for ``documents`` across ``length_budgets``.

        Items needing an update come first, then the least complete states,
        then higher priorities, then document id.
        """
        budgets = sorted(set(length_budgets if length_budgets is not None else self.config.character_limits))
        records = self._load_records(documents)

        items: List[WorkItem] = []
        for document in documents:
            record = records.get((document.language, document.id))
            for budget in budgets:
                report = self.derive_state(document, budget)
                items.append(self._work_item(document, budget, report, record))

        items.sort(
            key=lambda item: (
                not item.needs_update,
                int(item.state),
                -item.priority_score,
                item.document_id,
                item.length_budget,
            )
        )
        self.logger.debug("Built %d work items for %d documents", len(items), len(documents))
        return items

    def _work_item(
        self,
        document: Document,
        budget: int,
        report: StateReport,
        record: Optional[PriorityRecord],
    ) -> WorkItem:
        if record is not None:
            score = record.score
        elif report.artifact is not None:
            score = report.artifact.priority_score
        else:
            score = self.config.category_priority(document.category)

        if record is None:
            action = WorkAction.GENERATE_PRIORITY
        elif report.needs_update:
            action = WorkAction.UPDATE_FROM_SOURCE
        else:
            action = _STATE_ACTIONS[report.state]

        return WorkItem(
            document_id=document.id,
            category=document.category,
            language=document.language,
            length_budget=budget,
            state=report.state,
            needs_update=report.needs_update,
            has_priority=record is not None,
            priority_score=score,
            action=action,
        )

    def _load_records(self, documents: Iterable[Document]) -> Dict[tuple, PriorityRecord]:
        records: Dict[tuple, PriorityRecord] = {}
        for document in documents:
            try:
                record = self.priority_store.load(document.language, document.id)
            except PriorityRecordError as exc:
                self.logger.warning("Ignoring malformed priority record: %s", exc)
                continue
            if record is not None:
                records[(document.language, document.id)] = record
        return records


def summarize(items: Iterable[WorkItem]) -> WorkSummary:
    summary = WorkSummary(by_state={state.label: 0 for state in ArtifactState})
    for item in items:
        summary.total += 1
        summary.by_state[item.state.label] += 1
        if item.needs_update:
            summary.needs_update += 1
        if not item.has_priority:
            summary.missing_priority += 1
    return summary


__all__ = [
    "ArtifactStateTracker",
    "COMPLETION_STATUSES",
    "StateReport",
    "WORKFLOW_STAGES",
    "WorkSummary",
    "derive_state",
    "malformed_state",
    "needs_update",
    "state_for_artifact",
    "summarize",
]
