"""Core data models shared across llmsgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple


class Tier(str, Enum):
    """Coarse priority band derived from a numeric score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ArtifactState(IntEnum):
    """Lifecycle of an artifact, in increasing completion order."""

    MISSING = 0
    PLACEHOLDER = 1
    DRAFTED = 2
    REVIEWED = 3
    APPROVED = 4
    COMPLETED = 5

    @property
    def label(self) -> str:
        return self.name.lower()


class Pattern(str, Enum):
    """Assembly pattern for a composed output."""

    STANDARD = "standard"
    MINIMUM = "minimum"
    ORIGIN = "origin"


class TieBreak(str, Enum):
    """Ordering applied between documents with equal priority scores."""

    CATEGORY_WEIGHT_THEN_ID = "category_weight_then_id"
    DOCUMENT_ID = "document_id"


class WorkAction(str, Enum):
    """Recommended next step for a (document, length budget) pair."""

    GENERATE_PRIORITY = "generate_priority"
    MATERIALIZE_TEMPLATE = "materialize_template"
    REPLACE_PLACEHOLDER = "replace_placeholder"
    REVIEW_DRAFT = "review_draft"
    APPROVE = "approve"
    MARK_COMPLETED = "mark_completed"
    UPDATE_FROM_SOURCE = "update_from_source"
    NONE = "none"


@dataclass(frozen=True)
class Document:
    """A source document discovered under a language tree."""

    id: str
    language: str
    category: str
    source_path: str
    size_bytes: int
    modified_at: datetime

    @property
    def slug(self) -> str:
        prefix = f"{self.category}--"
        if self.id.startswith(prefix):
            return self.id[len(prefix):]
        return self.id


@dataclass(frozen=True)
class PriorityRecord:
    """Persisted priority assignment for one document."""

    document_id: str
    title: str
    source_path: str
    category: str
    score: int
    tier: Tier
    rationale: str = ""
    target_audience: Tuple[str, ...] = ()
    workflow_stage: str = "priority_assigned"


@dataclass(frozen=True)
class Artifact:
    """One length-budgeted derivative of a document, as stored on disk."""

    document_id: str
    category: str
    source_path: str
    length_budget: int
    last_update: Optional[datetime]
    completion_status: str
    workflow_stage: str
    priority_score: int
    priority_tier: str
    body: str
    path: Optional[Path] = None


@dataclass(frozen=True)
class CompositionRequest:
    """Ephemeral input to the composer."""

    language: str
    pattern: Pattern = Pattern.STANDARD
    total_budget: Optional[int] = None
    category_filter: Optional[FrozenSet[str]] = None
    priority_threshold: Optional[int] = None
    tier_filter: Optional[FrozenSet[Tier]] = None
    include_toc: bool = False
    toc_budget: int = 100


@dataclass(frozen=True)
class IncludedDocument:
    """A document selected into a composed output."""

    document_id: str
    title: str
    category: str
    priority_score: int
    length_budget: Optional[int]
    characters: int


@dataclass(frozen=True)
class ExcludedDocument:
    """A candidate left out of a composition and why."""

    document_id: str
    reason: str


@dataclass
class ComposedOutput:
    """Result of a single composition run."""

    pattern: Pattern
    language: str
    total_budget: Optional[int]
    generated_at: datetime
    header: str
    body: str
    documents: List[IncludedDocument] = field(default_factory=list)
    excluded: List[ExcludedDocument] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.documents

    @property
    def content(self) -> str:
        if not self.body:
            return self.header.rstrip("\n") + "\n"
        return f"{self.header.rstrip()}\n\n{self.body}\n"


@dataclass(frozen=True)
class WorkItem:
    """Diagnostic view of one (document, length budget) pair."""

    document_id: str
    category: str
    language: str
    length_budget: int
    state: ArtifactState
    needs_update: bool
    has_priority: bool
    priority_score: int
    action: WorkAction


__all__ = [
    "Artifact",
    "ArtifactState",
    "ComposedOutput",
    "CompositionRequest",
    "Document",
    "ExcludedDocument",
    "IncludedDocument",
    "Pattern",
    "PriorityRecord",
    "Tier",
    "TieBreak",
    "WorkAction",
    "WorkItem",
]
