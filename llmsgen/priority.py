"""Priority assignment for discovered documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .config import LLMSConfig
from .logging import get_logger
from .models import Document, PriorityRecord, Tier
from .source_tree import SourceTreeReader
from .stores import PriorityStore

MIN_SCORE = 0
MAX_SCORE = 100

HIGH_TIER_MIN = 80
MEDIUM_TIER_MIN = 50

ENTRY_POINT_BONUS = 5
DEPTH_PENALTY = 3
MAX_DEPTH_PENALTY = 9
SMALL_DOCUMENT_BYTES = 500
SMALL_DOCUMENT_PENALTY = 5

_ENTRY_POINT_KEYWORDS: Tuple[str, ...] = (
    "getting-started",
    "overview",
    "introduction",
    "quick-start",
    "quickstart",
    "setup",
    "installation",
)

ASSIGNED_STAGE = "priority_assigned"


def tier_for_score(score: int) -> Tier:
    """Map a score onto its fixed band; monotonic in ``score``."""
    if score >= HIGH_TIER_MIN:
        return Tier.HIGH
    if score >= MEDIUM_TIER_MIN:
        return Tier.MEDIUM
    return Tier.LOW


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


@dataclass
class PriorityError:
    """A document whose record could not be produced or written."""

    document_id: str
    error: str


@dataclass
class PriorityAssignmentResult:
    """Summary of a priority assignment batch."""

    generated: List[PriorityRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[PriorityError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.errors


class PriorityAssigner:
    """Scores documents from category weights plus small heuristics and persists the records."""

    def __init__(
        self,
        config: LLMSConfig,
        *,
        store: PriorityStore | None = None,
        reader: SourceTreeReader | None = None,
    ) -> None:
        self.config = config
        self.store = store or PriorityStore(config.paths.data_dir)
        self.reader = reader or SourceTreeReader(config)
        self.logger = get_logger("priority")

    def assign(
        self,
        documents: Sequence[Document],
        *,
        overwrite: bool = False,
        dry_run: bool = False,
    ) -> PriorityAssignmentResult:
        """Generate one record per document; existing records are kept unless ``overwrite``."""
        result = PriorityAssignmentResult(dry_run=dry_run)
        for document in documents:
            if not overwrite and self.store.exists(document.language, document.id):
                self.logger.debug("Skipping %s (priority record exists)", document.id)
                result.skipped.append(document.id)
                continue
            try:
                record = self.compute(document)
                if dry_run:
                    self.logger.info("[dry-run] Would write priority for %s (%d)", document.id, record.score)
                else:
                    self.store.save(document.language, record)
                    self.logger.debug("Wrote priority for %s (%d, %s)", document.id, record.score, record.tier.value)
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Failed to assign priority for %s: %s", document.id, exc)
                result.errors.append(PriorityError(document_id=document.id, error=str(exc)))
                continue
            result.generated.append(record)

        self.logger.info(
            "Priority assignment: %d generated, %d skipped, %d errors%s",
            len(result.generated),
            len(result.skipped),
            len(result.errors),
            " (dry-run)" if dry_run else "",
        )
        return result

    def compute(self, document: Document) -> PriorityRecord:
        """Score a single document without touching the store."""
        weight = self.config.category_priority(document.category)
        adjustment, reasons = score_adjustment(document)
        score = clamp_score(weight + adjustment)
        rationale_parts = [f"category '{document.category}' weight {weight}"]
        rationale_parts.extend(reasons)
        if score != weight + adjustment:
            rationale_parts.append(f"clamped to {score}")

        return PriorityRecord(
            document_id=document.id,
            title=self.reader.title_for(document, self.reader.read_source(document)),
            source_path=document.source_path,
            category=document.category,
            score=score,
            tier=tier_for_score(score),
            rationale="; ".join(rationale_parts),
            target_audience=self.config.category_audience(document.category),
            workflow_stage=ASSIGNED_STAGE,
        )


def score_adjustment(document: Document) -> Tuple[int, List[str]]:
    """Return the heuristic adjustment applied on top of the category weight."""
    adjustment = 0
    reasons: List[str] = []

    slug = document.slug
    if any(keyword in slug for keyword in _ENTRY_POINT_KEYWORDS):
        adjustment += ENTRY_POINT_BONUS
        reasons.append(f"+{ENTRY_POINT_BONUS} entry-point document")

    depth = max(document.source_path.count("/") - 1, 0)
    if depth:
        penalty = min(depth * DEPTH_PENALTY, MAX_DEPTH_PENALTY)
        adjustment -= penalty
        reasons.append(f"-{penalty} nested {depth} level(s) below category")

    if document.size_bytes < SMALL_DOCUMENT_BYTES:
        adjustment -= SMALL_DOCUMENT_PENALTY
        reasons.append(f"-{SMALL_DOCUMENT_PENALTY} short document")

    return adjustment, reasons


__all__ = [
    "PriorityAssigner",
    "PriorityAssignmentResult",
    "PriorityError",
    "clamp_score",
    "score_adjustment",
    "tier_for_score",
]
