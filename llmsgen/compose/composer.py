"""Adaptive composition of llms outputs under a character budget."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from jinja2 import Environment

from ..config import LLMSConfig
from ..logging import get_logger
from ..markdown import title_from_slug
from ..models import (
    Artifact,
    ArtifactState,
    ComposedOutput,
    CompositionRequest,
    Document,
    ExcludedDocument,
    IncludedDocument,
    Pattern,
    PriorityRecord,
    Tier,
)
from ..priority import tier_for_score
from ..source_tree import SourceTreeReader
from ..status import state_for_artifact
from ..stores import ArtifactStore, PriorityStore
from ..stores.artifact_store import parse_artifact_name, utc_now
from ..templates import create_environment
from . import render
from .packing import PackingCandidate, PackingResult, PackingUnit, PriorityFirstFit

FILTERED = "filtered"
BELOW_THRESHOLD = "below_threshold"
NOT_READY = "not_ready"
UNREADABLE = "unreadable"


class CompositionError(ValueError):
    """Raised for composition requests that cannot be satisfied at all."""


@dataclass
class BatchError:
    target: str
    error: str


@dataclass
class BatchCompositionResult:
    outputs: List[ComposedOutput] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    errors: List[BatchError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class CompositionStats:
    """Overview of what the composer could draw on for a language."""

    language: str
    total_documents: int = 0
    documents_with_content: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    by_tier: Dict[str, int] = field(default_factory=dict)
    by_state: Dict[str, int] = field(default_factory=dict)
    available_budgets: List[int] = field(default_factory=list)
    average_priority: float = 0.0
    total_characters: int = 0


class AdaptiveComposer:
    """Assembles standard, minimum and origin outputs from persisted state."""

    def __init__(
        self,
        config: LLMSConfig,
        *,
        artifact_store: ArtifactStore | None = None,
        priority_store: PriorityStore | None = None,
        reader: SourceTreeReader | None = None,
        environment: Environment | None = None,
        policy: PriorityFirstFit | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.artifact_store = artifact_store or ArtifactStore(config.paths.data_dir)
        self.priority_store = priority_store or PriorityStore(config.paths.data_dir)
        self.reader = reader or SourceTreeReader(config)
        self._env = environment or create_environment()
        self.policy = policy or PriorityFirstFit(config.tie_break)
        self._clock = clock
        self.logger = get_logger("compose")

    # ------------------------------------------------------------------
    # Public entry points

    def compose(self, request: CompositionRequest) -> ComposedOutput:
        if request.total_budget is not None and request.total_budget < 0:
            raise CompositionError(f"total_budget must not be negative (got {request.total_budget})")
        if request.include_toc and request.toc_budget < 0:
            raise CompositionError(f"toc_budget must not be negative (got {request.toc_budget})")

        generated_at = self._clock()
        if request.pattern is Pattern.MINIMUM:
            budget, result, excluded = self._pack_minimum(request)
            body = render.render_index(result.selected)
        elif request.pattern is Pattern.ORIGIN:
            budget = None
            result, excluded = self._pack_origin(request)
            body = render.join_sections(result.selected)
        else:
            budget = request.total_budget
            result, excluded, toc = self._pack_standard(request)
            body = render.join_body(toc, render.join_sections(result.selected))

        excluded.extend(
            ExcludedDocument(document_id=candidate.document_id, reason=reason)
            for candidate, reason in result.excluded
        )
        documents = [
            IncludedDocument(
                document_id=selection.candidate.document_id,
                title=selection.candidate.title,
                category=selection.candidate.category,
                priority_score=selection.candidate.priority_score,
                length_budget=selection.unit.length_budget,
                characters=len(selection.unit.text),
            )
            for selection in result.selected
        ]
        header = render.render_header(
            self._env,
            project_name=self.config.project_name,
            pattern=request.pattern,
            language=request.language,
            generated_at=generated_at,
            character_limit=budget,
            document_count=len(documents),
        )
        output = ComposedOutput(
            pattern=request.pattern,
            language=request.language,
            total_budget=budget,
            generated_at=generated_at,
            header=header,
            body=body,
            documents=documents,
            excluded=excluded,
        )
        self.logger.info(
            "Composed %s/%s: %d included, %d excluded, %d characters",
            request.pattern.value,
            request.language,
            len(documents),
            len(excluded),
            len(body),
        )
        return output

    def batch_compose(
        self,
        request: CompositionRequest,
        length_budgets: Sequence[int] | None = None,
        output_dir: Path | None = None,
    ) -> BatchCompositionResult:
        """Compose once per budget (standard) or once (minimum/origin) and write each output."""
        target_dir = output_dir or self.config.paths.output_dir
        result = BatchCompositionResult()

        if request.pattern is Pattern.STANDARD:
            budgets = sorted(set(length_budgets if length_budgets is not None else self.config.character_limits))
            requests = [replace(request, total_budget=budget) for budget in budgets]
        else:
            requests = [request]

        for item in requests:
            name = self.output_name(item)
            try:
                output = self.compose(item)
            except CompositionError as exc:
                result.errors.append(BatchError(target=name, error=str(exc)))
                continue
            result.outputs.append(output)
            path = target_dir / name
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(output.content, encoding="utf-8")
            except OSError as exc:
                self.logger.warning("Failed to write %s: %s", path, exc)
                result.errors.append(BatchError(target=name, error=str(exc)))
                continue
            result.written.append(path)

        self.logger.info("Batch compose wrote %d file(s), %d error(s)", len(result.written), len(result.errors))
        return result

    def output_name(self, request: CompositionRequest) -> str:
        extension = self.config.output_format
        if request.pattern is Pattern.MINIMUM:
            return f"llms-minimum-{request.language}.{extension}"
        if request.pattern is Pattern.ORIGIN:
            return f"llms-origin-{request.language}.{extension}"
        return f"llms-{request.language}-{request.total_budget}.{extension}"

    def stats(self, language: str) -> CompositionStats:
        artifacts = self.artifact_store.load_all(language)
        records = self.priority_store.load_all(language)
        stats = CompositionStats(language=language)

        budgets = set()
        scores: List[int] = []
        categories: Counter = Counter()
        tiers: Counter = Counter()
        states: Counter = Counter({state.label: 0 for state in ArtifactState if state is not ArtifactState.MISSING})

        for document_id in sorted(set(artifacts) | set(records)):
            record = records.get(document_id)
            document_artifacts = artifacts.get(document_id, [])
            score, tier, category = _priority_of(record, document_artifacts)
            scores.append(score)
            categories[category] += 1
            tiers[tier] += 1
            has_content = False
            for artifact in document_artifacts:
                budgets.add(artifact.length_budget)
                state = state_for_artifact(artifact)
                states[state.label] += 1
                if state >= ArtifactState.DRAFTED:
                    has_content = True
                    stats.total_characters += len(artifact.body)
            if has_content:
                stats.documents_with_content += 1

        stats.total_documents = len(scores)
        stats.by_category = dict(sorted(categories.items()))
        stats.by_tier = {tier: tiers[tier] for tier in (Tier.HIGH.value, Tier.MEDIUM.value, Tier.LOW.value)}
        stats.by_state = dict(states)
        stats.available_budgets = sorted(budgets)
        stats.average_priority = round(sum(scores) / len(scores), 1) if scores else 0.0
        return stats

    # ------------------------------------------------------------------
    # Candidate gathering per pattern

    def _pack_standard(self, request: CompositionRequest) -> Tuple[PackingResult, List[ExcludedDocument], str]:
        artifacts, unreadable = self._load_artifacts(request.language)
        records = self.priority_store.load_all(request.language)
        excluded = [ExcludedDocument(document_id=document_id, reason=UNREADABLE) for document_id in unreadable]
        candidates: List[PackingCandidate] = []

        for document_id in sorted(artifacts):
            record = records.get(document_id)
            ready = [artifact for artifact in artifacts[document_id] if state_for_artifact(artifact) >= ArtifactState.DRAFTED]
            score, tier, category = _priority_of(record, artifacts[document_id])
            reason = self._filter_reason(request, category, tier, score)
            if reason is not None:
                excluded.append(ExcludedDocument(document_id=document_id, reason=reason))
                continue
            if not ready:
                excluded.append(ExcludedDocument(document_id=document_id, reason=NOT_READY))
                continue
            title = _title_of(document_id, category, record)
            candidates.append(
                PackingCandidate(
                    document_id=document_id,
                    title=title,
                    category=category,
                    priority_score=score,
                    category_weight=self.config.category_priority(category),
                    tier=tier,
                    source_path=record.source_path if record else ready[0].source_path,
                    units=tuple(
                        PackingUnit(length_budget=artifact.length_budget, text=render.section_text(title, artifact.body))
                        for artifact in ready
                    ),
                )
            )

        toc, budget = self._table_of_contents(request, candidates)
        result = self.policy.pack(candidates, budget, render.section_cost)
        return result, excluded, toc

    def _table_of_contents(
        self, request: CompositionRequest, candidates: Sequence[PackingCandidate]
    ) -> Tuple[str, Optional[int]]:
        """Render the contents list and return it with the budget left for sections.

        The list is charged before any section is packed; each section cost
        already covers the separator that joins it. When the list uses up the
        budget the output holds the list alone.
        """
        budget = request.total_budget
        if not request.include_toc or not candidates:
            return "", budget
        limit = request.toc_budget if budget is None else min(request.toc_budget, budget)
        toc = render.table_of_contents([candidate.title for candidate in self.policy.order(candidates)], limit)
        if toc and budget is not None:
            budget = max(0, budget - len(toc))
        return toc, budget

    def _pack_minimum(self, request: CompositionRequest) -> Tuple[int, PackingResult, List[ExcludedDocument]]:
        budget = self.config.minimum_budget
        if request.total_budget is not None:
            budget = min(request.total_budget, budget)

        records = self.priority_store.load_all(request.language)
        artifacts, unreadable = self._load_artifacts(request.language)
        excluded = [
            ExcludedDocument(document_id=document_id, reason=UNREADABLE)
            for document_id in unreadable
            if document_id not in records
        ]
        candidates: List[PackingCandidate] = []

        for document_id in sorted(set(records) | set(artifacts)):
            record = records.get(document_id)
            document_artifacts = artifacts.get(document_id, [])
            score, tier, category = _priority_of(record, document_artifacts)
            reason = self._filter_reason(request, category, tier, score)
            if reason is not None:
                excluded.append(ExcludedDocument(document_id=document_id, reason=reason))
                continue
            title = _title_of(document_id, category, record)
            source_path = record.source_path if record else document_artifacts[0].source_path
            candidates.append(
                PackingCandidate(
                    document_id=document_id,
                    title=title,
                    category=category,
                    priority_score=score,
                    category_weight=self.config.category_priority(category),
                    tier=tier,
                    source_path=source_path,
                    units=(PackingUnit(length_budget=None, text=render.index_line(title, source_path, score, tier)),),
                )
            )

        result = self.policy.pack(candidates, budget, render.index_cost)
        return budget, result, excluded

    def _pack_origin(self, request: CompositionRequest) -> Tuple[PackingResult, List[ExcludedDocument]]:
        documents = self.reader.discover(request.language)
        records = self.priority_store.load_all(request.language)
        excluded: List[ExcludedDocument] = []
        candidates: List[PackingCandidate] = []

        for document in documents:
            if request.category_filter and document.category not in request.category_filter:
                excluded.append(ExcludedDocument(document_id=document.id, reason=FILTERED))
                continue
            try:
                text = self.reader.read_source(document)
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Skipping unreadable source %s: %s", document.source_path, exc)
                excluded.append(ExcludedDocument(document_id=document.id, reason=UNREADABLE))
                continue
            record = records.get(document.id)
            score, tier = self._document_priority(document, record)
            title = record.title if record else self.reader.title_for(document, text)
            candidates.append(
                PackingCandidate(
                    document_id=document.id,
                    title=title,
                    category=document.category,
                    priority_score=score,
                    category_weight=self.config.category_priority(document.category),
                    tier=tier,
                    source_path=document.source_path,
                    units=(
                        PackingUnit(
                            length_budget=None,
                            text=render.origin_section(title, document.source_path, score, tier, text),
                        ),
                    ),
                )
            )

        result = self.policy.pack(candidates, None, render.section_cost)
        return result, excluded

    def _load_artifacts(self, language: str) -> Tuple[Dict[str, List[Artifact]], List[str]]:
        """Load artifacts and list documents whose every artifact failed to load."""
        failures: List[Path] = []
        artifacts = self.artifact_store.load_all(language, failures=failures)
        failed_ids = set()
        for path in failures:
            parsed = parse_artifact_name(path.name)
            failed_ids.add(parsed[0] if parsed else path.parent.name)
        return artifacts, sorted(failed_ids - set(artifacts))

    def _document_priority(self, document: Document, record: Optional[PriorityRecord]) -> Tuple[int, str]:
        if record is not None:
            return record.score, record.tier.value
        score = self.config.category_priority(document.category)
        return score, tier_for_score(score).value

    @staticmethod
    def _filter_reason(request: CompositionRequest, category: str, tier: str, score: int) -> Optional[str]:
        if request.category_filter and category not in request.category_filter:
            return FILTERED
        if request.tier_filter and tier not in {item.value for item in request.tier_filter}:
            return FILTERED
        if request.priority_threshold is not None and score < request.priority_threshold:
            return BELOW_THRESHOLD
        return None


def _priority_of(record: Optional[PriorityRecord], artifacts: Sequence[Artifact]) -> Tuple[int, str, str]:
    """Return ``(score, tier, category)`` from the record, else the largest artifact's frontmatter."""
    if record is not None:
        return record.score, record.tier.value, record.category
    artifact = max(artifacts, key=lambda item: item.length_budget)
    tier = artifact.priority_tier if artifact.priority_tier in {item.value for item in Tier} else tier_for_score(artifact.priority_score).value
    return artifact.priority_score, tier, artifact.category


def _title_of(document_id: str, category: str, record: Optional[PriorityRecord]) -> str:
    if record is not None and record.title:
        return record.title
    slug = document_id[len(category) + 2:] if document_id.startswith(f"{category}--") else document_id
    return title_from_slug(slug)


__all__ = [
    "AdaptiveComposer",
    "BatchCompositionResult",
    "BatchError",
    "CompositionError",
    "CompositionStats",
]
