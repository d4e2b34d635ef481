"""Placeholder artifact materialization."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from jinja2 import Environment, FileSystemLoader

from .config import LLMSConfig
from .logging import get_logger
from .models import Artifact, ArtifactState, Document, PriorityRecord
from .priority import tier_for_score
from .source_tree import SourceTreeReader
from .status import malformed_state, state_for_artifact
from .stores import ArtifactFormatError, ArtifactStore, PriorityRecordError, PriorityStore
from .stores.artifact_store import utc_now

RESOURCES_DIR = Path(__file__).with_name("resources")
PLACEHOLDER_TEMPLATE = "placeholder.md.j2"

TEMPLATE_STATUS = "template"
TEMPLATE_STAGE = "template_generation"


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Return the Jinja environment used for placeholders and output headers."""
    loader = FileSystemLoader(str(templates_dir or RESOURCES_DIR))
    return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


@dataclass
class MaterializeError:
    document_id: str
    error: str


@dataclass
class MaterializeResult:
    """Aggregate of a materialization batch."""

    created: int = 0
    skipped: int = 0
    errors: List[MaterializeError] = field(default_factory=list)
    dry_run: bool = False


class TemplateMaterializer:
    """Writes placeholder artifacts for (document, length budget) pairs that lack one."""

    def __init__(
        self,
        config: LLMSConfig,
        *,
        artifact_store: ArtifactStore | None = None,
        priority_store: PriorityStore | None = None,
        reader: SourceTreeReader | None = None,
        environment: Environment | None = None,
        clock=utc_now,
    ) -> None:
        self.config = config
        self.artifact_store = artifact_store or ArtifactStore(config.paths.data_dir)
        self.priority_store = priority_store or PriorityStore(config.paths.data_dir)
        self.reader = reader or SourceTreeReader(config)
        self._env = environment or create_environment()
        self._clock = clock
        self.logger = get_logger("templates")

    def materialize(
        self,
        document: Document,
        length_budgets: Sequence[int] | None = None,
        *,
        overwrite: bool = False,
        dry_run: bool = False,
    ) -> int:
        """Create placeholders for ``document`` and return how many were written.

        With ``overwrite`` every existing artifact is replaced, authored ones included.
        """
        budgets = sorted(set(length_budgets if length_budgets is not None else self.config.character_limits))
        record = self._load_record(document)
        created = 0
        for budget in budgets:
            path = self.artifact_store.path_for(document.language, document.id, budget)
            if path.is_file():
                if not overwrite:
                    self.logger.debug("Skipping %s (exists)", path.name)
                    continue
                self._warn_if_authored(path)
            artifact = self._placeholder(document, budget, record)
            if dry_run:
                self.logger.info("[dry-run] Would write %s", path.name)
            else:
                self.artifact_store.write(document.language, artifact)
                self.logger.debug("Wrote placeholder %s", path.name)
            created += 1
        return created

    def materialize_all(
        self,
        documents: Sequence[Document],
        length_budgets: Sequence[int] | None = None,
        *,
        overwrite: bool = False,
        dry_run: bool = False,
    ) -> MaterializeResult:
        budgets = sorted(set(length_budgets if length_budgets is not None else self.config.character_limits))
        result = MaterializeResult(dry_run=dry_run)
        for document in documents:
            try:
                created = self.materialize(document, budgets, overwrite=overwrite, dry_run=dry_run)
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Failed to materialize templates for %s: %s", document.id, exc)
                result.errors.append(MaterializeError(document_id=document.id, error=str(exc)))
                continue
            result.created += created
            result.skipped += len(budgets) - created
        self.logger.info(
            "Templates: %d created, %d skipped, %d errors%s",
            result.created,
            result.skipped,
            len(result.errors),
            " (dry-run)" if dry_run else "",
        )
        return result

    def render_placeholder(self, document: Document, length_budget: int, record: PriorityRecord | None) -> str:
        score, tier = self._priority(document, record)
        template = self._env.get_template(PLACEHOLDER_TEMPLATE)
        return template.render(
            title=record.title if record is not None else self.reader.title_for(document),
            length_budget=length_budget,
            source_path=document.source_path,
            priority_score=score,
            priority_tier=tier,
            audience=record.target_audience if record is not None else self.config.category_audience(document.category),
        )

    def _placeholder(self, document: Document, length_budget: int, record: PriorityRecord | None) -> Artifact:
        score, tier = self._priority(document, record)
        return Artifact(
            document_id=document.id,
            category=document.category,
            source_path=document.source_path,
            length_budget=length_budget,
            last_update=self._clock(),
            completion_status=TEMPLATE_STATUS,
            workflow_stage=TEMPLATE_STAGE,
            priority_score=score,
            priority_tier=tier,
            body=self.render_placeholder(document, length_budget, record),
        )

    def _priority(self, document: Document, record: PriorityRecord | None) -> tuple[int, str]:
        if record is not None:
            return record.score, record.tier.value
        score = self.config.default_priority
        return score, tier_for_score(score).value

    def _load_record(self, document: Document) -> PriorityRecord | None:
        try:
            return self.priority_store.load(document.language, document.id)
        except PriorityRecordError as exc:
            self.logger.warning("Using default priority for %s: %s", document.id, exc)
            return None

    def _warn_if_authored(self, path: Path) -> None:
        try:
            state = state_for_artifact(self.artifact_store.load_path(path))
        except ArtifactFormatError:
            state = malformed_state(path)
        except (OSError, UnicodeDecodeError):
            state = ArtifactState.DRAFTED
        if state > ArtifactState.PLACEHOLDER:
            self.logger.warning("Overwriting authored artifact %s (%s)", path.name, state.label)


__all__ = [
    "MaterializeError",
    "MaterializeResult",
    "PLACEHOLDER_TEMPLATE",
    "RESOURCES_DIR",
    "TemplateMaterializer",
    "create_environment",
]
