"""Entry-point facade wiring the llmsgen components together."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .compose import AdaptiveComposer, BatchCompositionResult, CompositionStats
from .config import LLMSConfig, load_config
from .logging import get_logger
from .models import ComposedOutput, CompositionRequest, Document, WorkItem
from .priority import PriorityAssigner, PriorityAssignmentResult
from .source_tree import SourceTreeReader
from .status import ArtifactStateTracker
from .stores import ArtifactStore, PriorityStore
from .stores.artifact_store import utc_now
from .templates import MaterializeResult, TemplateMaterializer, create_environment
from .validators import (
    AggregateValidationReport,
    ValidationOptions,
    ValidationReport,
    ValidationRunner,
)


class Pipeline:
    """Coordinates discovery, priorities, templates, composition and validation.

    Every component shares the same config and stores; nothing is global.
    """

    def __init__(self, config: LLMSConfig, *, clock: Callable[[], datetime] = utc_now) -> None:
        self.config = config
        self.logger = get_logger("pipeline")
        self.reader = SourceTreeReader(config)
        self.priority_store = PriorityStore(config.paths.data_dir)
        self.artifact_store = ArtifactStore(config.paths.data_dir)
        environment = create_environment()
        self.assigner = PriorityAssigner(config, store=self.priority_store, reader=self.reader)
        self.tracker = ArtifactStateTracker(
            config, artifact_store=self.artifact_store, priority_store=self.priority_store
        )
        self.materializer = TemplateMaterializer(
            config,
            artifact_store=self.artifact_store,
            priority_store=self.priority_store,
            reader=self.reader,
            environment=environment,
            clock=clock,
        )
        self.composer = AdaptiveComposer(
            config,
            artifact_store=self.artifact_store,
            priority_store=self.priority_store,
            reader=self.reader,
            environment=environment,
            clock=clock,
        )
        self.validator = ValidationRunner(
            config,
            artifact_store=self.artifact_store,
            priority_store=self.priority_store,
            reader=self.reader,
        )

    @classmethod
    def from_path(cls, path: Path, **kwargs) -> "Pipeline":
        """Build a pipeline from ``llmsgen.yml`` at ``path`` (a file or its directory)."""
        return cls(load_config(path), **kwargs)

    def discover(self, language: Optional[str] = None) -> List[Document]:
        return self.reader.discover(language or self.config.default_language)

    def assign_priorities(
        self,
        language: Optional[str] = None,
        *,
        overwrite: bool = False,
        dry_run: bool = False,
    ) -> PriorityAssignmentResult:
        documents = self.discover(language)
        return self.assigner.assign(documents, overwrite=overwrite, dry_run=dry_run)

    def materialize_templates(
        self,
        language: Optional[str] = None,
        length_budgets: Sequence[int] | None = None,
        *,
        overwrite: bool = False,
        dry_run: bool = False,
    ) -> MaterializeResult:
        documents = self.discover(language)
        return self.materializer.materialize_all(
            documents, length_budgets, overwrite=overwrite, dry_run=dry_run
        )

    def work_items(
        self,
        language: Optional[str] = None,
        length_budgets: Sequence[int] | None = None,
    ) -> List[WorkItem]:
        return self.tracker.work_items(self.discover(language), length_budgets)

    def compose(self, request: CompositionRequest) -> ComposedOutput:
        return self.composer.compose(request)

    def batch_compose(
        self,
        request: CompositionRequest,
        length_budgets: Sequence[int] | None = None,
        output_dir: Path | None = None,
    ) -> BatchCompositionResult:
        return self.composer.batch_compose(request, length_budgets, output_dir)

    def stats(self, language: Optional[str] = None) -> CompositionStats:
        return self.composer.stats(language or self.config.default_language)

    def validate(self, target: str, options: ValidationOptions | None = None) -> ValidationReport:
        return self.validator.validate(target, options)

    def validate_all(self, options: ValidationOptions | None = None) -> AggregateValidationReport:
        return self.validator.validate_all(options)


__all__ = ["Pipeline"]
