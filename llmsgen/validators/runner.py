"""Runs validators over persisted state with a bounded worker pool."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Sequence

from ..config import LLMSConfig
from ..logging import get_logger
from ..source_tree import SourceTreeReader
from ..stores import ArtifactStore, PriorityStore
from .base import (
    TARGETS,
    AggregateValidationReport,
    ValidationContext,
    ValidationIssue,
    ValidationOptions,
    ValidationReport,
    Validator,
)
from .config import ConfigValidator
from .content import ContentValidator
from .frontmatter import FrontmatterValidator
from .priority import PriorityValidator

_VALIDATORS: Dict[str, Callable[[ValidationContext], Validator]] = {
    "config": ConfigValidator,
    "priority": PriorityValidator,
    "frontmatter": FrontmatterValidator,
    "content": ContentValidator,
}


class UnknownTargetError(ValueError):
    """Raised when a validation target name is not recognised."""

    def __init__(self, target: str) -> None:
        super().__init__(f"Unknown validation target {target!r}; expected one of: {', '.join(TARGETS)}")
        self.target = target


class ValidationRunner:
    """Checks targets in declared order; files within a target are checked in parallel."""

    def __init__(
        self,
        config: LLMSConfig,
        *,
        artifact_store: ArtifactStore | None = None,
        priority_store: PriorityStore | None = None,
        reader: SourceTreeReader | None = None,
    ) -> None:
        self.config = config
        self.artifact_store = artifact_store or ArtifactStore(config.paths.data_dir)
        self.priority_store = priority_store or PriorityStore(config.paths.data_dir)
        self.reader = reader or SourceTreeReader(config)
        self.logger = get_logger("validators")

    def validate(self, target: str, options: ValidationOptions | None = None) -> ValidationReport:
        options = options or ValidationOptions()
        validator = create_validator(target, self._context(options))
        items = list(validator.items())
        results = self._check_all(validator, items, options.max_concurrent)

        fixed = 0
        if options.fix:
            for index, (item, issues) in enumerate(zip(items, results)):
                if not any(issue.fixable for issue in issues):
                    continue
                count = validator.fix(item, issues)
                if count:
                    fixed += count
                    results[index] = validator.check(item)

        report = ValidationReport(target=target, fixed=fixed)
        for issues in results:
            report.issues.extend(issues)
            if any(issue.is_error for issue in issues):
                report.failed += 1
            else:
                report.passed += 1

        self.logger.info(
            "Validated %s: %d passed, %d failed, %d issue(s), %d fixed",
            target,
            report.passed,
            report.failed,
            len(report.issues),
            report.fixed,
        )
        return report

    def validate_all(
        self,
        options: ValidationOptions | None = None,
        targets: Sequence[str] = TARGETS,
    ) -> AggregateValidationReport:
        options = options or ValidationOptions()
        aggregate = AggregateValidationReport()
        stopped = False
        for target in targets:
            if stopped:
                aggregate.reports.append(ValidationReport(target=target, skipped=True))
                continue
            report = self.validate(target, options)
            aggregate.reports.append(report)
            if not report.success and not options.continue_on_error:
                self.logger.warning("Stopping after %s failed; remaining targets skipped", target)
                stopped = True
        return aggregate

    def _context(self, options: ValidationOptions) -> ValidationContext:
        languages: Sequence[str] = (options.language,) if options.language else self.config.supported_languages
        return ValidationContext(
            config=self.config,
            languages=tuple(languages),
            strict=options.strict,
            artifact_store=self.artifact_store,
            priority_store=self.priority_store,
            reader=self.reader,
        )

    @staticmethod
    def _check_all(validator: Validator, items: List, max_concurrent: int) -> List[List[ValidationIssue]]:
        """Check ``items`` concurrently; results keep submission order."""
        results: List[List[ValidationIssue]] = [[] for _ in items]
        if not items:
            return results
        workers = max(1, min(max_concurrent, len(items)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_map = {executor.submit(validator.check, item): index for index, item in enumerate(items)}
            for future in as_completed(future_map):
                results[future_map[future]] = future.result()
        return results


def create_validator(target: str, context: ValidationContext) -> Validator:
    factory = _VALIDATORS.get(target)
    if factory is None:
        raise UnknownTargetError(target)
    return factory(context)


__all__ = ["UnknownTargetError", "ValidationRunner", "create_validator"]
