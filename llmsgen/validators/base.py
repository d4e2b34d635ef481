"""Core validation data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence, TypeVar

from ..config import LLMSConfig
from ..source_tree import SourceTreeReader
from ..stores import ArtifactStore, PriorityStore

TARGETS = ("config", "priority", "frontmatter", "content")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """A single finding reported by a validator."""

    severity: Severity
    message: str
    location: str
    fixable: bool = False
    code: str = ""

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass(frozen=True)
class ValidationOptions:
    """Knobs for a validation run.

    ``language`` limits file-based targets to one language; ``None`` checks
    every supported language.
    """

    language: Optional[str] = None
    fix: bool = False
    strict: bool = False
    max_concurrent: int = 4
    continue_on_error: bool = True


@dataclass
class ValidationReport:
    """Outcome of validating one target."""

    target: str
    passed: int = 0
    failed: int = 0
    issues: List[ValidationIssue] = field(default_factory=list)
    fixed: int = 0
    skipped: bool = False

    @property
    def errors(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if not issue.is_error]

    @property
    def success(self) -> bool:
        return not self.skipped and self.failed == 0


@dataclass
class AggregateValidationReport:
    """Reports for several targets in declared order."""

    reports: List[ValidationReport] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(report.success for report in self.reports)

    @property
    def issues(self) -> List[ValidationIssue]:
        return [issue for report in self.reports for issue in report.issues]

    @property
    def fixed(self) -> int:
        return sum(report.fixed for report in self.reports)

    @property
    def skipped_targets(self) -> List[str]:
        return [report.target for report in self.reports if report.skipped]

    def report(self, target: str) -> Optional[ValidationReport]:
        for report in self.reports:
            if report.target == target:
                return report
        return None


@dataclass
class ValidationContext:
    """Shared state handed to every validator."""

    config: LLMSConfig
    languages: Sequence[str]
    strict: bool
    artifact_store: ArtifactStore
    priority_store: PriorityStore
    reader: SourceTreeReader

    def source_exists(self, language: str, source_path: str) -> bool:
        return (self.reader.language_root(language) / source_path).is_file()


ItemT = TypeVar("ItemT")


class Validator(Protocol[ItemT]):
    """Protocol implemented by target validators.

    ``check`` must be safe to call from worker threads; ``fix`` is only
    called sequentially.
    """

    name: str

    def items(self) -> Sequence[ItemT]:
        """Return the units checked independently (files, or the config)."""

    def check(self, item: ItemT) -> List[ValidationIssue]:
        """Return the issues found for ``item``."""

    def fix(self, item: ItemT, issues: Sequence[ValidationIssue]) -> int:
        """Correct the fixable ``issues`` in place and return how many were fixed."""


def location_for(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def issue(
    severity: Severity,
    code: str,
    message: str,
    location: str,
    *,
    fixable: bool = False,
) -> ValidationIssue:
    return ValidationIssue(severity=severity, message=message, location=location, fixable=fixable, code=code)


def error(code: str, message: str, location: str, *, fixable: bool = False) -> ValidationIssue:
    return issue(Severity.ERROR, code, message, location, fixable=fixable)


def warning(code: str, message: str, location: str, *, fixable: bool = False) -> ValidationIssue:
    return issue(Severity.WARNING, code, message, location, fixable=fixable)


def is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


__all__ = [
    "AggregateValidationReport",
    "Severity",
    "TARGETS",
    "ValidationContext",
    "ValidationIssue",
    "ValidationOptions",
    "ValidationReport",
    "Validator",
    "error",
    "is_int",
    "location_for",
    "warning",
]
