"""Validation of configuration, priority records and artifacts."""

from .base import (
    TARGETS,
    AggregateValidationReport,
    Severity,
    ValidationContext,
    ValidationIssue,
    ValidationOptions,
    ValidationReport,
    Validator,
)
from .config import ConfigValidator
from .content import ContentValidator, quality_score
from .frontmatter import FrontmatterValidator
from .priority import PriorityValidator
from .runner import UnknownTargetError, ValidationRunner, create_validator

__all__ = [
    "AggregateValidationReport",
    "ConfigValidator",
    "ContentValidator",
    "FrontmatterValidator",
    "PriorityValidator",
    "Severity",
    "TARGETS",
    "UnknownTargetError",
    "ValidationContext",
    "ValidationIssue",
    "ValidationOptions",
    "ValidationReport",
    "ValidationRunner",
    "Validator",
    "create_validator",
    "quality_score",
]
