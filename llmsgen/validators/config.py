"""Checks for the resolved configuration."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence

from ..config import OUTPUT_FORMATS, LLMSConfig, load_config, read_config_mapping, write_config_mapping
from ..logging import get_logger
from .base import ValidationContext, ValidationIssue, error, warning


class ConfigValidator:
    """Validates settings of :class:`LLMSConfig`; fixes go back to its YAML file."""

    name = "config"

    def __init__(self, context: ValidationContext) -> None:
        self.context = context
        self.config = context.config
        self.logger = get_logger("validators.config")

    def items(self) -> Sequence[LLMSConfig]:
        return [self.config]

    def check(self, item: LLMSConfig) -> List[ValidationIssue]:
        config = self.config
        location = str(config.source_path) if config.source_path else "<config>"
        can_fix = config.source_path is not None
        issues: List[ValidationIssue] = []

        if not config.supported_languages:
            issues.append(error("no_languages", "supported_languages must not be empty", location))
        elif config.default_language not in config.supported_languages:
            issues.append(
                error(
                    "default_language",
                    f"default_language {config.default_language!r} is not in supported_languages",
                    location,
                    fixable=can_fix,
                )
            )

        limits = list(config.character_limits)
        if not limits:
            issues.append(error("no_limits", "character_limits must not be empty", location))
        bad_limits = [limit for limit in limits if limit <= 0]
        if bad_limits:
            issues.append(error("limit_range", f"character_limits must be positive: {bad_limits}", location))
        if limits and limits != sorted(set(limits)):
            issues.append(
                warning(
                    "limit_order",
                    "character_limits should be sorted and unique",
                    location,
                    fixable=can_fix,
                )
            )

        for name, category in sorted(config.categories.items()):
            if not 0 <= category.priority <= 100:
                issues.append(
                    error("category_priority", f"category {name!r} priority {category.priority} outside 0-100", location)
                )

        if not 0 <= config.quality_threshold <= 100:
            issues.append(
                error("quality_threshold", f"quality threshold {config.quality_threshold} outside 0-100", location)
            )

        if config.output_format not in OUTPUT_FORMATS:
            issues.append(
                error(
                    "output_format",
                    f"unknown output_format {config.output_format!r}; expected one of {', '.join(OUTPUT_FORMATS)}",
                    location,
                )
            )

        if self.context.strict:
            shared: Dict[int, List[str]] = defaultdict(list)
            for name, category in sorted(config.categories.items()):
                shared[category.priority].append(name)
            for priority, names in sorted(shared.items()):
                if len(names) > 1:
                    issues.append(
                        warning(
                            "category_duplicates",
                            f"categories {', '.join(names)} share priority {priority} (duplicate values)",
                            location,
                        )
                    )

        return issues

    def fix(self, item: LLMSConfig, issues: Sequence[ValidationIssue]) -> int:
        source = self.config.source_path
        codes = {issue.code for issue in issues if issue.fixable}
        if source is None or not codes:
            return 0

        data = read_config_mapping(source)
        generation = data.get("generation")
        if not isinstance(generation, dict):
            generation = {}
            data["generation"] = generation

        fixed = 0
        if "default_language" in codes and self.config.supported_languages:
            generation["default_language"] = self.config.supported_languages[0]
            fixed += 1
        if "limit_order" in codes:
            generation["character_limits"] = sorted(set(self.config.character_limits))
            fixed += 1

        if fixed:
            write_config_mapping(source, data)
            self.config = load_config(source)
            self.logger.info("Applied %d config fix(es) to %s", fixed, source)
        return fixed


__all__ = ["ConfigValidator"]
