"""Unit tests for the config validator."""

from __future__ import annotations

import yaml

from llmsgen.config import config_from_mapping
from llmsgen.validators import Severity, ValidationOptions, ValidationRunner


def _codes(report) -> list[str]:
    return [issue.code for issue in report.issues]


def test_valid_config_passes(docs_builder) -> None:
    config = docs_builder.config()

    report = ValidationRunner(config).validate("config")

    assert report.success
    assert report.issues == []
    assert report.passed == 1


def test_reports_each_config_problem(tmp_path) -> None:
    config = config_from_mapping(
        {
            "generation": {
                "supported_languages": ["en"],
                "default_language": "ko",
                "character_limits": [300, 100, 100, -5],
                "output_format": "html",
            },
            "categories": {"guide": {"priority": 150}},
            "quality": {"threshold": 101},
        },
        tmp_path,
    )

    report = ValidationRunner(config).validate("config")

    assert sorted(_codes(report)) == sorted(
        [
            "default_language",
            "limit_range",
            "limit_order",
            "category_priority",
            "quality_threshold",
            "output_format",
        ]
    )
    assert report.failed == 1
    # An in-memory config has no file to write fixes to.
    assert not any(issue.fixable for issue in report.issues)


def test_empty_languages_and_limits_are_errors(tmp_path) -> None:
    config = config_from_mapping({"generation": {"supported_languages": [], "character_limits": []}}, tmp_path)

    report = ValidationRunner(config).validate("config")

    assert {"no_languages", "no_limits"} <= set(_codes(report))
    assert all(issue.severity is Severity.ERROR for issue in report.issues)


def test_strict_mode_flags_duplicate_category_priorities(docs_builder) -> None:
    config = docs_builder.config(
        {"categories": {"guide": {"priority": 80}, "api": {"priority": 80}, "examples": {"priority": 60}}}
    )
    runner = ValidationRunner(config)

    assert runner.validate("config").issues == []
    strict = runner.validate("config", ValidationOptions(strict=True))

    assert _codes(strict) == ["category_duplicates"]
    assert "duplicate values" in strict.issues[0].message
    assert strict.issues[0].severity is Severity.WARNING


def test_fix_rewrites_the_yaml_file(docs_builder) -> None:
    config = docs_builder.config(
        {"generation": {"supported_languages": ["en", "ko"], "default_language": "fr", "character_limits": [300, 100, 300]}}
    )

    report = ValidationRunner(config).validate("config", ValidationOptions(fix=True))

    assert report.fixed == 2
    assert report.issues == []
    saved = yaml.safe_load(config.source_path.read_text(encoding="utf-8"))
    assert saved["generation"]["default_language"] == "en"
    assert saved["generation"]["character_limits"] == [100, 300]
