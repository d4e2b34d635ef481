"""Unit tests for the priority record validator."""

from __future__ import annotations

import json

from llmsgen.validators import ValidationOptions, ValidationRunner


def _codes(report) -> list[str]:
    return sorted(issue.code for issue in report.issues)


def test_well_formed_records_pass(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.priority("en", "guide--setup", 90, "high")
    docs_builder.priority("ko", "guide--setup", 40, "low")

    report = ValidationRunner(config).validate("priority")

    assert report.success
    assert report.passed == 2


def test_language_option_limits_scope(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.priority("en", "guide--setup", 90, "high")
    docs_builder.priority("ko", "guide--broken", 90, "low")

    report = ValidationRunner(config).validate("priority", ValidationOptions(language="en"))

    assert report.passed == 1
    assert report.issues == []


def test_invalid_json_is_an_unfixable_error(docs_builder) -> None:
    config = docs_builder.config()
    path = docs_builder.data_dir / "en" / "guide--bad" / "priority.json"
    path.parent.mkdir(parents=True)
    path.write_text("{nope", encoding="utf-8")

    report = ValidationRunner(config).validate("priority", ValidationOptions(fix=True))

    assert _codes(report) == ["invalid_json"]
    assert report.fixed == 0
    assert report.failed == 1


def test_fix_removes_exactly_the_fixable_issues(docs_builder) -> None:
    config = docs_builder.config()
    path = docs_builder.priority(
        "en",
        "guide--setup",
        0,
        "",
        payload={
            "document": {"id": "guide--setup"},
            "priority": {"score": 130, "tier": "medium", "rationale": "hand written"},
        },
    )
    runner = ValidationRunner(config)

    before = runner.validate("priority")
    fixable = [issue for issue in before.issues if issue.fixable]
    after = runner.validate("priority", ValidationOptions(fix=True))

    assert _codes(before) == [
        "missing_audience",
        "missing_category",
        "missing_source_path",
        "missing_title",
        "score_range",
        "tier_mismatch",
    ]
    assert after.fixed == len(fixable) == 4
    assert len(after.issues) == len(before.issues) - len(fixable)
    assert _codes(after) == ["missing_source_path", "score_range"]

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["document"]["category"] == "guide"
    assert saved["document"]["title"] == "Setup"
    assert saved["priority"]["tier"] == "high"
    assert saved["purpose"]["target_audience"] == ["beginners"]


def test_missing_score_is_fixed_from_category_weight(docs_builder) -> None:
    config = docs_builder.config()
    path = docs_builder.priority(
        "en",
        "api--actions",
        0,
        "",
        payload={
            "document": {"id": "api--actions", "title": "Actions", "category": "api", "source_path": "api/actions.md"},
            "priority": {"score": "high"},
            "purpose": {"target_audience": ["framework-users"]},
        },
    )

    report = ValidationRunner(config).validate("priority", ValidationOptions(fix=True))

    assert report.success
    assert report.fixed == 2
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["priority"] == {"score": 80, "tier": "high"}


def test_strict_checks(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.priority(
        "en",
        "guide--setup",
        0,
        "",
        payload={
            "document": {"id": "guide--setup", "title": "Setup", "category": "guide", "source_path": "guide/setup.md"},
            "priority": {"score": 90, "tier": "high", "rationale": ""},
            "purpose": {"target_audience": ["a", "b", "a"]},
        },
    )
    runner = ValidationRunner(config)

    assert runner.validate("priority").issues == []
    strict = runner.validate("priority", ValidationOptions(strict=True))

    assert _codes(strict) == ["duplicate_audience", "empty_rationale", "source_missing"]
    assert strict.success

    fixed = runner.validate("priority", ValidationOptions(strict=True, fix=True))
    assert fixed.fixed == 1
    assert _codes(fixed) == ["empty_rationale", "source_missing"]
