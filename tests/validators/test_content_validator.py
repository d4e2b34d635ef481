"""Unit tests for the content validator and quality score."""

from __future__ import annotations

from llmsgen.markdown import PLACEHOLDER_MARKER, split_frontmatter
from llmsgen.validators import ValidationOptions, ValidationRunner, quality_score

GOOD_300 = (
    "The action pipeline dispatches typed actions to registered handlers. "
    "Handlers run in priority order and may stop propagation. "
    "Stores expose reactive state that components subscribe to through hooks. "
    "Register handlers early to avoid missed events."
)


def _codes(report) -> list[str]:
    return sorted(issue.code for issue in report.issues)


def test_quality_score() -> None:
    assert quality_score(GOOD_300, 300) == 100
    assert quality_score("tiny", 300) == 0
    assert quality_score("One long sentence without a stop " * 3, 300) == 60
    assert quality_score(GOOD_300 + " TODO: expand.", 300) == 70
    assert quality_score("A short summary.", 100) == 85


def test_clean_content_passes(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.artifact("en", "guide--setup", 300, GOOD_300, completion_status="review")
    docs_builder.artifact("en", "guide--setup", 100, PLACEHOLDER_MARKER, completion_status="template")

    report = ValidationRunner(config).validate("content")

    assert report.issues == []
    assert report.passed == 2


def test_content_problems(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.artifact("en", "guide--done", 100, PLACEHOLDER_MARKER, completion_status="completed")
    docs_builder.artifact("en", "guide--long", 100, "Way too long. " * 20)
    docs_builder.artifact("en", "guide--weak", 1000, "Barely anything here.")

    report = ValidationRunner(config).validate("content")

    assert _codes(report) == ["completed_placeholder", "low_quality", "oversize"]
    assert report.failed == 1


def test_fix_promotes_authored_templates_to_draft(docs_builder) -> None:
    config = docs_builder.config()
    path = docs_builder.artifact(
        "en", "guide--setup", 300, GOOD_300, completion_status="template", workflow_stage="template_generation"
    )

    report = ValidationRunner(config).validate("content", ValidationOptions(fix=True))

    assert report.fixed == 1
    assert report.issues == []
    metadata, body = split_frontmatter(path.read_text(encoding="utf-8"))
    assert metadata["completion_status"] == "draft"
    assert metadata["workflow_stage"] == "content_drafting"
    assert body == GOOD_300


def test_strict_flags_duplicated_paragraphs(docs_builder) -> None:
    config = docs_builder.config()
    paragraph = "Handlers run in order. They can stop propagation."
    docs_builder.artifact("en", "guide--dup", 300, f"{paragraph}\n\n{paragraph}\n\nEnd of summary here.")
    runner = ValidationRunner(config)

    assert "duplicate_paragraph" not in _codes(runner.validate("content"))
    assert "duplicate_paragraph" in _codes(runner.validate("content", ValidationOptions(strict=True)))
