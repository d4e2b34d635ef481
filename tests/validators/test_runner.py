"""Tests for the validation runner."""

from __future__ import annotations

import pytest

from llmsgen.config import config_from_mapping
from llmsgen.validators import TARGETS, UnknownTargetError, ValidationOptions, ValidationRunner


def test_unknown_target_raises(docs_builder) -> None:
    config = docs_builder.config()

    with pytest.raises(UnknownTargetError):
        ValidationRunner(config).validate("spelling")


def test_parallel_checks_keep_submission_order(docs_builder) -> None:
    config = docs_builder.config()
    for index in range(12):
        docs_builder.priority("en", f"guide--page-{index:02d}", 90, "low")

    serial = ValidationRunner(config).validate("priority", ValidationOptions(max_concurrent=1))
    parallel = ValidationRunner(config).validate("priority", ValidationOptions(max_concurrent=8))

    assert [issue.location for issue in parallel.issues] == [issue.location for issue in serial.issues]
    assert [issue.location for issue in parallel.issues] == [
        f"en/guide--page-{index:02d}/priority.json" for index in range(12)
    ]


def test_validate_all_runs_targets_in_order(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.priority("en", "guide--setup", 90, "high")
    docs_builder.artifact("en", "guide--setup", 100, "Short and fine.")

    aggregate = ValidationRunner(config).validate_all()

    assert [report.target for report in aggregate.reports] == list(TARGETS)
    assert aggregate.success


def test_stop_at_first_failing_target(tmp_path) -> None:
    config = config_from_mapping({"generation": {"output_format": "pdf"}}, tmp_path)

    stopped = ValidationRunner(config).validate_all(ValidationOptions(continue_on_error=False))
    continued = ValidationRunner(config).validate_all(ValidationOptions(continue_on_error=True))

    assert stopped.skipped_targets == ["priority", "frontmatter", "content"]
    assert not stopped.success
    assert continued.skipped_targets == []
    assert [report.target for report in continued.reports] == list(TARGETS)
    assert continued.report("config").failed == 1
