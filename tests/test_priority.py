"""Tests for llmsgen.priority."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from llmsgen.models import Document, Tier
from llmsgen.priority import PriorityAssigner, score_adjustment, tier_for_score
from llmsgen.source_tree import SourceTreeReader

LONG_BODY = "Lorem text. " * 60


def _document(document_id: str, source_path: str, size: int = 2000, category: str = "guide") -> Document:
    return Document(
        id=document_id,
        language="en",
        category=category,
        source_path=source_path,
        size_bytes=size,
        modified_at=datetime(2026, 1, 1, tzinfo=UTC),
    )


@pytest.mark.parametrize(
    ("score", "tier"),
    [(100, Tier.HIGH), (80, Tier.HIGH), (79, Tier.MEDIUM), (50, Tier.MEDIUM), (49, Tier.LOW), (0, Tier.LOW)],
)
def test_tier_bands(score: int, tier: Tier) -> None:
    assert tier_for_score(score) is tier


def test_tier_is_monotonic_in_score() -> None:
    order = {Tier.LOW: 0, Tier.MEDIUM: 1, Tier.HIGH: 2}
    ranks = [order[tier_for_score(score)] for score in range(0, 101)]

    assert ranks == sorted(ranks)


def test_score_adjustment_rules() -> None:
    entry, reasons = score_adjustment(_document("guide--getting-started", "guide/getting-started.md"))
    assert entry == 5
    assert reasons == ["+5 entry-point document"]

    nested, _ = score_adjustment(_document("guide--a--b--c--d--deep", "guide/a/b/c/d/deep.md"))
    assert nested == -9

    small, _ = score_adjustment(_document("guide--tiny", "guide/tiny.md", size=120))
    assert small == -5


def test_assign_writes_records_with_rationale(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.sources(
        "en",
        {
            "guide/getting-started.md": "# Getting Started\n\n" + LONG_BODY,
            "api/core/actions.md": "# Actions API\n\n" + LONG_BODY,
            "examples/tiny.md": "# Tiny\n",
        },
    )
    documents = SourceTreeReader(config).discover("en")

    result = PriorityAssigner(config).assign(documents)

    assert result.success
    assert result.skipped == []
    scores = {record.document_id: record for record in result.generated}
    assert scores["guide--getting-started"].score == 95
    assert scores["guide--getting-started"].tier is Tier.HIGH
    assert scores["guide--getting-started"].title == "Getting Started"
    assert scores["guide--getting-started"].target_audience == ("beginners",)
    assert scores["api--core--actions"].score == 77
    assert scores["api--core--actions"].tier is Tier.MEDIUM
    assert scores["examples--tiny"].score == 55
    assert "weight 60" in scores["examples--tiny"].rationale
    assert "short document" in scores["examples--tiny"].rationale

    stored = json.loads(
        (docs_builder.data_dir / "en" / "guide--getting-started" / "priority.json").read_text(encoding="utf-8")
    )
    assert stored["priority"]["score"] == 95
    assert stored["workflow_stage"] == "priority_assigned"


def test_assign_clamps_scores(docs_builder) -> None:
    config = docs_builder.config({"categories": {"guide": {"priority": 100}}})
    docs_builder.source("en", "guide/overview.md", "# Overview\n\n" + LONG_BODY)
    documents = SourceTreeReader(config).discover("en")

    record = PriorityAssigner(config).compute(documents[0])

    assert record.score == 100
    assert "clamped to 100" in record.rationale


def test_second_run_without_overwrite_skips_everything(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.sources("en", {"guide/a.md": "# A\n", "guide/b.md": "# B\n", "api/c.md": "# C\n"})
    documents = SourceTreeReader(config).discover("en")
    assigner = PriorityAssigner(config)

    first = assigner.assign(documents)
    second = assigner.assign(documents)

    assert len(first.generated) == 3
    assert len(second.generated) == 0
    assert len(second.skipped) == 3


def test_existing_record_is_never_modified_without_overwrite(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.source("en", "guide/setup.md", "# Setup\n")
    path = docs_builder.priority("en", "guide--setup", 12, "low", title="Hand tuned")
    before = path.read_bytes()
    documents = SourceTreeReader(config).discover("en")

    result = PriorityAssigner(config).assign(documents)

    assert result.skipped == ["guide--setup"]
    assert path.read_bytes() == before


def test_overwrite_replaces_existing_record(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.source("en", "guide/setup.md", "# Setup\n\n" + LONG_BODY)
    docs_builder.priority("en", "guide--setup", 12, "low")
    documents = SourceTreeReader(config).discover("en")

    result = PriorityAssigner(config).assign(documents, overwrite=True)

    assert [record.score for record in result.generated] == [95]


def test_dry_run_writes_nothing(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.source("en", "guide/setup.md", "# Setup\n")
    documents = SourceTreeReader(config).discover("en")

    result = PriorityAssigner(config).assign(documents, dry_run=True)

    assert len(result.generated) == 1
    assert result.dry_run
    assert not (docs_builder.data_dir / "en" / "guide--setup").exists()


def test_unreadable_source_is_collected_not_raised(docs_builder) -> None:
    config = docs_builder.config()
    docs_builder.source("en", "guide/ok.md", "# Ok\n")
    bad = docs_builder.source("en", "guide/bad.md", "# Bad\n")
    documents = SourceTreeReader(config).discover("en")
    bad.write_bytes(b"\xff\xfe\x00 invalid utf-8")

    result = PriorityAssigner(config).assign(documents)

    assert [record.document_id for record in result.generated] == ["guide--ok"]
    assert [error.document_id for error in result.errors] == ["guide--bad"]
