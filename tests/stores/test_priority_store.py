"""Tests for the priority record store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from llmsgen.models import PriorityRecord, Tier
from llmsgen.stores import PriorityRecordError, PriorityStore


def _record(document_id: str = "guide--setup", score: int = 85) -> PriorityRecord:
    return PriorityRecord(
        document_id=document_id,
        title="Setup",
        source_path="guide/setup.md",
        category="guide",
        score=score,
        tier=Tier.HIGH,
        rationale="category 'guide' weight 80; +5 entry-point document",
        target_audience=("beginners",),
    )


def test_priority_store_round_trip(tmp_path: Path) -> None:
    store = PriorityStore(tmp_path)
    record = _record()

    path = store.save("en", record)

    assert path == tmp_path / "en" / "guide--setup" / "priority.json"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["document"]["id"] == "guide--setup"
    assert payload["priority"] == {
        "score": 85,
        "tier": "high",
        "rationale": "category 'guide' weight 80; +5 entry-point document",
    }
    assert payload["purpose"]["target_audience"] == ["beginners"]
    assert store.load("en", "guide--setup") == record


def test_priority_store_load_returns_none_when_absent(tmp_path: Path) -> None:
    assert PriorityStore(tmp_path).load("en", "guide--missing") is None


def test_priority_store_rejects_malformed_records(tmp_path: Path) -> None:
    store = PriorityStore(tmp_path)
    path = store.path_for("en", "guide--bad")
    path.parent.mkdir(parents=True)
    path.write_text('{"document": {"id": "guide--bad"}, "priority": {"score": "high"}}', encoding="utf-8")

    with pytest.raises(PriorityRecordError) as excinfo:
        store.load("en", "guide--bad")

    assert excinfo.value.path == path


def test_priority_store_load_all_skips_malformed(tmp_path: Path) -> None:
    store = PriorityStore(tmp_path)
    store.save("en", _record("guide--setup"))
    store.save("en", _record("api--actions", score=70))
    broken = store.path_for("en", "guide--broken")
    broken.parent.mkdir(parents=True)
    broken.write_text("{not json", encoding="utf-8")

    records = store.load_all("en")

    assert sorted(records) == ["api--actions", "guide--setup"]
