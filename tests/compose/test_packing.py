"""Tests for the PriorityFirstFit packing policy."""

from __future__ import annotations

from llmsgen.compose.packing import NO_FIT, PackingCandidate, PackingUnit, PriorityFirstFit
from llmsgen.models import TieBreak


def _candidate(document_id: str, score: int, *sizes: int, weight: int = 50) -> PackingCandidate:
    return PackingCandidate(
        document_id=document_id,
        title=document_id,
        category=document_id.split("--", 1)[0],
        priority_score=score,
        category_weight=weight,
        tier="high",
        units=tuple(PackingUnit(length_budget=size, text="x" * size) for size in sizes),
    )


def _length(candidate, unit, selected) -> int:
    return len(unit.text)


def test_policy_is_named_and_versioned() -> None:
    assert PriorityFirstFit.NAME == "priority-first-fit"
    assert PriorityFirstFit.VERSION == 1


def test_picks_largest_fitting_unit_per_candidate() -> None:
    result = PriorityFirstFit().pack([_candidate("guide--a", 90, 100, 300, 1000)], 500, _length)

    assert [selection.unit.length_budget for selection in result.selected] == [300]
    assert result.used == 300


def test_excludes_candidate_that_cannot_fit_and_keeps_walking() -> None:
    candidates = [
        _candidate("guide--big", 95, 400),
        _candidate("guide--mid", 90, 300),
        _candidate("guide--small", 50, 100),
    ]

    result = PriorityFirstFit().pack(candidates, 450, _length)

    assert [selection.candidate.document_id for selection in result.selected] == ["guide--big"]
    assert [(candidate.document_id, reason) for candidate, reason in result.excluded] == [
        ("guide--mid", NO_FIT),
        ("guide--small", NO_FIT),
    ]

    result = PriorityFirstFit().pack(candidates, 520, _length)

    assert [selection.candidate.document_id for selection in result.selected] == ["guide--big", "guide--small"]


def test_unbounded_budget_takes_largest_unit_of_everyone() -> None:
    result = PriorityFirstFit().pack([_candidate("a--x", 10, 100, 300), _candidate("b--y", 20, 50)], None, _length)

    assert [(selection.candidate.document_id, selection.unit.length_budget) for selection in result.selected] == [
        ("b--y", 50),
        ("a--x", 300),
    ]


def test_tie_break_by_category_weight_then_id() -> None:
    candidates = [
        _candidate("b--two", 80, 10, weight=60),
        _candidate("a--one", 80, 10, weight=60),
        _candidate("c--three", 80, 10, weight=90),
    ]

    ordered = PriorityFirstFit(TieBreak.CATEGORY_WEIGHT_THEN_ID).order(candidates)

    assert [candidate.document_id for candidate in ordered] == ["c--three", "a--one", "b--two"]


def test_tie_break_by_document_id_only() -> None:
    candidates = [
        _candidate("b--two", 80, 10, weight=60),
        _candidate("c--three", 80, 10, weight=90),
        _candidate("a--one", 80, 10, weight=60),
    ]

    ordered = PriorityFirstFit(TieBreak.DOCUMENT_ID).order(candidates)

    assert [candidate.document_id for candidate in ordered] == ["a--one", "b--two", "c--three"]
