"""PriorityFirstFit: the greedy packing policy used by the composer.

Candidates are visited in priority order. Each one contributes at most one
unit, the largest length budget whose cost still fits the remaining budget;
a candidate with no fitting unit is excluded whole and the walk continues.
This is first-fit, not a knapsack search, and a lower-priority document can
therefore fill space a larger higher-priority unit could not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ..models import TieBreak

NO_FIT = "no_fit"


@dataclass(frozen=True)
class PackingUnit:
    """One renderable unit of a candidate (an artifact body, an index line...)."""

    length_budget: Optional[int]
    text: str


@dataclass(frozen=True)
class PackingCandidate:
    document_id: str
    title: str
    category: str
    priority_score: int
    category_weight: int
    tier: str
    source_path: str = ""
    units: Tuple[PackingUnit, ...] = ()


@dataclass(frozen=True)
class Selection:
    candidate: PackingCandidate
    unit: PackingUnit
    cost: int


@dataclass
class PackingResult:
    selected: List[Selection] = field(default_factory=list)
    excluded: List[Tuple[PackingCandidate, str]] = field(default_factory=list)
    used: int = 0


CostFunction = Callable[[PackingCandidate, PackingUnit, Sequence[Selection]], int]


class PriorityFirstFit:
    """Greedy first-fit packing by descending priority."""

    NAME = "priority-first-fit"
    VERSION = 1

    def __init__(self, tie_break: TieBreak = TieBreak.CATEGORY_WEIGHT_THEN_ID) -> None:
        self.tie_break = tie_break

    def order(self, candidates: Sequence[PackingCandidate]) -> List[PackingCandidate]:
        if self.tie_break is TieBreak.DOCUMENT_ID:
            return sorted(candidates, key=lambda item: (-item.priority_score, item.document_id))
        return sorted(
            candidates,
            key=lambda item: (-item.priority_score, -item.category_weight, item.document_id),
        )

    def pack(
        self,
        candidates: Sequence[PackingCandidate],
        budget: Optional[int],
        cost: CostFunction,
    ) -> PackingResult:
        """Select units for ``candidates`` within ``budget`` (``None`` means unbounded)."""
        result = PackingResult()
        for candidate in self.order(candidates):
            remaining = None if budget is None else budget - result.used
            chosen: Optional[Selection] = None
            for unit in sorted(candidate.units, key=_unit_size, reverse=True):
                unit_cost = cost(candidate, unit, result.selected)
                if remaining is None or unit_cost <= remaining:
                    chosen = Selection(candidate=candidate, unit=unit, cost=unit_cost)
                    break
            if chosen is None:
                result.excluded.append((candidate, NO_FIT))
                continue
            result.selected.append(chosen)
            result.used += chosen.cost
        return result


def _unit_size(unit: PackingUnit) -> Tuple[int, int]:
    return (unit.length_budget if unit.length_budget is not None else 0, len(unit.text))


__all__ = [
    "CostFunction",
    "NO_FIT",
    "PackingCandidate",
    "PackingResult",
    "PackingUnit",
    "PriorityFirstFit",
    "Selection",
]
