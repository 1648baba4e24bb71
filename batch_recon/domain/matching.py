"""Assign flattened batches to the formula that governs their product code."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Sequence

from .indexing import FormulaIndex
from .models import BatchLineItem, Text


@dataclass(frozen=True)
class BatchMatch:
    formula_to_batches: Mapping[str, tuple[BatchLineItem, ...]]
    orphan_batches_by_code: Mapping[Text, tuple[BatchLineItem, ...]]

    def batches_for(self, formula_id: str) -> tuple[BatchLineItem, ...]:
        return self.formula_to_batches.get(formula_id, ())

    @property
    def matched_count(self) -> int:
        return sum(len(batches) for batches in self.formula_to_batches.values())

    @property
    def orphan_count(self) -> int:
        return sum(len(batches) for batches in self.orphan_batches_by_code.values())


def match_batches(batches: Sequence[BatchLineItem], index: FormulaIndex) -> BatchMatch:
    """Partition batches into per-formula buckets and per-code orphan buckets.

    Buckets are keyed by formula id, so every code linked to a formula lands
    in the same bucket. Both mappings keep first-seen order.
    """
    matched: dict[str, list[BatchLineItem]] = {}
    orphans: dict[Text, list[BatchLineItem]] = {}

    for batch in batches:
        ref = index.lookup(batch.item_code)
        if ref is not None:
            matched.setdefault(ref.formula.formula_id, []).append(batch)
        else:
            orphans.setdefault(batch.item_code, []).append(batch)

    return BatchMatch(
        formula_to_batches=MappingProxyType({key: tuple(value) for key, value in matched.items()}),
        orphan_batches_by_code=MappingProxyType({key: tuple(value) for key, value in orphans.items()}),
    )
