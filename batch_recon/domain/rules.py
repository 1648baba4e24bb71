"""Validation rules applied to each batch matched to a formula.

Each rule is a pure function of the batch and its formula that returns a
:class:`Mismatch` or ``None``. :data:`BATCH_RULES` fixes the evaluation order.

Material consistency and obsolete-formula checks have no rule here: batch
records carry no bill of materials and formulas carry no lifecycle status.
"""
from __future__ import annotations

from typing import Callable, Optional

from .models import BatchLineItem, FormulaRecord, Mismatch, is_known

BatchRule = Callable[[BatchLineItem, FormulaRecord], Optional[Mismatch]]


def check_revision(batch: BatchLineItem, formula: FormulaRecord) -> Optional[Mismatch]:
    """Batch records have no revision field, so every batch passes."""
    return None


def check_manufacturing_license(batch: BatchLineItem, formula: FormulaRecord) -> Optional[Mismatch]:
    batch_license = batch.mfg_lic_no
    formula_license = formula.manufacturing_license_no
    if not (is_known(batch_license) and is_known(formula_license)):
        return None
    if batch_license == formula_license:
        return None
    return Mismatch(
        type="mfc_mismatch",
        description=f"Batch Mfg License ({batch_license}) ≠ Formula Mfg License ({formula_license})",
        severity="critical",
    )


BATCH_RULES: tuple[BatchRule, ...] = (
    check_revision,
    check_manufacturing_license,
)


def evaluate_batch(
    batch: BatchLineItem,
    formula: FormulaRecord,
    rules: tuple[BatchRule, ...] = BATCH_RULES,
) -> tuple[Mismatch, ...]:
    results = (rule(batch, formula) for rule in rules)
    return tuple(mismatch for mismatch in results if mismatch is not None)
