"""Lookup structures over the Formula Master collection."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from .models import FormulaRecord, is_known

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormulaRef:
    formula: FormulaRecord
    is_main_product: bool
    filling_product_code: Optional[str] = None


@dataclass(frozen=True)
class FormulaIndex:
    product_code_to_formula: Mapping[str, FormulaRef]
    mfc_to_formula: Mapping[str, FormulaRecord]
    duplicate_main_codes: tuple[str, ...] = ()

    def lookup(self, product_code: object) -> Optional[FormulaRef]:
        return self.product_code_to_formula.get(product_code)  # type: ignore[arg-type]

    @property
    def unique_product_codes(self) -> int:
        return len(self.product_code_to_formula)


def build_formula_index(formulas: Sequence[FormulaRecord]) -> FormulaIndex:
    """Index formulas by product code and master card number.

    Formulas are visited in the given order. A main product code always
    replaces an earlier registration of the same code. Filling and process
    codes are only registered when the code is still free, so the first
    formula to declare a shared secondary code keeps it.
    """
    by_code: dict[str, FormulaRef] = {}
    by_mfc: dict[str, FormulaRecord] = {}
    main_codes_seen: set[str] = set()
    duplicates: list[str] = []

    for formula in formulas:
        if is_known(formula.master_card_no):
            by_mfc[formula.master_card_no] = formula  # type: ignore[index]

        main_code = formula.main_product_code
        if is_known(main_code):
            if main_code in main_codes_seen and main_code not in duplicates:
                duplicates.append(main_code)  # type: ignore[arg-type]
            main_codes_seen.add(main_code)  # type: ignore[arg-type]
            by_code[main_code] = FormulaRef(formula=formula, is_main_product=True)  # type: ignore[index]

        for code in formula.secondary_product_codes:
            if code not in by_code:
                by_code[code] = FormulaRef(formula=formula, is_main_product=False, filling_product_code=code)

    if duplicates:
        logger.warning("Main product codes shared by several formulas (last one wins): %s", ", ".join(duplicates))
    logger.debug("Indexed %d product codes and %d master cards", len(by_code), len(by_mfc))

    return FormulaIndex(
        product_code_to_formula=MappingProxyType(by_code),
        mfc_to_formula=MappingProxyType(by_mfc),
        duplicate_main_codes=tuple(duplicates),
    )
