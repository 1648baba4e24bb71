from batch_recon.domain.indexing import build_formula_index
from batch_recon.domain.matching import match_batches
from batch_recon.domain.models import UNKNOWN, BatchLineItem, FormulaRecord


def make_batch(code, number: str = "B") -> BatchLineItem:
    return BatchLineItem(batch_number=number, item_code=code)


def test_batches_grouped_by_formula_across_linked_codes():
    formula = FormulaRecord(formula_id="F1", main_product_code="P100", filling_product_codes=("P101",))
    batches = [make_batch("P100", "B1"), make_batch("P101", "B2"), make_batch("X999", "B3")]

    match = match_batches(batches, build_formula_index([formula]))

    assert [b.batch_number for b in match.batches_for("F1")] == ["B1", "B2"]
    assert list(match.orphan_batches_by_code) == ["X999"]
    assert match.matched_count + match.orphan_count == len(batches)


def test_unknown_item_codes_are_orphans():
    formula = FormulaRecord(formula_id="F1", main_product_code="P100")

    match = match_batches([make_batch(UNKNOWN), make_batch(UNKNOWN)], build_formula_index([formula]))

    assert match.batches_for("F1") == ()
    assert len(match.orphan_batches_by_code[UNKNOWN]) == 2
