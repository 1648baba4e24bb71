from dataclasses import replace
from datetime import datetime, timezone

import pytest

from batch_recon.domain.models import UNKNOWN, BatchContainerRecord, FormulaRecord
from batch_recon.domain.services import ReconciliationEngine, classify_status, percentage

FIXED_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_formula(formula_id: str = "F1", code: str = "P100", license="LIC1", mfc: str = "MFC-1", **extra) -> FormulaRecord:
    return FormulaRecord(
        formula_id=formula_id,
        master_card_no=mfc,
        main_product_code=code,
        product_name=f"Product {code}",
        manufacturing_license_no=license,
        **extra,
    )


def make_entry(code: str, number: str = "B1", license: str | None = "LIC1") -> dict:
    return {"batchNumber": number, "itemCode": code, "itemName": f"Item {code}", "mfgLicNo": license, "type": "Export"}


def make_documents(*entries) -> list[BatchContainerRecord]:
    return [BatchContainerRecord(document_id="D1", batches=tuple(entries))]


def run(formulas, documents, clock=lambda: FIXED_TIME):
    return ReconciliationEngine(clock=clock).reconcile(formulas, documents)


def test_matching_license_is_fully_reconciled():
    report = run([make_formula()], make_documents(make_entry("P100")))

    (result,) = report.formula_results
    assert result.reconciliation_status == "fully_reconciled"
    assert result.batch_details[0].is_valid
    assert result.batch_details[0].revision_match == "valid"
    assert result.compliance_notes == ("All batches are fully compliant with Formula Master",)
    assert report.overall_stats.compliance_score == 100


def test_license_mismatch_is_not_reconciled():
    report = run([make_formula()], make_documents(make_entry("P100", license="LIC2")))

    (result,) = report.formula_results
    (detail,) = result.batch_details
    assert result.reconciliation_status == "not_reconciled"
    assert result.mismatch_summary.mfc_mismatches == 1
    assert not detail.is_valid
    assert not detail.mfc_match
    assert [(m.type, m.severity) for m in detail.mismatches] == [("mfc_mismatch", "critical")]
    assert "LIC2" in detail.mismatches[0].description
    assert result.compliance_notes == ("1 batch(es) have manufacturing license mismatch - CRITICAL",)
    assert report.overall_stats.compliance_score == 0


def test_unknown_license_is_not_a_mismatch():
    formulas = [make_formula(license=UNKNOWN), make_formula("F2", code="P200")]
    report = run(formulas, make_documents(make_entry("P100", license="LIC9"), make_entry("P200", license=None)))

    assert all(r.reconciliation_status == "fully_reconciled" for r in report.formula_results)


@pytest.mark.parametrize("license", ["NULL", "None", "nan"])
def test_placeholder_like_license_text_is_still_compared(license):
    report = run([make_formula()], make_documents(make_entry("P100", license=license)))

    (result,) = report.formula_results
    assert result.reconciliation_status == "not_reconciled"
    assert result.batch_details[0].mismatches[0].description == f"Batch Mfg License ({license}) ≠ Formula Mfg License (LIC1)"


def test_formula_without_batches():
    report = run([make_formula(), make_formula("F2", code="P200")], make_documents(make_entry("P100")))

    lonely = next(r for r in report.formula_results if r.formula_id == "F2")
    assert lonely.reconciliation_status == "no_batches"
    assert lonely.compliance_notes == ("No batch records found for this formula",)
    assert report.overall_stats.formulas_with_no_batches == 1


@pytest.mark.parametrize("count, risk", [(5, "medium"), (6, "high")])
def test_orphan_batches_grouped_by_code(count, risk):
    entries = [make_entry("X999", number=f"B{i}") for i in range(count)]

    report = run([make_formula()], make_documents(*entries))

    (orphan,) = report.orphan_batches
    assert orphan.item_code == "X999"
    assert orphan.item_name == "Item X999"
    assert orphan.batch_count == count
    assert orphan.compliance_risk == risk
    assert report.batch_reconciliation.batches_not_matched_to_formula == count


def test_high_volume_formula_with_mismatches_gets_mfc_correction():
    entries = [make_entry("P100", number=f"B{i}") for i in range(9)]
    entries += [make_entry("P100", number="B9", license="LIC2"), make_entry("P100", number="B10", license="LIC3")]

    report = run([make_formula()], make_documents(*entries))

    (result,) = report.formula_results
    assert result.reconciliation_status == "partially_reconciled"
    (recommendation,) = report.recommendations
    assert recommendation.type == "mfc_correction"
    assert recommendation.priority == "high"
    assert recommendation.formula_id == "F1"
    assert recommendation.description == (
        "Formula MFC-1 has 11 batches but 2 MFC mismatches - urgent correction needed"
    )


def test_recommendations_keep_fixed_order():
    formulas = [make_formula()] + [make_formula(f"E{i}", code=f"E{i}", mfc=f"MFC-E{i}") for i in range(6)]
    entries = [make_entry("P100", number=f"B{i}", license="LIC2") for i in range(11)]
    for code in ("X1", "X2", "X3", "X4", "X5", "X6", "X7"):
        entries += [make_entry(code, number=f"{code}-{i}") for i in range(6)]
    entries += [make_entry("X8", number=f"X8-{i}") for i in range(7)]

    report = run(formulas, make_documents(*entries))

    types = [r.type for r in report.recommendations]
    assert types == ["mfc_correction"] + ["urgent_review"] * 5 + ["formula_cleanup"]
    # the largest orphan group is reviewed first
    assert "Product X8" in report.recommendations[1].description
    assert report.recommendations[-1].priority == "low"
    assert report.recommendations[-1].description.startswith("6 formulas have no linked batches")


def test_accounting_invariant_holds():
    formulas = [make_formula(filling_product_codes=("P101",)), make_formula("F2", code="P200", license="LIC7")]
    entries = [make_entry("P100"), make_entry("P101"), make_entry("P200"), make_entry("X1"), {}, "broken"]

    report = run(formulas, make_documents(*entries))
    summary = report.batch_reconciliation

    assert summary.total_batches_in_system == 6
    assert summary.batches_matched_to_formula + summary.batches_not_matched_to_formula == 6
    assert summary.all_batches_accounted_for
    assert summary.reconciled_batch_count == 2
    assert summary.mismatched_batch_count == 1
    assert summary.reconciliation_percentage == 33


def test_empty_inputs_are_vacuously_compliant():
    report = run([], [])

    assert report.overall_stats.compliance_score == 100
    assert report.batch_reconciliation.reconciliation_percentage == 100
    assert report.batch_reconciliation.all_batches_accounted_for
    assert report.formula_results == ()


def test_compliance_score_rounds_half_up():
    formulas = [make_formula(f"F{i}", code=f"P{i}") for i in range(4)]
    entries = [make_entry("P0", number="A"), make_entry("P0", number="B", license="LIC2")]
    entries += [make_entry(f"P{i}", license="BAD") for i in range(1, 4)]

    report = run(formulas, make_documents(*entries))

    assert report.overall_stats.partially_reconciled_formulas == 1
    assert report.overall_stats.not_reconciled_formulas == 3
    assert report.overall_stats.compliance_score == 13


def test_formula_results_sorted_by_batch_volume():
    formulas = [make_formula("F1", code="P1"), make_formula("F2", code="P2"), make_formula("F3", code="P3")]
    entries = [make_entry("P2", number="A"), make_entry("P2", number="B"), make_entry("P3")]

    report = run(formulas, make_documents(*entries))

    assert [r.formula_id for r in report.formula_results] == ["F2", "F3", "F1"]


def test_linked_product_codes_listed_main_first():
    formula = make_formula(filling_product_codes=("P101", "P100"), process_product_codes=("P102", "P101"))

    report = run([formula], [])

    assert report.formula_results[0].linked_product_codes == ("P100", "P101", "P102")


def test_report_id_derived_from_generation_time():
    report = run([make_formula()], [])

    assert report.generated_at == FIXED_TIME
    assert report.report_id == "RECON-1704067200000"


def test_identical_inputs_give_identical_reports():
    formulas = [make_formula(), make_formula("F2", code="P200")]
    documents = make_documents(make_entry("P100"), make_entry("P200", license="LIC2"), make_entry("X1"))

    first = run(formulas, documents, clock=lambda: FIXED_TIME)
    second = run(formulas, documents, clock=lambda: datetime(2025, 6, 1, tzinfo=timezone.utc))

    assert first.report_id != second.report_id
    assert replace(first, generated_at=second.generated_at, report_id=second.report_id) == second


@pytest.mark.parametrize(
    "total, reconciled, mismatched, expected",
    [
        (0, 0, 0, "no_batches"),
        (3, 3, 0, "fully_reconciled"),
        (3, 1, 2, "partially_reconciled"),
        (3, 0, 3, "not_reconciled"),
    ],
)
def test_status_is_determined_by_counts(total, reconciled, mismatched, expected):
    assert classify_status(total, reconciled, mismatched) == expected


def test_percentage_bounds():
    assert percentage(0, 5) == 0
    assert percentage(5, 5) == 100
    assert percentage(0, 0) == 100
    assert percentage(2.5, 4) == 63
