"""Domain services implementing the reconciliation rules."""
from __future__ import annotations

import logging
import time
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Mapping, Sequence

from batch_recon.config import SETTINGS, Settings

from .flattening import flatten_batches
from .indexing import FormulaIndex, build_formula_index
from .matching import BatchMatch, match_batches
from .models import BatchContainerRecord, BatchLineItem, FormulaRecord, Text
from .results import (
    BatchReconciliationSummary,
    BatchValidationResult,
    DataSources,
    FormulaReconciliationResult,
    FormulaStats,
    MismatchSummary,
    OrphanBatchEntry,
    OrphanBatchResult,
    OverallStats,
    ReconciliationReport,
    ReconciliationStatus,
    Recommendation,
)
from .rules import BATCH_RULES, BatchRule, evaluate_batch

logger = logging.getLogger(__name__)

ORPHAN_REASON = "Formula Master record not found for this product code"


def percentage(part: float, whole: int, *, empty: int = 100) -> int:
    """Whole-number percentage rounded half up; ``empty`` when ``whole`` is zero."""
    if whole <= 0:
        return empty
    value = Decimal(str(part)) * 100 / Decimal(whole)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def classify_status(total: int, reconciled: int, mismatched: int) -> ReconciliationStatus:
    if total == 0:
        return "no_batches"
    if mismatched == 0:
        return "fully_reconciled"
    if reconciled > 0:
        return "partially_reconciled"
    return "not_reconciled"


class FormulaValidator:
    """Validates the batches matched to one formula and rolls them up."""

    def __init__(self, rules: tuple[BatchRule, ...] = BATCH_RULES) -> None:
        self._rules = rules

    def validate(self, formula: FormulaRecord, batches: Sequence[BatchLineItem]) -> FormulaReconciliationResult:
        details = tuple(
            BatchValidationResult.for_batch(batch, evaluate_batch(batch, formula, self._rules))
            for batch in batches
        )
        mismatched = sum(1 for detail in details if not detail.is_valid)
        reconciled = len(details) - mismatched
        summary = self._summarise(details)

        stats = FormulaStats(
            total_batches=len(details),
            # cancelled/rejected states are not recorded on batches
            batches_in_use=len(details),
            cancelled_batches=0,
            rejected_batches=0,
            reconciled_batches=reconciled,
            mismatched_batches=mismatched,
        )
        return FormulaReconciliationResult(
            formula_id=formula.formula_id,
            master_card_no=formula.master_card_no,
            product_code=formula.main_product_code,
            product_name=formula.product_name,
            revision_no=formula.revision_no,
            manufacturer=formula.manufacturer,
            status="active",
            stats=stats,
            mismatch_summary=summary,
            reconciliation_status=classify_status(len(details), reconciled, mismatched),
            linked_product_codes=formula.linked_product_codes,
            batch_details=details,
            compliance_notes=self._compliance_notes(stats, summary),
        )

    @staticmethod
    def _summarise(details: Sequence[BatchValidationResult]) -> MismatchSummary:
        return MismatchSummary(
            old_revision_batches=sum(1 for d in details if d.revision_match == "old_revision"),
            invalid_revision_batches=sum(1 for d in details if d.revision_match == "invalid_revision"),
            formula_missing_batches=sum(1 for d in details if not d.formula_exists),
            mfc_mismatches=sum(1 for d in details if not d.mfc_match),
            material_mismatches=sum(1 for d in details if not d.material_match),
            obsolete_formula_used=sum(1 for d in details if d.obsolete_formula_used),
        )

    @staticmethod
    def _compliance_notes(stats: FormulaStats, summary: MismatchSummary) -> tuple[str, ...]:
        notes: list[str] = []
        if stats.total_batches == 0:
            notes.append("No batch records found for this formula")
        if summary.mfc_mismatches > 0:
            notes.append(f"{summary.mfc_mismatches} batch(es) have manufacturing license mismatch - CRITICAL")
        if stats.total_batches > 0 and stats.reconciled_batches == stats.total_batches:
            notes.append("All batches are fully compliant with Formula Master")
        return tuple(notes)


class ReportAggregator:
    """Computes system-wide statistics and recommendations."""

    def __init__(self, settings: Settings = SETTINGS) -> None:
        self._settings = settings

    def orphan_results(self, orphans: Mapping[Text, Sequence[BatchLineItem]]) -> tuple[OrphanBatchResult, ...]:
        results = [
            OrphanBatchResult(
                item_code=item_code,
                item_name=batches[0].item_name,
                batch_count=len(batches),
                batches=tuple(
                    OrphanBatchEntry(batch_number=b.batch_number, mfg_date=b.mfg_date, batch_size=b.batch_size)
                    for b in batches
                ),
                compliance_risk="high" if len(batches) > self._settings.orphan_high_risk_threshold else "medium",
                reason=ORPHAN_REASON,
            )
            for item_code, batches in orphans.items()
            if batches
        ]
        # sorted() is stable: equal counts keep first-seen order
        return tuple(sorted(results, key=lambda o: o.batch_count, reverse=True))

    @staticmethod
    def overall_stats(
        formula_results: Sequence[FormulaReconciliationResult],
        orphans: Sequence[OrphanBatchResult],
    ) -> OverallStats:
        by_status = {
            status: sum(1 for r in formula_results if r.reconciliation_status == status)
            for status in ("fully_reconciled", "partially_reconciled", "not_reconciled", "no_batches")
        }
        with_batches = sum(1 for r in formula_results if r.has_batches)
        score = percentage(
            by_status["fully_reconciled"] + 0.5 * by_status["partially_reconciled"],
            with_batches,
        )
        return OverallStats(
            fully_reconciled_formulas=by_status["fully_reconciled"],
            partially_reconciled_formulas=by_status["partially_reconciled"],
            not_reconciled_formulas=by_status["not_reconciled"],
            formulas_with_no_batches=by_status["no_batches"],
            total_orphan_batches=sum(o.batch_count for o in orphans),
            total_mismatches=sum(r.stats.mismatched_batches for r in formula_results),
            compliance_score=score,
        )

    @staticmethod
    def batch_summary(
        formula_results: Sequence[FormulaReconciliationResult],
        orphans: Sequence[OrphanBatchResult],
        total_batches: int,
    ) -> BatchReconciliationSummary:
        matched = sum(r.stats.total_batches for r in formula_results)
        not_matched = sum(o.batch_count for o in orphans)
        reconciled = sum(r.stats.reconciled_batches for r in formula_results)
        return BatchReconciliationSummary(
            total_batches_in_system=total_batches,
            batches_matched_to_formula=matched,
            batches_not_matched_to_formula=not_matched,
            all_batches_accounted_for=matched + not_matched == total_batches,
            reconciled_batch_count=reconciled,
            mismatched_batch_count=sum(r.stats.mismatched_batches for r in formula_results),
            reconciliation_percentage=percentage(reconciled, total_batches),
        )

    def recommendations(
        self,
        formula_results: Sequence[FormulaReconciliationResult],
        orphans: Sequence[OrphanBatchResult],
        overall: OverallStats,
    ) -> tuple[Recommendation, ...]:
        settings = self._settings
        unknown = settings.unknown_label
        items: list[Recommendation] = []

        for result in formula_results:
            mfc_mismatches = result.mismatch_summary.mfc_mismatches
            if result.stats.total_batches > settings.mfc_correction_min_batches and mfc_mismatches > 0:
                items.append(
                    Recommendation(
                        type="mfc_correction",
                        formula_id=result.formula_id,
                        master_card_no=result.master_card_no,
                        description=(
                            f"Formula {_label(result.master_card_no, unknown)} has {result.stats.total_batches} batches "
                            f"but {mfc_mismatches} MFC mismatches - urgent correction needed"
                        ),
                        priority="high",
                    )
                )

        flagged = [o for o in orphans if o.batch_count > settings.urgent_review_min_batches]
        for orphan in flagged[: settings.urgent_review_limit]:
            items.append(
                Recommendation(
                    type="urgent_review",
                    description=(
                        f"Product {_label(orphan.item_code, unknown)} ({_label(orphan.item_name, unknown)}) has {orphan.batch_count} "
                        "batches but NO Formula Master - requires immediate review"
                    ),
                    priority="high",
                )
            )

        if overall.formulas_with_no_batches > settings.formula_cleanup_threshold:
            items.append(
                Recommendation(
                    type="formula_cleanup",
                    description=(
                        f"{overall.formulas_with_no_batches} formulas have no linked batches - review for obsolescence"
                    ),
                    priority="low",
                )
            )
        return tuple(items)


def _label(value: Text, unknown: str) -> str:
    return value if isinstance(value, str) else unknown


def assemble_report(
    *,
    generated_at: datetime,
    data_sources: DataSources,
    batch_reconciliation: BatchReconciliationSummary,
    formula_results: Sequence[FormulaReconciliationResult],
    orphan_batches: Sequence[OrphanBatchResult],
    overall_stats: OverallStats,
    recommendations: Sequence[Recommendation],
    report_id_prefix: str = SETTINGS.report_id_prefix,
) -> ReconciliationReport:
    """Compose the final report; formula results are ordered by batch volume."""
    return ReconciliationReport(
        generated_at=generated_at,
        report_id=f"{report_id_prefix}-{int(generated_at.timestamp() * 1000)}",
        data_sources=data_sources,
        batch_reconciliation=batch_reconciliation,
        formula_results=tuple(sorted(formula_results, key=lambda r: r.stats.total_batches, reverse=True)),
        orphan_batches=tuple(orphan_batches),
        overall_stats=overall_stats,
        recommendations=tuple(recommendations),
    )


class ReconciliationEngine:
    """Runs the full Formula Master vs Batch Registry reconciliation in one pass."""

    def __init__(
        self,
        settings: Settings | None = None,
        validator: FormulaValidator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings or SETTINGS
        self._validator = validator or FormulaValidator()
        self._aggregator = ReportAggregator(self._settings)
        self._clock = clock or (lambda: datetime.now(self._settings.timezone))

    def reconcile(
        self,
        formulas: Sequence[FormulaRecord],
        batch_documents: Sequence[BatchContainerRecord],
    ) -> ReconciliationReport:
        started = time.perf_counter()

        index: FormulaIndex = build_formula_index(formulas)
        batches = flatten_batches(batch_documents)
        match: BatchMatch = match_batches(batches, index)

        formula_results = [self._validator.validate(f, match.batches_for(f.formula_id)) for f in formulas]
        orphans = self._aggregator.orphan_results(match.orphan_batches_by_code)
        overall = self._aggregator.overall_stats(formula_results, orphans)
        summary = self._aggregator.batch_summary(formula_results, orphans, len(batches))
        if not summary.all_batches_accounted_for:
            logger.warning(
                "Batch accounting mismatch: %d matched + %d orphan != %d total",
                summary.batches_matched_to_formula,
                summary.batches_not_matched_to_formula,
                summary.total_batches_in_system,
            )

        report = assemble_report(
            generated_at=self._clock(),
            data_sources=DataSources(
                formula_master_count=len(formulas),
                total_batch_records=len(batches),
                unique_product_codes=index.unique_product_codes,
            ),
            batch_reconciliation=summary,
            formula_results=formula_results,
            orphan_batches=orphans,
            overall_stats=overall,
            recommendations=self._aggregator.recommendations(formula_results, orphans, overall),
            report_id_prefix=self._settings.report_id_prefix,
        )
        logger.info(
            "Reconciliation %s completed in %.1fms: %d formulas, %d batches, compliance score %d",
            report.report_id,
            (time.perf_counter() - started) * 1000,
            len(formulas),
            len(batches),
            overall.compliance_score,
        )
        return report
