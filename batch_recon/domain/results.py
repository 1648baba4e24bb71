"""Domain-level results for batch reconciliation."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Literal, Optional, Sequence, Union

from .models import BatchLineItem, BatchType, Mismatch, Text, Unknown

RevisionMatch = Literal["valid", "old_revision", "invalid_revision", "unknown"]
ReconciliationStatus = Literal["fully_reconciled", "partially_reconciled", "not_reconciled", "no_batches"]
ComplianceRisk = Literal["high", "medium"]
RecommendationType = Literal["revision_update", "formula_cleanup", "mfc_correction", "urgent_review", "obsolete_review"]
Priority = Literal["high", "medium", "low"]


@dataclass(frozen=True)
class BatchValidationResult:
    batch_number: Text
    item_code: Text
    item_name: Text
    mfg_date: Text
    expiry_date: Text
    batch_size: Text
    department: Text
    type: Union[BatchType, Unknown]
    is_valid: bool
    formula_exists: bool
    revision_match: RevisionMatch
    mfc_match: bool
    material_match: bool
    obsolete_formula_used: bool
    mismatches: Sequence[Mismatch] = field(default_factory=tuple)

    @classmethod
    def for_batch(cls, batch: BatchLineItem, mismatches: Sequence[Mismatch]) -> "BatchValidationResult":
        kinds = {m.type for m in mismatches}
        return cls(
            batch_number=batch.batch_number,
            item_code=batch.item_code,
            item_name=batch.item_name,
            mfg_date=batch.mfg_date,
            expiry_date=batch.expiry_date,
            batch_size=batch.batch_size,
            department=batch.department,
            type=batch.type,
            is_valid=not mismatches,
            formula_exists="formula_missing" not in kinds,
            revision_match="invalid_revision" if "revision_mismatch" in kinds else "valid",
            mfc_match="mfc_mismatch" not in kinds,
            material_match=not kinds & {"material_missing", "material_extra"},
            obsolete_formula_used="obsolete_formula" in kinds,
            mismatches=tuple(mismatches),
        )


@dataclass(frozen=True)
class FormulaStats:
    total_batches: int
    batches_in_use: int
    cancelled_batches: int
    rejected_batches: int
    reconciled_batches: int
    mismatched_batches: int


@dataclass(frozen=True)
class MismatchSummary:
    old_revision_batches: int = 0
    invalid_revision_batches: int = 0
    formula_missing_batches: int = 0
    mfc_mismatches: int = 0
    material_mismatches: int = 0
    obsolete_formula_used: int = 0


@dataclass(frozen=True)
class FormulaReconciliationResult:
    formula_id: str
    master_card_no: Text
    product_code: Text
    product_name: Text
    revision_no: Text
    manufacturer: Text
    status: Literal["active", "obsolete", "unknown"]
    stats: FormulaStats
    mismatch_summary: MismatchSummary
    reconciliation_status: ReconciliationStatus
    linked_product_codes: Sequence[str] = field(default_factory=tuple)
    batch_details: Sequence[BatchValidationResult] = field(default_factory=tuple)
    compliance_notes: Sequence[str] = field(default_factory=tuple)

    @property
    def has_batches(self) -> bool:
        return self.stats.total_batches > 0


@dataclass(frozen=True)
class OrphanBatchEntry:
    batch_number: Text
    mfg_date: Text
    batch_size: Text


@dataclass(frozen=True)
class OrphanBatchResult:
    item_code: Text
    item_name: Text
    batch_count: int
    batches: Sequence[OrphanBatchEntry]
    compliance_risk: ComplianceRisk
    reason: str


@dataclass(frozen=True)
class Recommendation:
    type: RecommendationType
    description: str
    priority: Priority
    formula_id: Optional[str] = None
    master_card_no: Optional[Text] = None


@dataclass(frozen=True)
class DataSources:
    formula_master_count: int
    total_batch_records: int
    unique_product_codes: int


@dataclass(frozen=True)
class BatchReconciliationSummary:
    total_batches_in_system: int
    batches_matched_to_formula: int
    batches_not_matched_to_formula: int
    all_batches_accounted_for: bool
    reconciled_batch_count: int
    mismatched_batch_count: int
    reconciliation_percentage: int


@dataclass(frozen=True)
class OverallStats:
    fully_reconciled_formulas: int
    partially_reconciled_formulas: int
    not_reconciled_formulas: int
    formulas_with_no_batches: int
    total_orphan_batches: int
    total_mismatches: int
    compliance_score: int


@dataclass(frozen=True)
class ReconciliationReport:
    generated_at: datetime
    report_id: str
    data_sources: DataSources
    batch_reconciliation: BatchReconciliationSummary
    overall_stats: OverallStats
    formula_results: Sequence[FormulaReconciliationResult] = field(default_factory=tuple)
    orphan_batches: Sequence[OrphanBatchResult] = field(default_factory=tuple)
    recommendations: Sequence[Recommendation] = field(default_factory=tuple)

    def has_issues(self) -> bool:
        return any(
            [
                self.overall_stats.total_mismatches,
                self.overall_stats.total_orphan_batches,
            ]
        )

    def iter_mismatched_batches(self) -> Iterable[tuple[FormulaReconciliationResult, BatchValidationResult]]:
        for result in self.formula_results:
            for detail in result.batch_details:
                if not detail.is_valid:
                    yield result, detail

    def iter_reconciled_batches(self) -> Iterable[tuple[FormulaReconciliationResult, BatchValidationResult]]:
        for result in self.formula_results:
            for detail in result.batch_details:
                if detail.is_valid:
                    yield result, detail
