"""Serialise a reconciliation report into the JSON payload served to clients."""
from __future__ import annotations

import json
from typing import Any

from batch_recon.application.dto import ReconciliationApiResponse
from batch_recon.config import SETTINGS
from batch_recon.domain.models import Mismatch, Text
from batch_recon.domain.results import (
    BatchValidationResult,
    FormulaReconciliationResult,
    OrphanBatchResult,
    ReconciliationReport,
    Recommendation,
)


def _text(value: Text) -> str:
    return value if isinstance(value, str) else SETTINGS.unknown_label


def _mismatch(mismatch: Mismatch) -> dict[str, Any]:
    return {"type": mismatch.type, "description": mismatch.description, "severity": mismatch.severity}


def _batch_detail(detail: BatchValidationResult) -> dict[str, Any]:
    return {
        "batchNumber": _text(detail.batch_number),
        "itemCode": _text(detail.item_code),
        "itemName": _text(detail.item_name),
        "mfgDate": _text(detail.mfg_date),
        "expiryDate": _text(detail.expiry_date),
        "batchSize": _text(detail.batch_size),
        "department": _text(detail.department),
        "type": _text(detail.type),
        "isValid": detail.is_valid,
        "formulaExists": detail.formula_exists,
        "revisionMatch": detail.revision_match,
        "mfcMatch": detail.mfc_match,
        "materialMatch": detail.material_match,
        "obsoleteFormulaUsed": detail.obsolete_formula_used,
        "mismatches": [_mismatch(m) for m in detail.mismatches],
    }


def _formula_result(result: FormulaReconciliationResult) -> dict[str, Any]:
    stats = result.stats
    summary = result.mismatch_summary
    return {
        "formulaId": result.formula_id,
        "masterCardNo": _text(result.master_card_no),
        "productCode": _text(result.product_code),
        "productName": _text(result.product_name),
        "revisionNo": _text(result.revision_no),
        "manufacturer": _text(result.manufacturer),
        "status": result.status,
        "stats": {
            "totalBatches": stats.total_batches,
            "batchesInUse": stats.batches_in_use,
            "cancelledBatches": stats.cancelled_batches,
            "rejectedBatches": stats.rejected_batches,
            "reconciledBatches": stats.reconciled_batches,
            "mismatchedBatches": stats.mismatched_batches,
        },
        "mismatchSummary": {
            "oldRevisionBatches": summary.old_revision_batches,
            "invalidRevisionBatches": summary.invalid_revision_batches,
            "formulaMissingBatches": summary.formula_missing_batches,
            "mfcMismatches": summary.mfc_mismatches,
            "materialMismatches": summary.material_mismatches,
            "obsoleteFormulaUsed": summary.obsolete_formula_used,
        },
        "reconciliationStatus": result.reconciliation_status,
        "linkedProductCodes": list(result.linked_product_codes),
        "batchDetails": [_batch_detail(d) for d in result.batch_details],
        "complianceNotes": list(result.compliance_notes),
    }


def _orphan(orphan: OrphanBatchResult) -> dict[str, Any]:
    return {
        "itemCode": _text(orphan.item_code),
        "itemName": _text(orphan.item_name),
        "batchCount": orphan.batch_count,
        "batches": [
            {"batchNumber": _text(b.batch_number), "mfgDate": _text(b.mfg_date), "batchSize": _text(b.batch_size)}
            for b in orphan.batches
        ],
        "complianceRisk": orphan.compliance_risk,
        "reason": orphan.reason,
    }


def _recommendation(item: Recommendation) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": item.type}
    if item.formula_id is not None:
        payload["formulaId"] = item.formula_id
    if item.master_card_no is not None:
        payload["masterCardNo"] = _text(item.master_card_no)
    payload["description"] = item.description
    payload["priority"] = item.priority
    return payload


def build_report_payload(report: ReconciliationReport) -> dict[str, Any]:
    sources = report.data_sources
    batches = report.batch_reconciliation
    overall = report.overall_stats
    return {
        "generatedAt": report.generated_at.isoformat(),
        "reportId": report.report_id,
        "dataSources": {
            "formulaMasterCount": sources.formula_master_count,
            "totalBatchRecords": sources.total_batch_records,
            "uniqueProductCodes": sources.unique_product_codes,
        },
        "batchReconciliation": {
            "totalBatchesInSystem": batches.total_batches_in_system,
            "batchesMatchedToFormula": batches.batches_matched_to_formula,
            "batchesNotMatchedToFormula": batches.batches_not_matched_to_formula,
            "allBatchesAccountedFor": batches.all_batches_accounted_for,
            "reconciledBatchCount": batches.reconciled_batch_count,
            "mismatchedBatchCount": batches.mismatched_batch_count,
            "reconciliationPercentage": batches.reconciliation_percentage,
        },
        "formulaResults": [_formula_result(r) for r in report.formula_results],
        "orphanBatches": [_orphan(o) for o in report.orphan_batches],
        "overallStats": {
            "fullyReconciledFormulas": overall.fully_reconciled_formulas,
            "partiallyReconciledFormulas": overall.partially_reconciled_formulas,
            "notReconciledFormulas": overall.not_reconciled_formulas,
            "formulasWithNoBatches": overall.formulas_with_no_batches,
            "totalOrphanBatches": overall.total_orphan_batches,
            "totalMismatches": overall.total_mismatches,
            "complianceScore": overall.compliance_score,
        },
        "recommendations": [_recommendation(r) for r in report.recommendations],
    }


def build_response_payload(response: ReconciliationApiResponse) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": response.success, "message": response.message}
    if response.data is not None:
        payload["data"] = build_report_payload(response.data)
    if response.errors:
        payload["errors"] = list(response.errors)
    return payload


def render_json(response: ReconciliationApiResponse) -> bytes:
    return json.dumps(build_response_payload(response), ensure_ascii=False, indent=2).encode("utf-8")

