"""Mismatch report exports (CSV, HTML, Excel) for a reconciliation run."""
from __future__ import annotations

import csv
import html
import io
from typing import Sequence

import pandas as pd

from batch_recon.config import SETTINGS
from batch_recon.domain.models import Text
from batch_recon.domain.results import ReconciliationReport

MISMATCH_COLUMNS = [
    "mismatch_type",
    "severity",
    "item_code",
    "item_name",
    "batch_number",
    "mfg_date",
    "batch_size",
    "master_card_no",
    "formula_product_name",
    "details",
]

EXCEL_HEADERS = {
    "mismatch_type": "Mismatch Type",
    "severity": "Severity",
    "item_code": "Item Code",
    "item_name": "Item Name",
    "batch_number": "Batch Number",
    "mfg_date": "Mfg Date",
    "batch_size": "Batch Size",
    "master_card_no": "MFC Number",
    "formula_product_name": "Product Name (MFC)",
    "details": "Mismatch Details",
}

MATCHED_COLUMNS = [
    "Batch Number",
    "Item Code",
    "Item Name",
    "MFC Number",
    "Product Name (MFC)",
    "Mfg Date",
    "Expiry Date",
    "Batch Size",
    "Type",
    "Department",
    "Manufacturer (MFC)",
    "Revision No",
    "Status",
]


def _text(value: Text) -> str:
    return value if isinstance(value, str) else SETTINGS.unknown_label


def mismatches_to_rows(report: ReconciliationReport) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for orphan in report.orphan_batches:
        for entry in orphan.batches:
            rows.append(
                {
                    "mismatch_type": "ORPHAN_BATCH",
                    "severity": "CRITICAL",
                    "item_code": _text(orphan.item_code),
                    "item_name": _text(orphan.item_name),
                    "batch_number": _text(entry.batch_number),
                    "mfg_date": _text(entry.mfg_date),
                    "batch_size": _text(entry.batch_size),
                    "master_card_no": SETTINGS.unknown_label,
                    "formula_product_name": SETTINGS.unknown_label,
                    "details": f"No Formula Master found for product code {_text(orphan.item_code)}",
                }
            )
    for result, detail in report.iter_mismatched_batches():
        for mismatch in detail.mismatches:
            rows.append(
                {
                    "mismatch_type": "LICENSE_MISMATCH" if mismatch.type == "mfc_mismatch" else mismatch.type.upper(),
                    "severity": mismatch.severity.upper(),
                    "item_code": _text(detail.item_code),
                    "item_name": _text(detail.item_name),
                    "batch_number": _text(detail.batch_number),
                    "mfg_date": _text(detail.mfg_date),
                    "batch_size": _text(detail.batch_size),
                    "master_card_no": _text(result.master_card_no),
                    "formula_product_name": _text(result.product_name),
                    "details": mismatch.description,
                }
            )
    return rows


def summary_rows(report: ReconciliationReport) -> list[dict[str, object]]:
    batches = report.batch_reconciliation
    overall = report.overall_stats
    return [
        {"Metric": "Report ID", "Value": report.report_id},
        {"Metric": "Generated At", "Value": report.generated_at.isoformat()},
        {"Metric": "Total Batches in System", "Value": batches.total_batches_in_system},
        {"Metric": "Batches Matched to Formula", "Value": batches.batches_matched_to_formula},
        {"Metric": "Orphan Batches (No MFC)", "Value": batches.batches_not_matched_to_formula},
        {"Metric": "Mismatched Batches", "Value": batches.mismatched_batch_count},
        {"Metric": "Total MFCs in System", "Value": report.data_sources.formula_master_count},
        {"Metric": "MFCs Without Batches", "Value": overall.formulas_with_no_batches},
        {"Metric": "Reconciliation Rate", "Value": f"{batches.reconciliation_percentage}%"},
        {"Metric": "Compliance Score", "Value": overall.compliance_score},
    ]


def formulas_without_batches_rows(report: ReconciliationReport) -> list[dict[str, str]]:
    return [
        {
            "MFC Number": _text(result.master_card_no),
            "Product Code": _text(result.product_code),
            "Product Name": _text(result.product_name),
            "Manufacturer": _text(result.manufacturer),
            "Revision No": _text(result.revision_no),
            "Status": "NO PRODUCTION BATCHES",
        }
        for result in report.formula_results
        if result.reconciliation_status == "no_batches"
    ]


def matched_batches_rows(report: ReconciliationReport) -> list[dict[str, str]]:
    """Every batch that matched a formula and passed all checks, for a complete audit."""
    return [
        {
            "Batch Number": _text(detail.batch_number),
            "Item Code": _text(detail.item_code),
            "Item Name": _text(detail.item_name),
            "MFC Number": _text(result.master_card_no),
            "Product Name (MFC)": _text(result.product_name),
            "Mfg Date": _text(detail.mfg_date),
            "Expiry Date": _text(detail.expiry_date),
            "Batch Size": _text(detail.batch_size),
            "Type": _text(detail.type),
            "Department": _text(detail.department),
            "Manufacturer (MFC)": _text(result.manufacturer),
            "Revision No": _text(result.revision_no),
            "Status": "MATCHED",
        }
        for result, detail in report.iter_reconciled_batches()
    ]


def render_csv(rows: Sequence[dict[str, str]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=MISMATCH_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def render_html(report: ReconciliationReport) -> str:
    rows = mismatches_to_rows(report)
    if not rows:
        return "<p>No discrepancies detected.</p>"
    header = "".join(f"<th>{EXCEL_HEADERS[col]}</th>" for col in MISMATCH_COLUMNS)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(row[col])}</td>" for col in MISMATCH_COLUMNS) + "</tr>" for row in rows
    )
    return f"<table><thead><tr>{header}</tr></thead><tbody>{body}</tbody></table>"


def render_excel(report: ReconciliationReport) -> bytes:
    rows = mismatches_to_rows(report)
    mismatches = pd.DataFrame(rows, columns=MISMATCH_COLUMNS).rename(columns=EXCEL_HEADERS)
    orphans = mismatches[mismatches["Mismatch Type"] == "ORPHAN_BATCH"]
    licenses = mismatches[mismatches["Mismatch Type"] == "LICENSE_MISMATCH"]

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(summary_rows(report), columns=["Metric", "Value"]).to_excel(
            writer, sheet_name="Summary", index=False
        )
        orphans.to_excel(writer, sheet_name="Orphan Batches", index=False)
        licenses.to_excel(writer, sheet_name="License Mismatches", index=False)
        pd.DataFrame(
            formulas_without_batches_rows(report),
            columns=["MFC Number", "Product Code", "Product Name", "Manufacturer", "Revision No", "Status"],
        ).to_excel(writer, sheet_name="MFCs Without Batches", index=False)
        pd.DataFrame(matched_batches_rows(report), columns=MATCHED_COLUMNS).to_excel(
            writer, sheet_name="Matched Batches", index=False
        )
    return buffer.getvalue()
