"""Command-line entrypoint for Formula Master vs Batch Registry reconciliation."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from batch_recon.application.archive.use_cases import ArchiveReconciliationUseCase
from batch_recon.application.dto import ReconciliationApiResponse
from batch_recon.application.use_cases import ReconciliationContext, RunReconciliationUseCase
from batch_recon.domain.archive.entities import ArchiveFile
from batch_recon.domain.services import ReconciliationEngine
from batch_recon.infrastructure.archive.file_repository import FileSystemArchiveRepository
from batch_recon.infrastructure.repositories.json_repositories import (
    JsonBatchRepository,
    JsonFormulaRepository,
)
from batch_recon.logging_setup import configure_logging
from batch_recon.presentation.mismatch_report import (
    mismatches_to_rows,
    render_csv,
    render_excel,
    render_html,
)
from batch_recon.presentation.report_payload import render_json


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile Batch Registry records against Formula Master records")
    parser.add_argument("formulas", type=str, help="Path to the Formula Master JSON export")
    parser.add_argument("batches", type=str, help="Path to the Batch Registry JSON export")
    parser.add_argument("--output", type=str, default="reconciliation_report.json", help="JSON report path")
    parser.add_argument("--excel", type=str, help="Optional mismatch workbook (.xlsx) path")
    parser.add_argument("--csv", type=str, help="Optional mismatch CSV path")
    parser.add_argument("--html", type=str, help="Optional mismatch HTML table path")
    parser.add_argument("--archive-dir", type=str, help="Archive inputs and outputs of this run under this directory")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level (default: WARNING)")
    return parser.parse_args(argv)


def print_summary(response: ReconciliationApiResponse) -> None:
    print(response.message)
    report = response.data
    if report is None:
        for error in response.errors:
            print(f"- {error}")
        return

    batches = report.batch_reconciliation
    overall = report.overall_stats
    print("Reconciliation Summary")
    print("======================")
    print(f"Report: {report.report_id}")
    print(f"Formulas: {report.data_sources.formula_master_count}")
    print(f"Batches: {batches.total_batches_in_system}")
    print(f"Matched to formula: {batches.batches_matched_to_formula}")
    print(f"Orphan batches: {batches.batches_not_matched_to_formula}")
    print(f"Mismatched batches: {batches.mismatched_batch_count}")
    print(f"Reconciliation: {batches.reconciliation_percentage}%")
    print(f"Compliance score: {overall.compliance_score}")

    if report.recommendations:
        print("\nRecommendations:")
        for item in report.recommendations:
            print(f"- [{item.priority}] {item.type}: {item.description}")
    elif not report.has_issues():
        print("\nNo discrepancies detected.")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(args.log_level)

    try:
        formula_repo = JsonFormulaRepository(Path(args.formulas))
        batch_repo = JsonBatchRepository(Path(args.batches))
    except (FileNotFoundError, TypeError) as exc:
        print(f"Error: {exc}")
        return 1

    context = ReconciliationContext(
        formula_repository=formula_repo,
        batch_repository=batch_repo,
        engine=ReconciliationEngine(),
    )
    response = RunReconciliationUseCase(context).execute()

    report_bytes = render_json(response)
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(report_bytes)
    print_summary(response)
    print(f"\nReport written to {output_path}")

    report = response.data
    if report is None:
        return 1

    outputs = [ArchiveFile(name=output_path.name, content=report_bytes)]
    if args.excel:
        excel_path = Path(args.excel)
        excel_path.parent.mkdir(parents=True, exist_ok=True)
        excel_bytes = render_excel(report)
        excel_path.write_bytes(excel_bytes)
        outputs.append(ArchiveFile(name=excel_path.name, content=excel_bytes))
        print(f"Mismatch workbook written to {excel_path}")
    if args.csv:
        csv_path = Path(args.csv)
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        csv_bytes = render_csv(mismatches_to_rows(report))
        csv_path.write_bytes(csv_bytes)
        outputs.append(ArchiveFile(name=csv_path.name, content=csv_bytes))
        print(f"Mismatch CSV written to {csv_path}")
    if args.html:
        html_path = Path(args.html)
        html_path.parent.mkdir(parents=True, exist_ok=True)
        html_bytes = render_html(report).encode("utf-8")
        html_path.write_bytes(html_bytes)
        outputs.append(ArchiveFile(name=html_path.name, content=html_bytes))
        print(f"Mismatch HTML written to {html_path}")

    if args.archive_dir:
        use_case = ArchiveReconciliationUseCase(repository=FileSystemArchiveRepository(Path(args.archive_dir)))
        receipt = use_case.archive_report(
            report,
            inputs=[
                ArchiveFile(name=Path(args.formulas).name, content=formula_repo.raw_bytes),
                ArchiveFile(name=Path(args.batches).name, content=batch_repo.raw_bytes),
            ],
            outputs=outputs,
        )
        print(f"Run archived to {receipt.location}")

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
