import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from batch_recon.application.archive.use_cases import ArchiveReconciliationUseCase
from batch_recon.domain.archive.entities import ArchiveFile, ArchiveReconciliationRequest
from batch_recon.domain.services import ReconciliationEngine
from batch_recon.infrastructure.archive.file_repository import FileSystemArchiveRepository

GENERATED_AT = datetime(2024, 10, 5, 10, 15, tzinfo=timezone.utc)


@pytest.fixture
def repo(tmp_path: Path) -> FileSystemArchiveRepository:
    return FileSystemArchiveRepository(tmp_path / "history")


def test_archive_use_case_creates_run_directory(repo: FileSystemArchiveRepository, tmp_path: Path) -> None:
    use_case = ArchiveReconciliationUseCase(repository=repo)
    request = ArchiveReconciliationRequest(
        run_id="20241005_101500",
        report_id="RECON-1728123300000",
        generated_at=GENERATED_AT,
        inputs=[ArchiveFile(name="formulas.json", content=b"[]")],
        outputs=[ArchiveFile(name="reconciliation_report.json", content=b"{}")],
    )

    receipt = use_case.execute(request)

    run_dir = tmp_path / "history" / "20241005_101500"
    assert run_dir.is_dir()
    assert (run_dir / "inputs" / "formulas.json").read_bytes() == b"[]"
    assert (run_dir / "outputs" / "reconciliation_report.json").read_bytes() == b"{}"

    manifest = json.loads((run_dir / "manifest.json").read_text())
    assert manifest["report_id"] == "RECON-1728123300000"
    assert manifest["inputs"] == [{"name": "inputs/formulas.json", "bytes": 2}]
    assert receipt.location == run_dir
    assert receipt.file_count == 2


def test_archive_use_case_normalizes_run_id_and_file_names(repo: FileSystemArchiveRepository, tmp_path: Path) -> None:
    use_case = ArchiveReconciliationUseCase(repository=repo)
    request = ArchiveReconciliationRequest(
        run_id=" 2024/10/05 10:15:00 ",
        report_id="RECON-1",
        generated_at=GENERATED_AT,
        inputs=[ArchiveFile(name="../../escape.json", content=b"x")],
        outputs=[],
    )

    receipt = use_case.execute(request)

    expected_dir = tmp_path / "history" / "20241005_101500"
    assert receipt.location == expected_dir
    assert (expected_dir / "inputs" / "escape.json").is_file()
    assert not (tmp_path / "escape.json").exists()


def test_archive_keeps_files_with_the_same_base_name(repo: FileSystemArchiveRepository) -> None:
    request = ArchiveReconciliationRequest(
        run_id="20241005_101500",
        report_id="RECON-1",
        generated_at=GENERATED_AT,
        inputs=[
            ArchiveFile(name="formulas/export.json", content=b"FORMULAS"),
            ArchiveFile(name="batches/export.json", content=b"BATCHES"),
        ],
        outputs=[ArchiveFile(name="export.json", content=b"REPORT")],
    )

    receipt = ArchiveReconciliationUseCase(repository=repo).execute(request)

    run_dir = receipt.location
    assert (run_dir / "inputs" / "export.json").read_bytes() == b"FORMULAS"
    assert (run_dir / "inputs" / "export_2.json").read_bytes() == b"BATCHES"
    assert (run_dir / "outputs" / "export.json").read_bytes() == b"REPORT"
    assert receipt.file_count == 3
    manifest = json.loads((run_dir / "manifest.json").read_text())
    assert [entry["name"] for entry in manifest["inputs"]] == ["inputs/export.json", "inputs/export_2.json"]


def test_archive_report_uses_report_id_as_run_id(repo: FileSystemArchiveRepository) -> None:
    report = ReconciliationEngine(clock=lambda: GENERATED_AT).reconcile([], [])

    receipt = ArchiveReconciliationUseCase(repository=repo).archive_report(report, inputs=[], outputs=[])

    assert receipt.run_id == "RECON-1728123300000"
    manifest = json.loads((receipt.location / "manifest.json").read_text())
    assert manifest["report_id"] == report.report_id


def test_runs_in_the_same_second_get_separate_directories(repo: FileSystemArchiveRepository) -> None:
    use_case = ArchiveReconciliationUseCase(repository=repo)
    first = ReconciliationEngine(clock=lambda: GENERATED_AT).reconcile([], [])
    second = ReconciliationEngine(clock=lambda: GENERATED_AT.replace(microsecond=250_000)).reconcile([], [])

    receipts = [use_case.archive_report(report, inputs=[], outputs=[]) for report in (first, second)]

    assert receipts[0].location != receipts[1].location
