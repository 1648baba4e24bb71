"""Archive application use cases."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from batch_recon.domain.archive.entities import (
    ArchiveFile,
    ArchiveReceipt,
    ArchiveReconciliationRequest,
)
from batch_recon.domain.results import ReconciliationReport
from batch_recon.infrastructure.archive.file_repository import FileSystemArchiveRepository


@dataclass(slots=True)
class ArchiveReconciliationUseCase:
    repository: FileSystemArchiveRepository

    def execute(self, request: ArchiveReconciliationRequest) -> ArchiveReceipt:
        return self.repository.save_run(request)

    def archive_report(
        self,
        report: ReconciliationReport,
        inputs: Sequence[ArchiveFile],
        outputs: Sequence[ArchiveFile],
    ) -> ArchiveReceipt:
        request = ArchiveReconciliationRequest(
            run_id=report.report_id,
            report_id=report.report_id,
            generated_at=report.generated_at,
            inputs=inputs,
            outputs=outputs,
        )
        return self.execute(request)
