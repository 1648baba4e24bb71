"""Application services orchestrating the reconciliation workflow."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from batch_recon.application.dto import ReconciliationApiResponse
from batch_recon.domain.repositories import BatchRepository, FormulaRepository
from batch_recon.domain.services import ReconciliationEngine

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationContext:
    formula_repository: FormulaRepository
    batch_repository: BatchRepository
    engine: ReconciliationEngine


class RunReconciliationUseCase:
    def __init__(self, context: ReconciliationContext) -> None:
        self._context = context

    def execute(self) -> ReconciliationApiResponse:
        try:
            formulas = self._context.formula_repository.list_all_formulas()
            batch_documents = self._context.batch_repository.list_all_batch_documents()
            report = self._context.engine.reconcile(formulas, batch_documents)
        except Exception as exc:
            logger.exception("Reconciliation failed")
            return ReconciliationApiResponse(
                success=False,
                message="Reconciliation failed",
                errors=(str(exc) or exc.__class__.__name__,),
            )

        return ReconciliationApiResponse(
            success=True,
            message=(
                f"Reconciliation completed. {report.data_sources.formula_master_count} formulas and "
                f"{report.data_sources.total_batch_records} batches analyzed."
            ),
            data=report,
        )
