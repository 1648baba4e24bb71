"""Formula Master vs Batch Registry reconciliation toolkit."""
from batch_recon.application.use_cases import ReconciliationContext, RunReconciliationUseCase
from batch_recon.domain.services import ReconciliationEngine
from batch_recon.infrastructure.repositories.json_repositories import (
    JsonBatchRepository,
    JsonFormulaRepository,
)

__all__ = [
    "RunReconciliationUseCase",
    "ReconciliationContext",
    "ReconciliationEngine",
    "JsonFormulaRepository",
    "JsonBatchRepository",
]
