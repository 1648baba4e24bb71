"""Repository interfaces anchoring the domain layer."""
from __future__ import annotations

from typing import Protocol, Sequence

from .models import BatchContainerRecord, FormulaRecord


class FormulaRepository(Protocol):
    """Provides a read-only snapshot of the Formula Master collection."""

    def list_all_formulas(self) -> Sequence[FormulaRecord]:
        ...


class BatchRepository(Protocol):
    """Provides a read-only snapshot of the Batch Registry documents."""

    def list_all_batch_documents(self) -> Sequence[BatchContainerRecord]:
        ...
