"""Application-level DTOs for batch reconciliation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from batch_recon.domain.results import ReconciliationReport


@dataclass(slots=True, frozen=True)
class ReconciliationApiResponse:
    """Outcome of one reconciliation request.

    Either ``success`` is true and ``data`` holds the complete report, or it is
    false, ``data`` is ``None`` and ``errors`` explains why.
    """

    success: bool
    message: str
    data: Optional[ReconciliationReport] = None
    errors: Sequence[str] = field(default_factory=tuple)
