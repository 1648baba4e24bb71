"""Archive entities for keeping the inputs and outputs of a reconciliation run."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Sequence


@dataclass(frozen=True)
class ArchiveFile:
    name: str
    content: bytes


@dataclass(frozen=True)
class ArchiveReconciliationRequest:
    """Snapshot of one run: the exports it read and the reports it produced."""

    run_id: str
    report_id: str
    generated_at: datetime
    inputs: Sequence[ArchiveFile]
    outputs: Sequence[ArchiveFile]


@dataclass(frozen=True)
class ArchiveReceipt:
    run_id: str
    location: Path
    file_count: int
