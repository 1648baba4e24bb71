"""Central configuration for the batch reconciliation package."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
ARCHIVE_DIR = DATA_DIR / "archive"

# Placeholder written wherever a source document left a field empty.
UNKNOWN_LABEL = "N/A"


@dataclass(slots=True, frozen=True)
class Settings:
    unknown_label: str
    report_id_prefix: str
    timezone: tzinfo
    orphan_high_risk_threshold: int
    mfc_correction_min_batches: int
    urgent_review_min_batches: int
    urgent_review_limit: int
    formula_cleanup_threshold: int
    archive_dir: Path


SETTINGS = Settings(
    unknown_label=UNKNOWN_LABEL,
    report_id_prefix="RECON",
    timezone=timezone.utc,
    orphan_high_risk_threshold=5,
    mfc_correction_min_batches=10,
    urgent_review_min_batches=5,
    urgent_review_limit=5,
    formula_cleanup_threshold=5,
    archive_dir=ARCHIVE_DIR,
)
