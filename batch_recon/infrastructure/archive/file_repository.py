"""Filesystem repository for archiving reconciliation runs."""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Sequence

from batch_recon.domain.archive.entities import (
    ArchiveFile,
    ArchiveReceipt,
    ArchiveReconciliationRequest,
)

logger = logging.getLogger(__name__)


def _normalize_run_id(run_id: str) -> str:
    if not run_id:
        return "run"
    digits = re.findall(r"\d", run_id)
    if len(digits) >= 14:
        return f"{''.join(digits[:8])}_{''.join(digits[8:14])}{''.join(digits[14:])}"
    sanitized = re.sub(r"[^0-9A-Za-z_-]+", "", run_id.strip())
    return sanitized or "run"


def _safe_name(name: str) -> str:
    # Keep archived files inside the run directory.
    return Path(name).name or "unnamed"


def _unique_names(files: Sequence[ArchiveFile]) -> list[str]:
    """Safe file names, suffixed ``_2``, ``_3``... where two files would collide."""
    names: list[str] = []
    for archive_file in files:
        name = _safe_name(archive_file.name)
        stem, suffix = Path(name).stem, Path(name).suffix
        counter = 2
        while name in names:
            name = f"{stem}_{counter}{suffix}"
            counter += 1
        names.append(name)
    return names


class FileSystemArchiveRepository:
    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def save_run(self, request: ArchiveReconciliationRequest) -> ArchiveReceipt:
        run_id = _normalize_run_id(request.run_id)
        run_dir = self._root / run_id
        run_dir.mkdir(parents=True, exist_ok=True)

        manifest: dict[str, object] = {
            "run_id": run_id,
            "report_id": request.report_id,
            "generated_at": request.generated_at.isoformat(),
        }
        file_count = 0
        for section, files in (("inputs", request.inputs), ("outputs", request.outputs)):
            section_dir = run_dir / section
            section_dir.mkdir(exist_ok=True)
            entries = []
            for archive_file, name in zip(files, _unique_names(files)):
                (section_dir / name).write_bytes(archive_file.content)
                entries.append({"name": f"{section}/{name}", "bytes": len(archive_file.content)})
            manifest[section] = entries
            file_count += len(entries)

        (run_dir / "manifest.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        logger.info("Archived reconciliation %s to %s (%d files)", request.report_id, run_dir, file_count)

        return ArchiveReceipt(run_id=run_id, location=run_dir, file_count=file_count)
