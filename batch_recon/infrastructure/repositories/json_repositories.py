"""JSON-export-backed repositories for Formula Master and Batch Registry data."""
from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Sequence

from batch_recon.domain.models import BatchContainerRecord, FormulaRecord
from batch_recon.domain.repositories import BatchRepository, FormulaRepository
from batch_recon.infrastructure.parsing.documents import (
    batch_containers_from_documents,
    formulas_from_documents,
)
from batch_recon.infrastructure.parsing.utils import compute_file_hash, ensure_bytes, load_documents

logger = logging.getLogger(__name__)


class JsonFormulaRepository(FormulaRepository):
    def __init__(self, source: BytesIO | Path | bytes | str) -> None:
        self._source = ensure_bytes(source)

    @property
    def raw_bytes(self) -> bytes:
        return self._source

    def list_all_formulas(self) -> Sequence[FormulaRecord]:
        docs = load_documents(self._source, "Formula Master")
        logger.debug("Loaded %d formula documents (sha256=%s)", len(docs), compute_file_hash(self._source)[:12])
        return formulas_from_documents(docs)


class JsonBatchRepository(BatchRepository):
    def __init__(self, source: BytesIO | Path | bytes | str) -> None:
        self._source = ensure_bytes(source)

    @property
    def raw_bytes(self) -> bytes:
        return self._source

    def list_all_batch_documents(self) -> Sequence[BatchContainerRecord]:
        docs = load_documents(self._source, "Batch Registry")
        logger.debug("Loaded %d batch documents (sha256=%s)", len(docs), compute_file_hash(self._source)[:12])
        return batch_containers_from_documents(docs)
