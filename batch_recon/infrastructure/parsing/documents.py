"""Convert stored Formula Master and Batch Registry documents into domain records."""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from batch_recon.domain.models import BatchContainerRecord, FormulaRecord, Text, as_mapping, known_text
from batch_recon.infrastructure.parsing.utils import document_id, list_of, nested


def _codes(entries: Iterable[Any]) -> tuple[Text, ...]:
    return tuple(known_text(as_mapping(entry).get("productCode")) for entry in entries)


def formula_from_document(doc: Mapping[str, Any], position: int = 0) -> FormulaRecord:
    details = nested(doc, "masterFormulaDetails")
    process_codes: list[Text] = []
    for process in list_of(doc, "processes"):
        process_codes.extend(_codes(list_of(as_mapping(process), "fillingProducts")))

    return FormulaRecord(
        formula_id=document_id(doc, "_id", "id", "uniqueIdentifier") or f"formula-{position}",
        master_card_no=known_text(details.get("masterCardNo")),
        main_product_code=known_text(details.get("productCode")),
        product_name=known_text(details.get("productName")),
        generic_name=known_text(details.get("genericName")),
        manufacturer=known_text(details.get("manufacturer")),
        revision_no=known_text(details.get("revisionNo")),
        manufacturing_license_no=known_text(details.get("manufacturingLicenseNo")),
        filling_product_codes=_codes(list_of(doc, "fillingDetails")),
        process_product_codes=tuple(process_codes),
    )


def batch_container_from_document(doc: Mapping[str, Any], position: int = 0) -> BatchContainerRecord:
    return BatchContainerRecord(
        document_id=document_id(doc, "_id", "id") or f"batch-document-{position}",
        file_name=known_text(doc.get("fileName")),
        company_name=known_text(doc.get("companyName")),
        batches=tuple(list_of(doc, "batches")),
    )


def formulas_from_documents(docs: Sequence[Mapping[str, Any]]) -> list[FormulaRecord]:
    return [formula_from_document(doc, idx) for idx, doc in enumerate(docs)]


def batch_containers_from_documents(docs: Sequence[Mapping[str, Any]]) -> list[BatchContainerRecord]:
    return [batch_container_from_document(doc, idx) for idx, doc in enumerate(docs)]
