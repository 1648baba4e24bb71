"""Domain models for the batch reconciliation pipeline.

These dataclasses capture the canonical schema for normalized Formula Master
records and Batch Registry documents. Optional text fields are typed
``str | Unknown`` and carry the :data:`UNKNOWN` sentinel instead of a
placeholder string.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Union

BatchType = Literal["Export", "Import"]
MismatchType = Literal[
    "formula_missing",
    "revision_mismatch",
    "mfc_mismatch",
    "material_missing",
    "material_extra",
    "obsolete_formula",
]
Severity = Literal["critical", "warning", "info"]


class Unknown:
    """Marker for a field the source document did not provide.

    There is exactly one instance, :data:`UNKNOWN`. It is falsy and never
    equal to any string, so two missing values cannot be mistaken for
    matching data.
    """

    _instance: "Unknown | None" = None

    def __new__(cls) -> "Unknown":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNKNOWN"


UNKNOWN = Unknown()

Text = Union[str, Unknown]


def is_known(value: object) -> bool:
    return value is not UNKNOWN


def _dedupe_known(codes: tuple[Text, ...]) -> tuple[str, ...]:
    seen: list[str] = []
    for code in codes:
        if is_known(code) and code not in seen:
            seen.append(code)  # type: ignore[arg-type]
    return tuple(seen)


@dataclass(frozen=True)
class FormulaRecord:
    """A governed product formulation read from the Formula Master collection."""

    formula_id: str
    master_card_no: Text = UNKNOWN
    main_product_code: Text = UNKNOWN
    product_name: Text = UNKNOWN
    generic_name: Text = UNKNOWN
    manufacturer: Text = UNKNOWN
    revision_no: Text = UNKNOWN
    manufacturing_license_no: Text = UNKNOWN
    # Filling-stage codes and process-stage filling-product codes, in document order.
    filling_product_codes: tuple[Text, ...] = ()
    process_product_codes: tuple[Text, ...] = ()

    @property
    def secondary_product_codes(self) -> tuple[str, ...]:
        return _dedupe_known(self.filling_product_codes + self.process_product_codes)

    @property
    def linked_product_codes(self) -> tuple[str, ...]:
        """Main code first, then every secondary code in first-seen order."""
        return _dedupe_known((self.main_product_code,) + self.filling_product_codes + self.process_product_codes)


@dataclass(frozen=True)
class BatchContainerRecord:
    """One uploaded Batch Registry document holding nested batch entries.

    ``batches`` keeps the nested entries as raw mappings; they are only
    normalized by the flattener, which tolerates malformed entries.
    """

    document_id: str
    file_name: Text = UNKNOWN
    company_name: Text = UNKNOWN
    batches: tuple[Any, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BatchLineItem:
    """A single manufactured batch of one product code."""

    batch_number: Text = UNKNOWN
    item_code: Text = UNKNOWN
    item_name: Text = UNKNOWN
    mfg_date: Text = UNKNOWN
    expiry_date: Text = UNKNOWN
    batch_size: Text = UNKNOWN
    department: Text = UNKNOWN
    type: Union[BatchType, Unknown] = UNKNOWN
    unit: Text = UNKNOWN
    make: Text = UNKNOWN
    mfg_lic_no: Text = UNKNOWN
    location_id: Text = UNKNOWN
    pack: Text = UNKNOWN


@dataclass(frozen=True)
class Mismatch:
    """A discrepancy found while validating a batch against its formula."""

    type: MismatchType
    description: str
    severity: Severity


def as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def known_text(value: Any) -> Text:
    """Return ``value`` as stripped text, or UNKNOWN for blanks and the ``"N/A"`` placeholder."""
    if value is None or value is UNKNOWN:
        return UNKNOWN
    if isinstance(value, (Mapping, list, tuple, set)):
        return UNKNOWN
    text = str(value).strip()
    if not text or text.upper() == "N/A":
        return UNKNOWN
    return text
