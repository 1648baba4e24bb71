"""Flatten Batch Registry documents into individual batch line items."""
from __future__ import annotations

from typing import Any, Iterable

from .models import UNKNOWN, BatchContainerRecord, BatchLineItem, as_mapping, known_text

BATCH_TYPES = ("Export", "Import")

# BatchLineItem attribute -> key used by the stored batch entry
FIELD_KEYS = {
    "batch_number": "batchNumber",
    "item_code": "itemCode",
    "item_name": "itemName",
    "mfg_date": "mfgDate",
    "expiry_date": "expiryDate",
    "batch_size": "batchSize",
    "department": "department",
    "unit": "unit",
    "make": "make",
    "mfg_lic_no": "mfgLicNo",
    "location_id": "locationId",
    "pack": "pack",
}


def flatten_entry(entry: Any) -> BatchLineItem:
    raw = as_mapping(entry)
    values = {attr: known_text(raw.get(key)) for attr, key in FIELD_KEYS.items()}
    batch_type = known_text(raw.get("type"))
    return BatchLineItem(type=batch_type if batch_type in BATCH_TYPES else UNKNOWN, **values)


def flatten_batches(containers: Iterable[BatchContainerRecord]) -> tuple[BatchLineItem, ...]:
    """One line item per nested entry, in document order then entry order.

    Nothing is dropped: an entry that is not a mapping becomes an item whose
    fields are all UNKNOWN.
    """
    items: list[BatchLineItem] = []
    for container in containers:
        for entry in container.batches or ():
            items.append(flatten_entry(entry))
    return tuple(items)
