"""Shared parsing utilities for document exports."""
from __future__ import annotations

import hashlib
import json
from io import BytesIO
from pathlib import Path
from typing import Any, Mapping

from batch_recon.domain.models import as_mapping, known_text


def ensure_bytes(source: BytesIO | Path | bytes | str) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, str):
        source = Path(source)
    if isinstance(source, Path):
        if not source.exists():
            raise FileNotFoundError(f"Export file not found: {source}")
        return source.read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def compute_file_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def load_documents(raw: bytes, label: str) -> list[Mapping[str, Any]]:
    """Decode a JSON array export into a list of documents."""
    try:
        data = json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"{label} export is not valid JSON") from exc
    if isinstance(data, Mapping):
        # {"data": [...]} envelopes as returned by the listing endpoints
        data = data.get("data", data.get("documents"))
    if not isinstance(data, list):
        raise ValueError(f"{label} export must be a JSON array of documents")
    if not all(isinstance(item, Mapping) for item in data):
        raise ValueError(f"{label} export contains entries that are not objects")
    return list(data)


def document_id(doc: Mapping[str, Any], *keys: str) -> str | None:
    """Return the first usable identifier among ``keys``.

    Handles Mongo extended JSON (``{"$oid": "..."}``) as written by
    ``mongoexport``.
    """
    for key in keys:
        value = doc.get(key)
        if isinstance(value, Mapping):
            value = value.get("$oid")
        text = known_text(value)
        if isinstance(text, str):
            return text
    return None


def nested(doc: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    return as_mapping(doc.get(key))


def list_of(doc: Mapping[str, Any], key: str) -> list[Any]:
    value = doc.get(key)
    return list(value) if isinstance(value, (list, tuple)) else []
