"""
Ledger metadata values.

Contracts return metadata as ``[(key, value), ...]`` where each value is a
single-key variant: ``{"Text": str}``, ``{"Nat": int}``, ``{"Int": int}``,
``{"Blob": bytes}``, ``{"Array": [value, ...]}`` or
``{"Map": [(key, value), ...]}``.
"""

from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import InvalidInput

MetadataValue = Dict[str, Any]
Metadata = List[Tuple[str, MetadataValue]]

__all__ = [
    "MetadataValue",
    "Metadata",
    "lookup",
    "lookup_text",
    "lookup_nat",
    "metadata_value_to_json",
]


def lookup(metadata: Sequence[Tuple[str, MetadataValue]], key: str) -> Optional[MetadataValue]:
    for entry_key, value in metadata:
        if entry_key == key:
            return value
    return None


def lookup_text(metadata: Sequence[Tuple[str, MetadataValue]], key: str) -> Optional[str]:
    value = lookup(metadata, key)
    if isinstance(value, dict) and isinstance(value.get("Text"), str):
        return value["Text"]
    return None


def lookup_nat(metadata: Sequence[Tuple[str, MetadataValue]], key: str) -> Optional[int]:
    value = lookup(metadata, key)
    if isinstance(value, dict) and isinstance(value.get("Nat"), int):
        return value["Nat"]
    return None


def metadata_value_to_json(value: MetadataValue) -> Any:
    """Plain JSON-compatible view: blobs as base64, maps as objects."""
    if not isinstance(value, dict) or len(value) != 1:
        raise InvalidInput("metadata value must be a single-key variant", details={"value": value})
    (tag, inner), = value.items()
    if tag == "Blob":
        return base64.b64encode(bytes(inner)).decode("ascii")
    if tag in ("Text", "Nat", "Int"):
        return inner
    if tag == "Array":
        return [metadata_value_to_json(v) for v in inner]
    if tag == "Map":
        return {k: metadata_value_to_json(v) for k, v in inner}
    raise InvalidInput(f"unsupported metadata variant {tag!r}", details={"value": value})
