"""Fold the remaining fields of a log record into an attribute list."""

from __future__ import annotations

import json
from typing import Any

from log2avro.errors import EncodeError


def _as_scalar(value: Any) -> Any:
    if not isinstance(value, (dict, list)):
        return value
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"cannot serialize nested value: {exc}") from exc


def to_schema_value(value: Any) -> Any:
    """Fit *value* into the schema's value union.

    The union holds scalars plus one level of array or map. Lists and dicts
    found inside a top-level list or dict are replaced by their JSON text.
    """
    if isinstance(value, dict):
        return {key: _as_scalar(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_as_scalar(item) for item in value]
    return value


def collect_attributes(record: dict[str, Any]) -> list[dict[str, Any]]:
    """Return ``[{"key": k, "val": v}, ...]`` for every key, sorted by key.

    The sort makes the output independent of dict insertion order, so the
    same record always encodes to the same bytes.
    """
    return [
        {"key": key, "val": to_schema_value(record[key])} for key in sorted(record)
    ]
