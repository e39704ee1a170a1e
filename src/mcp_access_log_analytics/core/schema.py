"""Schema inference over the raw input records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .results import SchemaField

NULL = "NULL"
BOOLEAN = "BOOLEAN"
BIGINT = "BIGINT"
HUGEINT = "HUGEINT"
DOUBLE = "DOUBLE"
VARCHAR = "VARCHAR"
JSON = "JSON"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_NUMERIC_RANK = {BIGINT: 0, HUGEINT: 1, DOUBLE: 2}


def value_type(value: Any) -> str | None:
    """Type name for one JSON value; None for null."""
    if value is None:
        return None
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return BIGINT if _INT64_MIN <= value <= _INT64_MAX else HUGEINT
    if isinstance(value, float):
        return DOUBLE
    if isinstance(value, str):
        return VARCHAR
    return JSON


def common_supertype(a: str | None, b: str | None) -> str | None:
    """Least common supertype of two type names (None means nothing observed yet)."""
    if a is None:
        return b
    if b is None or a == b:
        return a
    if a in _NUMERIC_RANK and b in _NUMERIC_RANK:
        return a if _NUMERIC_RANK[a] > _NUMERIC_RANK[b] else b
    if JSON in (a, b):
        return JSON
    return VARCHAR


def infer_schema(records: Iterable[Mapping[str, Any]]) -> list[SchemaField]:
    """Describe every field seen across records, in first-seen order.

    A field is nullable when any record holds null for it or lacks it.
    """
    types: dict[str, str | None] = {}
    nullable: dict[str, bool] = {}
    seen_in: dict[str, int] = {}
    total = 0

    for record in records:
        total += 1
        for name, value in record.items():
            if name not in types:
                types[name] = None
                nullable[name] = False
                seen_in[name] = 0
            seen_in[name] += 1
            vt = value_type(value)
            if vt is None:
                nullable[name] = True
            else:
                types[name] = common_supertype(types[name], vt)

    return [
        SchemaField(
            name=name,
            inferred_type=types[name] or NULL,
            nullable=nullable[name] or seen_in[name] < total,
        )
        for name in types
    ]
