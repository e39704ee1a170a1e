"""Dataset loading.

Reads a JSON array, a single JSON object, or JSON lines (plain or .gz) into a
list of raw record mappings. Field validation happens later, in the pipeline.
"""

from __future__ import annotations

import gzip
import json
from collections.abc import Mapping
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiofiles
from aiofiles.threadpool import wrap

from .errors import InputFormatError

DATASET_SUFFIXES = frozenset({".json", ".jsonl", ".ndjson", ".log", ".txt"})


def dataset_suffix(path: Path) -> str:
    """Suffix of the dataset inside an optional .gz wrapper."""
    suffix = path.suffix.lower()
    if suffix == ".gz":
        return path.with_suffix("").suffix.lower()
    return suffix


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a dataset for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
            yield f


def coerce_records(data: Any) -> list[Mapping[str, Any]]:
    """Accept a list of objects or a single object; anything else is malformed."""
    if isinstance(data, Mapping):
        return [data]
    if not isinstance(data, list):
        raise InputFormatError(
            f"Expected a JSON array of objects or a JSON object, got {type(data).__name__}"
        )
    for i, item in enumerate(data):
        if not isinstance(item, Mapping):
            raise InputFormatError(f"Item #{i} is {type(item).__name__}, expected an object")
    return list(data)


def _parse_json_lines(text: str) -> list[Mapping[str, Any]]:
    records: list[Mapping[str, Any]] = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        s = line.strip()
        if not s:
            continue
        try:
            obj = json.loads(s)
        except json.JSONDecodeError as exc:
            raise InputFormatError(f"Line {line_no} is not valid JSON: {exc.msg}") from exc
        if not isinstance(obj, Mapping):
            raise InputFormatError(f"Line {line_no} is {type(obj).__name__}, expected an object")
        records.append(obj)
    return records


def parse_records_text(text: str) -> list[Mapping[str, Any]]:
    """Parse dataset text as a JSON document, falling back to JSON lines."""
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return _parse_json_lines(text)
    return coerce_records(data)


async def load_records(
    path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> list[Mapping[str, Any]]:
    """Read and parse a dataset file."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Log file not found: {p}")
    async with _open_text(p, encoding=encoding, decode_errors=decode_errors) as f:
        text = await f.read()
    return parse_records_text(text)
