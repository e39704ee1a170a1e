"""Core data models for access-log analytics."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import FieldMissingError

REQUIRED_FIELDS = ("request", "status", "request_time")


class PipelineState(str, Enum):
    """Lifecycle states of a single analysis run."""

    IDLE = "idle"
    LOADING = "loading"
    COMPUTING = "computing"
    READY = "ready"
    ERROR = "error"


def _where(index: int | None) -> str:
    return "record" if index is None else f"record #{index}"


@dataclass(frozen=True, slots=True)
class LogRecord:
    """One validated access-log record (extra fields are kept for schema inference)."""

    request: str
    status: int
    request_time: float
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any], *, index: int | None = None) -> LogRecord:
        """Validate a JSON-like object and build a record from it.

        Raises FieldMissingError when request/status/request_time is absent or
        has the wrong type. Booleans are rejected even though they are ints.
        """
        for name in REQUIRED_FIELDS:
            if obj.get(name) is None:
                raise FieldMissingError(
                    f"{_where(index)}: missing required field '{name}'", index=index, field=name
                )

        request = obj["request"]
        if not isinstance(request, str) or not request:
            raise FieldMissingError(
                f"{_where(index)}: 'request' must be a non-empty string", index=index, field="request"
            )

        status = obj["status"]
        if isinstance(status, bool) or not isinstance(status, int):
            raise FieldMissingError(
                f"{_where(index)}: 'status' must be an integer, got {type(status).__name__}",
                index=index,
                field="status",
            )

        request_time = obj["request_time"]
        if isinstance(request_time, bool) or not isinstance(request_time, (int, float)):
            raise FieldMissingError(
                f"{_where(index)}: 'request_time' must be a number, got {type(request_time).__name__}",
                index=index,
                field="request_time",
            )
        try:
            seconds = float(request_time)
        except OverflowError:
            seconds = math.inf
        if not math.isfinite(seconds):
            raise FieldMissingError(
                f"{_where(index)}: 'request_time' must be finite", index=index, field="request_time"
            )

        extra = {k: v for k, v in obj.items() if k not in REQUIRED_FIELDS}
        return cls(request=request, status=status, request_time=seconds, extra=extra)
