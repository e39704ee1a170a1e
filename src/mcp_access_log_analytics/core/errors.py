"""Error taxonomy for the analytics pipeline."""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for failures reported by the analytics pipeline."""


class InputFormatError(AnalyticsError, ValueError):
    """Input is not a well-formed collection of objects."""


class FieldMissingError(AnalyticsError, ValueError):
    """A record lacks a required field or carries a wrong-typed value."""

    def __init__(self, message: str, *, index: int | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.index = index
        self.field = field


class EngineUnavailableError(AnalyticsError, RuntimeError):
    """The aggregation engine is not ready to accept a run."""


class PipelineBusyError(AnalyticsError, RuntimeError):
    """A run is already in flight."""
