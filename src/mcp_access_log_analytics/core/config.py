"""Analyzer configuration and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Literal

InvalidRecordPolicy = Literal["fail", "skip"]
INVALID_RECORD_POLICIES: tuple[str, ...] = ("fail", "skip")

PERFORMANCE_LIMIT_ENV = "LOG_ANALYTICS_PERFORMANCE_LIMIT"
CHART_LIMIT_ENV = "LOG_ANALYTICS_CHART_LIMIT"
INVALID_RECORDS_ENV = "LOG_ANALYTICS_INVALID_RECORDS"


@dataclass(frozen=True, slots=True)
class AnalyzerConfig:
    performance_limit: int = 100
    chart_limit: int = 10
    top_requests_limit: int = 10

    # "fail" aborts the whole run on the first bad record,
    # "skip" drops it and reports skipped_records in the summary.
    invalid_records: InvalidRecordPolicy = "fail"


def parse_invalid_records(value: str) -> InvalidRecordPolicy:
    """Validate an invalid-record policy name."""
    name = value.strip().lower()
    if name not in INVALID_RECORD_POLICIES:
        raise ValueError("invalid_records must be 'fail' or 'skip'")
    return name  # type: ignore[return-value]


def _positive_int_env(name: str) -> int | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = int(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1")
    return value


def resolve_analyzer_config(cfg: AnalyzerConfig | None = None) -> AnalyzerConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = AnalyzerConfig()

    performance_limit = _positive_int_env(PERFORMANCE_LIMIT_ENV)
    if performance_limit is not None:
        cfg = replace(cfg, performance_limit=performance_limit)

    chart_limit = _positive_int_env(CHART_LIMIT_ENV)
    if chart_limit is not None:
        cfg = replace(cfg, chart_limit=chart_limit)

    policy = os.getenv(INVALID_RECORDS_ENV)
    if policy:
        try:
            cfg = replace(cfg, invalid_records=parse_invalid_records(policy))
        except ValueError as exc:
            raise ValueError(f"{INVALID_RECORDS_ENV} must be 'fail' or 'skip'") from exc

    return cfg
