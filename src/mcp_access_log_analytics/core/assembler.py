"""Build the published row-sets from a finished accumulator."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence

from .accumulator import GroupAccumulator, GroupStats
from .buckets import top_status_groups
from .config import AnalyzerConfig
from .results import (
    AnalysisResult,
    DatasetSummary,
    PerformanceAnalysis,
    RequestHits,
    RequestTimeStats,
    SchemaField,
    StatusChartData,
    StatusCodeAnalysis,
    StatusCount,
)


def status_code_rows(stats: Sequence[GroupStats]) -> list[StatusCodeAnalysis]:
    """One row per (template, status) with a nonzero count, template then status ascending."""
    rows = [
        StatusCodeAnalysis(request=g.template, status=status, count=count)
        for g in stats
        for status, count in g.status_counts.items()
        if count > 0
    ]
    rows.sort(key=lambda r: (r.request, r.status))
    return rows


def performance_rows(stats: Sequence[GroupStats], *, limit: int) -> list[PerformanceAnalysis]:
    """Groups by total_time descending (template ascending on ties), truncated to limit."""
    if limit < 1:
        raise ValueError("limit must be >= 1")
    ordered = sorted(stats, key=lambda g: (-g.total_time, g.template))[:limit]
    return [
        PerformanceAnalysis(
            request=g.template,
            total_requests=g.count,
            avg_time=g.avg_time,
            max_time=g.max_time,
            min_time=g.min_time,
            p95_time=g.p95_time,
            p99_time=g.p99_time,
            total_time=g.total_time,
            original_patterns=list(g.original_patterns),
        )
        for g in ordered
    ]


def chart_rows(stats: Sequence[GroupStats], *, limit: int) -> list[StatusChartData]:
    return [
        StatusChartData(
            request=b.template,
            success=b.success,
            redirect=b.redirect,
            client_error=b.client_error,
            server_error=b.server_error,
            total=b.total,
        )
        for b in top_status_groups(stats, limit=limit)
    ]


def request_time_stats(accumulator: GroupAccumulator) -> RequestTimeStats:
    """Overall mean and population variance of request_time."""
    samples = [t for g in accumulator for t in g.latencies]
    if not samples:
        return RequestTimeStats()
    n = len(samples)
    mean = math.fsum(samples) / n
    var = math.fsum((t - mean) ** 2 for t in samples) / n
    return RequestTimeStats(avg_time=mean, var_time=var)


def summarize_dataset(
    accumulator: GroupAccumulator,
    *,
    skipped_records: int,
    top_requests_limit: int,
) -> DatasetSummary:
    hits = sorted(accumulator.request_hits.items(), key=lambda kv: (-kv[1], kv[0]))
    statuses: Counter[int] = Counter()
    for g in accumulator:
        statuses.update(g.status_counts)

    return DatasetSummary(
        total_records=accumulator.record_count,
        skipped_records=skipped_records,
        group_count=len(accumulator),
        top_requests=[RequestHits(request=r, hits=h) for r, h in hits[:top_requests_limit]],
        status_distribution=[StatusCount(status=s, count=statuses[s]) for s in sorted(statuses)],
        request_time=request_time_stats(accumulator),
    )


def assemble_results(
    accumulator: GroupAccumulator,
    *,
    cfg: AnalyzerConfig,
    schema_fields: Sequence[SchemaField] = (),
    skipped_records: int = 0,
) -> AnalysisResult:
    """Produce all projections from the same finished accumulator state."""
    stats = accumulator.finalize()
    return AnalysisResult(
        status_code_analysis=status_code_rows(stats),
        performance_analysis=performance_rows(stats, limit=cfg.performance_limit),
        status_chart_data=chart_rows(stats, limit=cfg.chart_limit),
        schema_fields=list(schema_fields),
        summary=summarize_dataset(
            accumulator,
            skipped_records=skipped_records,
            top_requests_limit=cfg.top_requests_limit,
        ),
    )
