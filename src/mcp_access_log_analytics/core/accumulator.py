"""Per-template grouping and running statistics."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from .models import LogRecord
from .normalizer import normalize
from .percentiles import percentile_cont


@dataclass(slots=True)
class NormalizedGroup:
    """Running state for one normalized template."""

    template: str
    latencies: list[float] = field(default_factory=list)
    status_counts: Counter[int] = field(default_factory=Counter)
    original_patterns: list[str] = field(default_factory=list)
    _seen: set[str] = field(default_factory=set, repr=False)

    @property
    def count(self) -> int:
        return len(self.latencies)

    def add(self, record: LogRecord) -> None:
        """Fold one record whose request normalizes to this template."""
        self.latencies.append(record.request_time)
        self.status_counts[record.status] += 1
        if record.request != self.template and record.request not in self._seen:
            self._seen.add(record.request)
            self.original_patterns.append(record.request)


@dataclass(frozen=True, slots=True)
class GroupStats:
    """Finished statistics for one group."""

    template: str
    count: int
    total_time: float
    min_time: float
    max_time: float
    avg_time: float
    p95_time: float
    p99_time: float
    status_counts: Mapping[int, int]
    original_patterns: tuple[str, ...]


def summarize_group(group: NormalizedGroup) -> GroupStats:
    """Compute count/sum/min/max/avg and p95/p99 for a non-empty group."""
    if not group.latencies:
        raise ValueError(f"group {group.template!r} has no samples")

    ordered = sorted(group.latencies)
    count = len(ordered)
    total = math.fsum(ordered)
    lo = ordered[0]
    hi = ordered[-1]
    avg = min(max(total / count, lo), hi)

    return GroupStats(
        template=group.template,
        count=count,
        total_time=total,
        min_time=lo,
        max_time=hi,
        avg_time=avg,
        p95_time=percentile_cont(ordered, 0.95),
        p99_time=percentile_cont(ordered, 0.99),
        status_counts=dict(group.status_counts),
        original_patterns=tuple(group.original_patterns),
    )


class GroupAccumulator:
    """Keyed store mapping normalized templates to their running statistics.

    One accumulator belongs to exactly one run; the engine hands out a fresh
    one per run and drops the previous instance.
    """

    def __init__(self, normalizer: Callable[[str], str] = normalize) -> None:
        self._normalize = normalizer
        self._groups: dict[str, NormalizedGroup] = {}
        self._request_hits: Counter[str] = Counter()
        self._record_count = 0

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[NormalizedGroup]:
        return iter(self._groups.values())

    @property
    def record_count(self) -> int:
        return self._record_count

    @property
    def request_hits(self) -> Mapping[str, int]:
        """Hit counts per raw (non-normalized) request."""
        return self._request_hits

    def get(self, template: str) -> NormalizedGroup | None:
        return self._groups.get(template)

    def ingest(self, record: LogRecord | Mapping[str, Any], *, index: int | None = None) -> str:
        """Fold a record into its group and return the group key.

        Mappings are validated first; FieldMissingError propagates before any
        group is touched.
        """
        if not isinstance(record, LogRecord):
            record = LogRecord.from_mapping(record, index=index)

        key = self._normalize(record.request)
        group = self._groups.get(key)
        if group is None:
            group = NormalizedGroup(template=key)
            self._groups[key] = group

        group.add(record)
        self._request_hits[record.request] += 1
        self._record_count += 1
        return key

    def finalize(self) -> list[GroupStats]:
        """Return finished statistics for every group, in first-seen order."""
        return [summarize_group(g) for g in self._groups.values()]

    def clear(self) -> None:
        """Drop all groups and counters."""
        self._groups = {}
        self._request_hits = Counter()
        self._record_count = 0
