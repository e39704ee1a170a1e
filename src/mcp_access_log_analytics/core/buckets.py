"""Status-code bucketing and volume ranking."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .accumulator import GroupStats

DEFAULT_CHART_LIMIT = 10


@dataclass(frozen=True, slots=True)
class StatusBuckets:
    """Per-group status totals split into the four HTTP classes."""

    template: str
    success: int
    redirect: int
    client_error: int
    server_error: int

    @property
    def total(self) -> int:
        return self.success + self.redirect + self.client_error + self.server_error


def bucket_status(template: str, status_counts: Mapping[int, int]) -> StatusBuckets:
    """Sum a status -> count map into success/redirect/clientError/serverError.

    Codes below 200 (informational) are folded into success so every record
    lands in exactly one bucket.
    """
    success = redirect = client_error = server_error = 0
    for status, count in status_counts.items():
        if status < 300:
            success += count
        elif status < 400:
            redirect += count
        elif status < 500:
            client_error += count
        else:
            server_error += count
    return StatusBuckets(
        template=template,
        success=success,
        redirect=redirect,
        client_error=client_error,
        server_error=server_error,
    )


def top_status_groups(
    groups: Iterable[GroupStats], *, limit: int = DEFAULT_CHART_LIMIT
) -> list[StatusBuckets]:
    """Bucket every group and keep the `limit` largest by total.

    Ties are broken by ascending template; groups with a zero total are dropped.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    buckets = [bucket_status(g.template, g.status_counts) for g in groups]
    buckets = [b for b in buckets if b.total > 0]
    buckets.sort(key=lambda b: (-b.total, b.template))
    return buckets[:limit]
