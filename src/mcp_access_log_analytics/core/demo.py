"""Bundled demo dataset (nginx JSON access-log shaped records)."""

from __future__ import annotations

import random
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

DEMO_SEED = 20241201
DEMO_SIZE = 500

_START = datetime(2024, 12, 1, 9, 0, 0, tzinfo=UTC)
_AGENTS = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_1) AppleWebKit/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Gecko/20100101 Firefox/121.0",
    "curl/8.4.0",
)


def _status(rng: random.Random, error_rate: float) -> int:
    roll = rng.random()
    if roll < error_rate / 2:
        return rng.choice((500, 502, 503))
    if roll < error_rate:
        return rng.choice((400, 401, 404))
    if roll < error_rate + 0.05:
        return rng.choice((301, 304))
    return 200


def _request(rng: random.Random) -> tuple[str, str, float, float]:
    """Return (method, request, base latency, error rate) for one synthetic hit."""
    kind = rng.randrange(8)
    if kind == 0:
        return "GET", f"/api/users/{rng.randint(1, 40)}", 0.04, 0.02
    if kind == 1:
        token = "".join(rng.choices("abcdef0123456789", k=12))
        return "GET", f"/api/users/{rng.randint(1, 40)}/profile?token={token}", 0.09, 0.05
    if kind == 2:
        item = uuid.UUID(int=rng.getrandbits(128), version=4)
        return "POST", f"/items/{item}/edit", 0.25, 0.08
    if kind == 3:
        return "GET", f"/api/orders/{rng.randint(1000, 1100)}?page={rng.randint(1, 5)}&sort=desc", 0.3, 0.1
    if kind == 4:
        return "GET", "/static/app.js", 0.005, 0.0
    if kind == 5:
        return "POST", "/login", 0.15, 0.2
    if kind == 6:
        return "GET", f"/reports/{rng.randint(2020, 2024)}", 1.2, 0.15
    return "GET", "/health", 0.001, 0.0


def demo_records(size: int = DEMO_SIZE, *, seed: int = DEMO_SEED) -> list[dict[str, Any]]:
    """Deterministic demo records; the same seed always yields the same dataset."""
    rng = random.Random(seed)
    records: list[dict[str, Any]] = []
    for i in range(size):
        method, request, base, error_rate = _request(rng)
        status = _status(rng, error_rate)
        latency = round(base * rng.uniform(0.5, 3.0) + (0.5 if status >= 500 else 0.0), 3)
        records.append(
            {
                "time_local": (_START + timedelta(seconds=7 * i)).isoformat(),
                "remote_addr": f"10.0.{rng.randint(0, 3)}.{rng.randint(1, 254)}",
                "method": method,
                "request": request,
                "status": status,
                "body_bytes_sent": rng.randint(0, 48_000),
                "request_time": latency,
                "http_user_agent": rng.choice(_AGENTS),
                "http_referer": None if rng.random() < 0.7 else "https://example.com/",
            }
        )
    return records
