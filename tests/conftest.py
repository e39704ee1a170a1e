from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from mcp_access_log_analytics.core.engine import AggregationEngine
from mcp_access_log_analytics.core.pipeline import PipelineController


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    return [
        {"request": "/api/user/1/profile?token=abcd", "status": 200, "request_time": 0.12},
        {"request": "/api/user/2/profile?token=ef01", "status": 200, "request_time": 0.3},
        {"request": "/api/user/1/profile?token=abcd", "status": 500, "request_time": 1.5},
        {"request": "/health", "status": 200, "request_time": 0.001},
        {"request": "/login", "status": 401, "request_time": 0.2, "remote_addr": "10.0.0.1"},
        {"request": "/login", "status": 302, "request_time": 0.25},
    ]


@pytest.fixture
def engine() -> Iterator[AggregationEngine]:
    with AggregationEngine() as eng:
        yield eng


@pytest.fixture
def controller(engine: AggregationEngine) -> PipelineController:
    return PipelineController(engine)


@pytest.fixture
def write_json_log() -> Callable[[Path, Any], None]:
    def _write(path: Path, data: Any) -> None:
        path.write_text(json.dumps(data), encoding="utf-8")

    return _write


@pytest.fixture
def write_json_lines() -> Callable[[Path, list[dict[str, Any]]], None]:
    def _write(path: Path, records: list[dict[str, Any]]) -> None:
        path.write_text("".join(json.dumps(r) + "\n" for r in records), encoding="utf-8")

    return _write
