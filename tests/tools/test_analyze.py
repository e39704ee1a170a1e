from __future__ import annotations

from pathlib import Path

import pytest

from mcp_access_log_analytics.core.models import PipelineState
from mcp_access_log_analytics.core.pipeline import PipelineController
from mcp_access_log_analytics.tools.analyze import (
    analyze_access_log_impl,
    analyze_demo_dataset_impl,
    latest_results_impl,
    normalize_request_impl,
    pipeline_status_impl,
)


@pytest.mark.asyncio
async def test_analyze_access_log_impl(
    controller: PipelineController, tmp_path: Path, write_json_log, sample_records
) -> None:
    path = tmp_path / "access.json"
    write_json_log(path, sample_records)

    out = await analyze_access_log_impl(controller, log_path=str(path))

    assert out["state"] == "ready"
    assert out["performance_analysis"][0]["request"] == "/api/user/:id/profile?token=:param"
    assert out["status_chart_data"][0]["serverError"] == 1
    assert out["summary"]["total_records"] == len(sample_records)
    assert {f["name"] for f in out["schema_fields"]} >= {"request", "status", "request_time", "remote_addr"}


@pytest.mark.asyncio
async def test_analyze_access_log_impl_sections(
    controller: PipelineController, tmp_path: Path, write_json_log, sample_records
) -> None:
    path = tmp_path / "access.json"
    write_json_log(path, sample_records)

    out = await analyze_access_log_impl(controller, log_path=str(path), sections="summary, status_chart_data")

    assert set(out) == {"state", "summary", "status_chart_data"}


@pytest.mark.asyncio
async def test_analyze_access_log_impl_unknown_section_does_not_run(
    controller: PipelineController, tmp_path: Path, write_json_log, sample_records
) -> None:
    path = tmp_path / "access.json"
    write_json_log(path, sample_records)

    with pytest.raises(ValueError, match="Unknown section"):
        await analyze_access_log_impl(controller, log_path=str(path), sections=["charts"])
    assert controller.state is PipelineState.IDLE


def test_analyze_demo_dataset_impl(controller: PipelineController) -> None:
    out = analyze_demo_dataset_impl(controller, sections=["performance_analysis"])
    assert out["state"] == "ready"
    assert len(out["performance_analysis"]) > 0


def test_normalize_request_impl() -> None:
    out = normalize_request_impl("/api/user/1/profile?token=abcd")
    assert out["template"] == "/api/user/:id/profile?token=:param"
    assert [s["rule"] for s in out["steps"]] == [
        "query_values",
        "uuid_segments",
        "numeric_segments",
        "numeric_before_query",
    ]
    with pytest.raises(ValueError):
        normalize_request_impl("")


def test_pipeline_status_and_latest_results(controller: PipelineController, sample_records) -> None:
    assert pipeline_status_impl(controller) == {
        "state": "idle",
        "has_results": False,
        "last_error": None,
        "completed_runs": 0,
    }
    assert latest_results_impl(controller) == {"state": "idle", "last_error": None}

    controller.run(sample_records)

    status = pipeline_status_impl(controller)
    assert status["state"] == "ready"
    assert status["has_results"] is True
    assert status["completed_runs"] == 1
    latest = latest_results_impl(controller, sections=["summary"])
    assert set(latest) == {"state", "summary"}
