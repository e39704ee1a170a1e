from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from mcp_access_log_analytics.core import pipeline as pipeline_module
from mcp_access_log_analytics.core.config import AnalyzerConfig
from mcp_access_log_analytics.core.demo import DEMO_SIZE
from mcp_access_log_analytics.core.engine import AggregationEngine
from mcp_access_log_analytics.core.errors import (
    EngineUnavailableError,
    FieldMissingError,
    InputFormatError,
    PipelineBusyError,
)
from mcp_access_log_analytics.core.models import PipelineState
from mcp_access_log_analytics.core.pipeline import PipelineController


def test_run_publishes_result(controller: PipelineController) -> None:
    result = controller.run(
        [
            {"request": "/a", "status": 200, "request_time": 0.1},
            {"request": "/a", "status": 404, "request_time": 0.2},
        ]
    )

    assert controller.state is PipelineState.READY
    assert controller.result is result
    [row] = result.performance_analysis
    assert (row.request, row.total_requests) == ("/a", 2)
    assert row.avg_time == pytest.approx(0.15)
    assert (row.min_time, row.max_time) == (0.1, 0.2)
    [chart] = result.status_chart_data
    assert (chart.success, chart.client_error, chart.total) == (1, 1, 2)


def test_malformed_input_clears_previous_results(
    controller: PipelineController, engine: AggregationEngine, sample_records
) -> None:
    controller.run(sample_records)
    assert controller.result is not None

    with pytest.raises(InputFormatError):
        controller.run(42)

    assert controller.state is PipelineState.ERROR
    assert controller.result is None
    assert not engine.has_buffers
    assert "InputFormatError" in (controller.last_error or "")


def test_field_missing_fails_run_by_default(controller: PipelineController, sample_records) -> None:
    controller.run(sample_records)

    with pytest.raises(FieldMissingError):
        controller.run(sample_records + [{"request": "/a", "status": 200}])

    assert controller.state is PipelineState.ERROR
    assert controller.result is None


def test_field_missing_skip_policy_reports_count(controller: PipelineController, sample_records) -> None:
    bad = [{"request": "/a", "status": True, "request_time": 0.1}, {"status": 200}]
    result = controller.run(sample_records + bad, invalid_records="skip")

    assert controller.state is PipelineState.READY
    assert result.summary.skipped_records == 2
    assert result.summary.total_records == len(sample_records)


def test_skip_policy_drops_unrepresentable_request_time(
    controller: PipelineController, sample_records
) -> None:
    huge = {"request": "/x", "status": 200, "request_time": 10**400}
    result = controller.run(sample_records + [huge], invalid_records="skip")

    assert controller.state is PipelineState.READY
    assert result.summary.skipped_records == 1


def test_skip_policy_from_config(engine: AggregationEngine) -> None:
    controller = PipelineController(engine, AnalyzerConfig(invalid_records="skip"))
    result = controller.run([{"request": "/a"}, {"request": "/b", "status": 200, "request_time": 1}])
    assert result.summary.skipped_records == 1


def test_unknown_policy_is_rejected_before_running(controller: PipelineController) -> None:
    with pytest.raises(ValueError):
        controller.run([], invalid_records="ignore")
    assert controller.state is PipelineState.IDLE


def test_engine_unavailable_touches_nothing(sample_records) -> None:
    engine = AggregationEngine()
    controller = PipelineController(engine)

    with pytest.raises(EngineUnavailableError):
        controller.run(sample_records)
    assert controller.state is PipelineState.IDLE
    assert controller.result is None

    engine.start()
    result = controller.run(sample_records)
    engine.shutdown()

    with pytest.raises(EngineUnavailableError):
        controller.run([{"request": "/other", "status": 200, "request_time": 0.1}])
    assert controller.state is PipelineState.READY
    assert controller.result is result


def test_new_run_replaces_previous_dataset(controller: PipelineController) -> None:
    controller.run([{"request": "/first", "status": 200, "request_time": 0.1}])
    result = controller.run([{"request": "/second", "status": 200, "request_time": 0.1}])

    assert [r.request for r in result.performance_analysis] == ["/second"]
    assert result.summary.total_records == 1


def test_error_then_new_run(controller: PipelineController, sample_records) -> None:
    with pytest.raises(InputFormatError):
        controller.run("nope")
    assert controller.state is PipelineState.ERROR

    controller.run(sample_records)
    assert controller.state is PipelineState.READY
    assert controller.last_error is None


def test_empty_collection_is_ready(controller: PipelineController) -> None:
    result = controller.run([])
    assert controller.state is PipelineState.READY
    assert result.performance_analysis == []
    assert result.summary.total_records == 0


def test_memory_error_is_fatal_for_the_run(
    controller: PipelineController, engine: AggregationEngine, sample_records, monkeypatch
) -> None:
    def exhausted(*args, **kwargs):
        raise MemoryError("out of memory")

    monkeypatch.setattr(pipeline_module, "assemble_results", exhausted)

    with pytest.raises(MemoryError):
        controller.run(sample_records)
    assert controller.state is PipelineState.ERROR
    assert controller.result is None
    assert not engine.has_buffers


def test_reset_returns_to_idle(controller: PipelineController, sample_records) -> None:
    controller.run(sample_records)
    controller.reset()
    assert controller.state is PipelineState.IDLE
    assert controller.result is None


def test_demo_dataset_properties(controller: PipelineController) -> None:
    result = controller.run_demo()
    summary = result.summary

    assert summary.total_records == DEMO_SIZE
    assert summary.group_count == 8
    assert sum(r.total_requests for r in result.performance_analysis) == DEMO_SIZE
    assert sum(r.count for r in result.status_code_analysis) == DEMO_SIZE

    for row in result.performance_analysis:
        assert row.min_time <= row.avg_time <= row.max_time
        assert row.min_time <= row.p95_time <= row.p99_time <= row.max_time

    totals = {r.request: r.total_requests for r in result.performance_analysis}
    for chart in result.status_chart_data:
        assert chart.total == totals[chart.request]

    names = {f.name for f in result.schema_fields}
    assert {"request", "status", "request_time", "remote_addr", "http_referer"} <= names


@pytest.mark.asyncio
async def test_load_file(controller: PipelineController, tmp_path: Path, write_json_lines, sample_records) -> None:
    path = tmp_path / "access.jsonl"
    write_json_lines(path, sample_records)

    result = await controller.load_file(path)
    assert controller.state is PipelineState.READY
    assert result.summary.total_records == len(sample_records)


@pytest.mark.asyncio
async def test_load_missing_file_drops_previous_result(
    controller: PipelineController, engine: AggregationEngine, tmp_path: Path, sample_records
) -> None:
    controller.run(sample_records)

    with pytest.raises(FileNotFoundError):
        await controller.load_file(tmp_path / "missing.json")
    assert controller.state is PipelineState.ERROR
    assert controller.result is None
    assert not engine.has_buffers
    assert "FileNotFoundError" in (controller.last_error or "")


@pytest.mark.asyncio
async def test_cancelled_load_can_be_followed_by_new_run(
    controller: PipelineController, tmp_path: Path, sample_records, monkeypatch
) -> None:
    started = asyncio.Event()

    async def slow_load(path: Path):
        started.set()
        await asyncio.Event().wait()

    monkeypatch.setattr(pipeline_module, "load_records", slow_load)

    task = asyncio.create_task(controller.load_file(tmp_path / "access.json"))
    await started.wait()
    assert controller.state is PipelineState.LOADING

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert controller.state is PipelineState.ERROR
    assert controller.result is None

    controller.run(sample_records)
    assert controller.state is PipelineState.READY
    controller.reset()
    assert controller.state is PipelineState.IDLE


def test_interrupted_compute_can_be_followed_by_new_run(
    controller: PipelineController, sample_records, monkeypatch
) -> None:
    class Interrupted(BaseException):
        pass

    def interrupted(*args, **kwargs):
        raise Interrupted

    with monkeypatch.context() as m:
        m.setattr(pipeline_module, "assemble_results", interrupted)
        with pytest.raises(Interrupted):
            controller.run(sample_records)
    assert controller.state is PipelineState.ERROR

    controller.run(sample_records)
    assert controller.state is PipelineState.READY


@pytest.mark.asyncio
async def test_load_malformed_file(controller: PipelineController, tmp_path: Path, sample_records) -> None:
    controller.run(sample_records)
    path = tmp_path / "bad.json"
    path.write_text('"just a string"', encoding="utf-8")

    with pytest.raises(InputFormatError):
        await controller.load_file(path)
    assert controller.state is PipelineState.ERROR
    assert controller.result is None


@pytest.mark.asyncio
async def test_second_run_while_loading_is_rejected(
    controller: PipelineController, tmp_path: Path, monkeypatch
) -> None:
    path = tmp_path / "access.json"
    path.write_text("[]", encoding="utf-8")
    outer = [{"request": "/outer", "status": 200, "request_time": 0.1}]

    async def slow_load(p):
        assert controller.state is PipelineState.LOADING
        with pytest.raises(PipelineBusyError):
            controller.run([{"request": "/inner", "status": 200, "request_time": 0.1}])
        return outer

    monkeypatch.setattr(pipeline_module, "load_records", slow_load)

    result = await controller.load_file(path)
    assert [r.request for r in result.performance_analysis] == ["/outer"]
    assert controller.state is PipelineState.READY
