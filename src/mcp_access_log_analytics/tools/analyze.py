"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mcp_access_log_analytics.core.normalizer import normalize, trace_normalization
from mcp_access_log_analytics.core.pipeline import PipelineController
from mcp_access_log_analytics.core.results import AnalysisResult, validate_sections


def _parse_sections(sections: Sequence[str] | str | None) -> list[str] | None:
    """Accept a list of section names or a comma-separated string."""
    if sections is None:
        return None
    if isinstance(sections, str):
        items = [s.strip().lower() for s in sections.split(",")]
    else:
        items = [str(s).strip().lower() for s in sections]
    return validate_sections([s for s in items if s])


def _result_to_dict(
    controller: PipelineController, result: AnalysisResult, sections: list[str] | None
) -> dict[str, Any]:
    out: dict[str, Any] = {"state": controller.state.value}
    out.update(result.to_dict(sections))
    return out


async def analyze_access_log_impl(
    controller: PipelineController,
    *,
    log_path: str,
    invalid_records: str | None = None,
    sections: Sequence[str] | str | None = None,
) -> dict[str, Any]:
    """Implementation for the `analyze_access_log` MCP tool."""
    wanted = _parse_sections(sections)
    result = await controller.load_file(log_path, invalid_records=invalid_records)
    return _result_to_dict(controller, result, wanted)


def analyze_demo_dataset_impl(
    controller: PipelineController,
    *,
    invalid_records: str | None = None,
    sections: Sequence[str] | str | None = None,
) -> dict[str, Any]:
    """Implementation for the `analyze_demo_dataset` MCP tool."""
    wanted = _parse_sections(sections)
    result = controller.run_demo(invalid_records=invalid_records)
    return _result_to_dict(controller, result, wanted)


def normalize_request_impl(request: str) -> dict[str, Any]:
    """Show the template for a raw request and the output of every rewrite rule."""
    if not request:
        raise ValueError("request must be a non-empty string")
    return {
        "request": request,
        "template": normalize(request),
        "steps": [{"rule": name, "output": out} for name, out in trace_normalization(request)],
    }


def pipeline_status_impl(controller: PipelineController) -> dict[str, Any]:
    status = controller.status()
    return {
        "state": status.state.value,
        "has_results": status.has_results,
        "last_error": status.last_error,
        "completed_runs": status.completed_runs,
    }


def latest_results_impl(
    controller: PipelineController, *, sections: Sequence[str] | str | None = None
) -> dict[str, Any]:
    """Return the last published result, or an empty payload with the current state."""
    wanted = _parse_sections(sections)
    result = controller.result
    if result is None:
        return {"state": controller.state.value, "last_error": controller.last_error}
    return _result_to_dict(controller, result, wanted)
