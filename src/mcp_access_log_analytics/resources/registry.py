"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_access_log_analytics.core.demo import demo_records
from mcp_access_log_analytics.core.loader import DATASET_SUFFIXES, dataset_suffix, load_records
from mcp_access_log_analytics.core.normalizer import NORMALIZATION_RULES
from mcp_access_log_analytics.core.pipeline import PipelineController
from mcp_access_log_analytics.core.results import AnalysisResult
from mcp_access_log_analytics.tools.analyze import latest_results_impl

BASE_DIR_ENV = "LOG_ANALYTICS_BASE_DIR"
DEMO_PREVIEW_RECORDS = 20


def _base_dir() -> Path:
    return Path(os.getenv(BASE_DIR_ENV) or os.getcwd()).resolve()


def dataset_path(path: str) -> Path:
    """Resolve a dataset path, refusing anything outside the base directory.

    Relative paths are taken from LOG_ANALYTICS_BASE_DIR. Only dataset
    suffixes (optionally gzipped) are served.
    """
    base = _base_dir()
    candidate = Path(path).expanduser()
    resolved = (candidate if candidate.is_absolute() else base / candidate).resolve()
    if resolved != base and base not in resolved.parents:
        raise ValueError(f"Path is outside {BASE_DIR_ENV}: {path}")
    if dataset_suffix(resolved) not in DATASET_SUFFIXES:
        allowed = ", ".join(sorted(DATASET_SUFFIXES))
        raise ValueError(f"Not a dataset file. Allowed: {allowed} (optionally .gz).")
    return resolved


async def read_dataset(path: str) -> str:
    """Parsed records of a dataset file, as a JSON array."""
    records = await load_records(dataset_path(path))
    return json.dumps(records, indent=2)


def _session_controller(mcp: FastMCP) -> PipelineController:
    """Controller of the session started by the server lifespan."""
    return mcp.get_context().request_context.lifespan_context.controller


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://log-analytics/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        allowed = ", ".join(sorted(DATASET_SUFFIXES))
        base = _base_dir()
        return (
            "Resources:\n"
            "- app://log-analytics/help\n"
            "- app://log-analytics/config\n"
            "- app://log-analytics/rules\n"
            "- app://log-analytics/schemas/analysis-result\n"
            "- app://log-analytics/examples/demo-dataset\n"
            "- app://log-analytics/results/latest\n"
            f"- file://{{path}} (restricted to {BASE_DIR_ENV}; allowed: {allowed}, .gz)\n"
            f"\nBase directory: {base}\n"
        )

    @mcp.resource("app://log-analytics/config")
    def config_resource() -> dict[str, Any]:
        """Return the analyzer configuration of the running session."""
        return asdict(_session_controller(mcp).config)

    @mcp.resource("app://log-analytics/rules")
    def rules_resource() -> list[dict[str, str]]:
        """Return the request normalization rules in application order."""
        return [
            {"name": rule.name, "pattern": rule.pattern.pattern, "replacement": rule.replacement}
            for rule in NORMALIZATION_RULES
        ]

    @mcp.resource("app://log-analytics/schemas/analysis-result")
    def analysis_result_schema() -> dict[str, Any]:
        """Return the JSON schema of an analysis result."""
        return AnalysisResult.model_json_schema(by_alias=True)

    @mcp.resource("app://log-analytics/examples/demo-dataset")
    def demo_dataset() -> str:
        """Return the first records of the bundled demo dataset as JSON."""
        return json.dumps(demo_records()[:DEMO_PREVIEW_RECORDS], indent=2)

    @mcp.resource("app://log-analytics/results/latest")
    def latest_results() -> dict[str, Any]:
        """Return the last published analysis result."""
        return latest_results_impl(_session_controller(mcp))

    @mcp.resource("file://{path}")
    async def read_file(path: str) -> str:
        """Return the records of a dataset file within LOG_ANALYTICS_BASE_DIR."""
        return await read_dataset(path)
