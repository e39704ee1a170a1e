"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (e.g., analyze an access-log dataset)
- Resources: addressable data blobs (e.g., the latest results via URI)
- Prompts: reusable conversation templates that clients can invoke

The analysis session (engine + pipeline controller) is created when the
server starts and shut down when it stops.

Run locally (stdio):
    python -m mcp_access_log_analytics.server.log_server
"""

import logging
import os
import sys
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import Context, FastMCP

from mcp_access_log_analytics.core.config import resolve_analyzer_config
from mcp_access_log_analytics.core.engine import AggregationEngine
from mcp_access_log_analytics.core.pipeline import PipelineController
from mcp_access_log_analytics.prompts.registry import register_prompts
from mcp_access_log_analytics.resources.registry import register_resources
from mcp_access_log_analytics.tools.analyze import (
    analyze_access_log_impl,
    analyze_demo_dataset_impl,
    normalize_request_impl,
    pipeline_status_impl,
)

LOGGER = logging.getLogger(__name__)
LOG_LEVEL_ENV = "LOG_ANALYTICS_LOG_LEVEL"


def configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; stdout carries the stdio transport.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass(slots=True)
class AnalysisSession:
    engine: AggregationEngine
    controller: PipelineController


@asynccontextmanager
async def analysis_lifespan(server: FastMCP) -> AsyncIterator[AnalysisSession]:
    """Start the aggregation engine for the server's lifetime."""
    engine = AggregationEngine()
    engine.start()
    try:
        yield AnalysisSession(engine=engine, controller=PipelineController(engine, resolve_analyzer_config()))
    finally:
        engine.shutdown()


def _controller(ctx: Context) -> PipelineController:
    return ctx.request_context.lifespan_context.controller


mcp = FastMCP("access-log-analytics", lifespan=analysis_lifespan, json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def analyze_access_log(
    log_path: str,
    ctx: Context,
    invalid_records: str | None = None,
    sections: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Analyze an access-log dataset file and return grouped request analytics.

    Parameters
    ----------
    log_path:
        Path to a JSON array, JSON object or JSON-lines file (optionally .gz).
        Each record needs request (str), status (int) and request_time (seconds).
    invalid_records:
        "fail" aborts on the first bad record; "skip" drops it and reports
        summary.skipped_records. Defaults to LOG_ANALYTICS_INVALID_RECORDS or "fail".
    sections:
        Restrict the output to some of: status_code_analysis, performance_analysis,
        status_chart_data, schema_fields, summary.

    Returns
    -------
    dict:
        {"state": str, "performance_analysis": [...], "status_code_analysis": [...], ...}
    """
    return await analyze_access_log_impl(
        _controller(ctx),
        log_path=log_path,
        invalid_records=invalid_records,
        sections=sections,
    )


@mcp.tool()
def analyze_demo_dataset(
    ctx: Context,
    invalid_records: str | None = None,
    sections: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Run the analysis on the bundled demo dataset (same output shape as analyze_access_log)."""
    return analyze_demo_dataset_impl(
        _controller(ctx),
        invalid_records=invalid_records,
        sections=sections,
    )


@mcp.tool()
def normalize_request(request: str) -> dict[str, Any]:
    """Return the normalized template of a raw request and each rewrite step."""
    return normalize_request_impl(request)


@mcp.tool()
def pipeline_status(ctx: Context) -> dict[str, Any]:
    """Return the current pipeline state and whether results are available."""
    return pipeline_status_impl(_controller(ctx))


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
