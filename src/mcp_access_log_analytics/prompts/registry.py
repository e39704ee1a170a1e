"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP


def _analysis_call(log_path: str | None, sections: list[str]) -> str:
    """Describe the tool call the assistant should make first."""
    quoted = ", ".join(f'"{s}"' for s in sections)
    if log_path:
        return f"Call analyze_access_log with:\n- log_path: {log_path}\n- sections: [{quoted}]"
    return f"Call analyze_demo_dataset with:\n- sections: [{quoted}]"


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def summarize_resource(uri: str) -> list[dict[str, Any]]:
        """Build a prompt that summarizes a resource URI."""
        return [
            {
                "role": "system",
                "content": (
                    "You are a precise assistant. Summarize the provided resource clearly and "
                    "concisely. Extract key points, risks, and actionable items."
                ),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Summarize this resource:"},
                    {"type": "resource", "uri": uri},
                ],
            },
        ]

    @mcp.prompt()
    def performance_report(log_path: str | None = None, top: int = 10) -> list[dict[str, Any]]:
        """Build a prompt for a latency report over normalized endpoints."""
        call_block = _analysis_call(log_path, ["performance_analysis", "summary"])
        return [
            {
                "role": "system",
                "content": (
                    "You are a performance engineer reviewing web-server access logs. "
                    "Base every statement on tool output; do not invent numbers."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"{call_block}\n\n"
                    "Rows are normalized request templates (ids -> :id, uuids -> :uuid, "
                    "query values -> :param), ordered by total_time.\n\n"
                    "Return this structure:\n"
                    f"1) The {top} endpoints that cost the most total time, with total_requests, "
                    "avg_time and p99_time\n"
                    "2) Endpoints whose p99_time is far above avg_time (tail latency)\n"
                    "3) Overall request_time mean and variance from the summary\n"
                    "4) Next actions (2-4 bullets)\n"
                ),
            },
        ]

    @mcp.prompt()
    def error_hotspots(log_path: str | None = None) -> list[dict[str, Any]]:
        """Build a prompt that finds endpoints with the most client/server errors."""
        call_block = _analysis_call(
            log_path, ["status_chart_data", "status_code_analysis", "summary"]
        )
        return [
            {
                "role": "system",
                "content": (
                    "You are a web operations analyst. Provide concise, evidence-based "
                    "findings from the analysis output only."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) Endpoints with the most serverError responses (with counts)\n"
                    "2) Endpoints with the most clientError responses (with counts)\n"
                    "3) Status codes that dominate each hotspot (from status_code_analysis)\n"
                    "4) If there are no errors, say so clearly.\n"
                ),
            },
        ]
