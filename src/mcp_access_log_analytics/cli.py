from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

from mcp_access_log_analytics.core.config import INVALID_RECORD_POLICIES, resolve_analyzer_config
from mcp_access_log_analytics.core.engine import AggregationEngine
from mcp_access_log_analytics.core.errors import AnalyticsError
from mcp_access_log_analytics.core.pipeline import PipelineController
from mcp_access_log_analytics.core.results import SECTION_NAMES
from mcp_access_log_analytics.server.log_server import configure_logging
from mcp_access_log_analytics.tools.analyze import (
    analyze_access_log_impl,
    analyze_demo_dataset_impl,
    normalize_request_impl,
)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Normalize, group and summarize web-server access-log records (JSON output)."
    )
    p.add_argument("log_path", nargs="?", default=None, help="JSON array / JSON lines file (.gz ok)")
    p.add_argument("--demo", action="store_true", help="Analyze the bundled demo dataset")
    p.add_argument(
        "--invalid-records",
        choices=INVALID_RECORD_POLICIES,
        default=None,
        help="fail: abort on a bad record; skip: drop it (default: LOG_ANALYTICS_INVALID_RECORDS or fail)",
    )
    p.add_argument(
        "--section",
        dest="sections",
        action="append",
        choices=SECTION_NAMES,
        default=None,
        help="Only print this section (repeatable)",
    )
    p.add_argument("--normalize", metavar="REQUEST", default=None, help="Print the template for one request and exit")
    p.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    return p


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint for local runs (outside MCP)."""
    p = _build_parser()
    args = p.parse_args(argv)

    if args.normalize is not None:
        print(json.dumps(normalize_request_impl(args.normalize), indent=args.indent))
        return

    if args.demo == (args.log_path is not None):
        p.error("provide exactly one of LOG_PATH or --demo")

    configure_logging()

    try:
        with AggregationEngine() as engine:
            controller = PipelineController(engine, resolve_analyzer_config())
            if args.demo:
                out = analyze_demo_dataset_impl(
                    controller, invalid_records=args.invalid_records, sections=args.sections
                )
            else:
                out = asyncio.run(
                    analyze_access_log_impl(
                        controller,
                        log_path=args.log_path,
                        invalid_records=args.invalid_records,
                        sections=args.sections,
                    )
                )
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except (AnalyticsError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    print(json.dumps(out, indent=args.indent))


if __name__ == "__main__":
    main()
