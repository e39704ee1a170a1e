"""Module entrypoint.

Allows:
    python -m mcp_access_log_analytics
"""

from __future__ import annotations

from mcp_access_log_analytics.server.log_server import main

if __name__ == "__main__":
    main()
