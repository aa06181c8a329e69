"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (bundle the incidents of a log file)
- Resources: addressable data blobs (diagnosis artifacts, example config)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m log_doctor.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from log_doctor.prompts.registry import register_prompts
from log_doctor.resources.registry import register_resources
from log_doctor.tools.bundle import DEFAULT_MAX_TOKENS, bundle_incidents_impl

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure logging on stderr; stdout belongs to the stdio transport."""
    level_name = os.getenv("LOG_DOCTOR_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("log-doctor", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def bundle_incidents(
    log_path: str,
    config_path: str,
    buffer_size: int = 100,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> dict[str, Any]:
    """Return the incidents the monitor would send for diagnosis.

    Parameters
    ----------
    log_path:
        Path to a local log file. It is read once, start to end.
    config_path:
        Path to the YAML parser configuration. The last parser should match any line.
    buffer_size:
        Maximum context lines kept per incident.
    max_tokens:
        Model token limit; the prompt overhead is subtracted to size the context.

    Returns
    -------
    dict:
        {"count": int, "lines_read": int, "incidents": list[dict]}
    """
    return await bundle_incidents_impl(
        log_path=log_path,
        config_path=config_path,
        buffer_size=buffer_size,
        max_tokens=max_tokens,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
