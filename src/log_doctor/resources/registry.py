"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from log_doctor.core.diagnose.service import DONE_SUFFIX, PENDING_SUFFIX

OUTPUT_DIR_ENV = "LOG_DOCTOR_OUTPUT_DIR"
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "replace"

EXAMPLE_CONFIG = """\
parsers:
  - regex: '^\\[(?P<LEVEL>\\w+)\\]\\s+(?P<MESSAGE>.*)$'
    triggers:
      - variable: LEVEL
        regex: ERROR
    filters:
      - variable: MESSAGE
        regex: 'retrying'
    excludes:
      - variable: LEVEL
        regex: DEBUG
  - regex: '^(?P<MESSAGE>.*)$'
"""


def _output_dir() -> Path:
    """Return the resolved directory holding diagnosis artifacts."""
    raw = os.getenv(OUTPUT_DIR_ENV, "diagnoses")
    return Path(raw).resolve()


def _resolve_artifact(name: str) -> Path:
    """Resolve an artifact name inside the output directory."""
    base = _output_dir()
    p = (base / name).resolve()
    if p.parent != base:
        raise ValueError("Path escapes output dir")
    if not p.name.endswith((DONE_SUFFIX, PENDING_SUFFIX)):
        raise ValueError(f"Not a diagnosis artifact. Expected {DONE_SUFFIX} or {PENDING_SUFFIX}.")
    if not p.is_file():
        raise FileNotFoundError(f"File not found: {p}")
    return p


def list_artifacts() -> list[str]:
    base = _output_dir()
    if not base.is_dir():
        return []
    return sorted(
        p.name for p in base.iterdir() if p.is_file() and p.name.endswith((DONE_SUFFIX, PENDING_SUFFIX))
    )


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://log-doctor/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://log-doctor/help\n"
            "- app://log-doctor/examples/config\n"
            "- app://log-doctor/diagnoses\n"
            f"- diagnosis://{{name}} (files in {OUTPUT_DIR_ENV})\n"
            f"\nOutput directory: {_output_dir()}\n"
        )

    @mcp.resource("app://log-doctor/examples/config")
    def example_config() -> str:
        """Return a minimal parser configuration."""
        return EXAMPLE_CONFIG

    @mcp.resource("app://log-doctor/diagnoses")
    def diagnoses() -> list[str]:
        """Return the names of diagnosis artifacts."""
        return list_artifacts()

    @mcp.resource("diagnosis://{name}")
    async def read_diagnosis(name: str) -> str:
        """Read a diagnosis artifact."""
        p = _resolve_artifact(name)
        return await asyncio.to_thread(p.read_text, encoding=TEXT_ENCODING, errors=TEXT_ERRORS)
