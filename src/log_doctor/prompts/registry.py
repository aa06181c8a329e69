"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from log_doctor.core.config import DEFAULT_SYSTEM_PROMPT


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def diagnose_incidents(log_path: str, config_path: str, max_tokens: int = 8000) -> list[dict[str, Any]]:
        """Build a prompt that bundles incidents and diagnoses each one."""
        return [
            {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Diagnose the errors in a log file using bundle_incidents. "
                    "Follow this workflow:\n"
                    "- Call bundle_incidents with:\n"
                    f"  - log_path: {log_path}\n"
                    f"  - config_path: {config_path}\n"
                    f"  - max_tokens: {max_tokens}\n"
                    "- Each incident has a trigger line and its context lines in order. "
                    "Lines marked filtered=true are known noise; use them only as context.\n"
                    "- If no incidents are returned, say so and stop.\n"
                    "- Use only tool output for evidence; do not fabricate lines.\n\n"
                    "For each incident return:\n"
                    "1) Trigger (line number and text)\n"
                    "2) Likely cause (1-2 sentences; say 'Unknown' if unclear)\n"
                    "3) Suggested fix (1-3 bullets)\n"
                ),
            },
        ]

    @mcp.prompt()
    def review_diagnosis(name: str) -> list[dict[str, Any]]:
        """Build a prompt that reviews a stored diagnosis artifact."""
        return [
            {
                "role": "system",
                "content": (
                    "You review automated error diagnoses. Check that the diagnosis is supported "
                    "by the context lines and point out anything it missed."
                ),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Review this diagnosis:"},
                    {"type": "resource", "uri": f"diagnosis://{name}"},
                ],
            },
        ]
