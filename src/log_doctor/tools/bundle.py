"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from typing import Any

from log_doctor.core.config import PromptConfig, build_parsers, load_config
from log_doctor.core.models import Incident, LogEntry
from log_doctor.core.monitor import DEFAULT_BUFFER_SIZE, LogMonitor
from log_doctor.core.source import tail_lines

DEFAULT_MAX_TOKENS = 8000
HARD_BUFFER_LIMIT = 10_000


async def bundle_incidents_impl(
    *,
    log_path: str,
    config_path: str,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> dict[str, Any]:
    """Implementation for the `bundle_incidents` MCP tool.

    Drains the log once through the bundling engine and collects the incidents
    it would hand to diagnosis, without calling any model.
    """
    if buffer_size <= 0:
        raise ValueError("buffer_size must be > 0")
    if buffer_size > HARD_BUFFER_LIMIT:
        buffer_size = HARD_BUFFER_LIMIT
    if max_tokens <= 0:
        raise ValueError("max_tokens must be > 0")

    cfg = load_config(config_path)
    parsers = build_parsers(cfg)
    prompts = PromptConfig.from_config(cfg)

    incidents: list[Incident] = []

    async def collect(trigger: LogEntry, context: list[LogEntry]) -> None:
        incidents.append(Incident(trigger=trigger, context=context))

    monitor = LogMonitor(
        tail_lines(log_path, follow=False),
        parsers,
        collect,
        buffer_size=buffer_size,
        token_budget=prompts.token_budget(max_tokens),
    )
    await monitor.run()
    await monitor.join()

    incidents.sort(key=lambda i: i.trigger.line_no)
    return {
        "count": len(incidents),
        "lines_read": monitor.line_no,
        "incidents": [i.to_dict() for i in incidents],
    }
