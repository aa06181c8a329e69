from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterable
from pathlib import Path

import pytest

from log_doctor.core.models import LogEntry, VariableMatcher
from log_doctor.core.parsing import Parser

DROPBOX_REGEX = r"^\[(\d{4}\/\d{6}\.\d{6}):(?P<LEVEL>\w+):([\w\.\_]+)\(\d+\)\]\s+(?P<MESSAGE>.*)$"
BRACKET_REGEX = r"^\[(?P<LEVEL>\w+)\]\s+(?P<MESSAGE>.*)$"
CATCH_ALL_REGEX = r"^(?P<MESSAGE>.*)$"


class Recorder:
    """Handler double that records every dispatched incident."""

    def __init__(self) -> None:
        self.calls: list[tuple[LogEntry, list[LogEntry]]] = []

    async def __call__(self, trigger: LogEntry, context: list[LogEntry]) -> None:
        self.calls.append((trigger, context))

    @property
    def triggers(self) -> list[int]:
        return [t.line_no for t, _ in self.calls]

    def context_lines(self, i: int) -> list[int]:
        return [e.line_no for e in self.calls[i][1]]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def make_source() -> Callable[[Iterable[str]], AsyncIterator[str]]:
    def _make(lines: Iterable[str]) -> AsyncIterator[str]:
        async def _gen() -> AsyncIterator[str]:
            for line in lines:
                yield line

        return _gen()

    return _make


@pytest.fixture
def dropbox_lines() -> list[str]:
    return [
        "[1217/070353.692622:WARNING:dns_config_service_posix.cc(335)] Failed to read DnsConfig.",
        "[1217/201832.950515:ERROR:cache_util.cc(140)] Unable to move cache folder GPUCache to old_GPUCache_000",
        "[1217/201832.973523:ERROR:disk_cache.cc(184)] Unable to create cache",
        "[1217/201832.973606:ERROR:shader_disk_cache.cc(622)] Shader Cache Creation failed: -2",
    ]


@pytest.fixture
def make_dropbox_parser() -> Callable[..., Parser]:
    def _make(
        *,
        filters: Iterable[tuple[str, str]] = (),
        excludes: Iterable[tuple[str, str]] = (),
    ) -> Parser:
        return Parser(
            DROPBOX_REGEX,
            filters=[VariableMatcher(variable=v, regex=r) for v, r in filters],
            triggers=[VariableMatcher(variable="LEVEL", regex="ERROR")],
            excludes=[VariableMatcher(variable=v, regex=r) for v, r in excludes],
        )

    return _make


@pytest.fixture
def catch_all_parser() -> Parser:
    return Parser(CATCH_ALL_REGEX)


@pytest.fixture
def bracket_parser() -> Parser:
    return Parser(
        BRACKET_REGEX,
        triggers=[VariableMatcher(variable="LEVEL", regex="ERROR")],
        excludes=[VariableMatcher(variable="LEVEL", regex="DEBUG")],
    )


@pytest.fixture
def write_lines() -> Callable[[Path, list[str]], None]:
    def _write(path: Path, lines: list[str]) -> None:
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    return _write


@pytest.fixture
def write_bracket_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "[INFO] service started",
                    "[DEBUG] polling upstream",
                    "[ERROR] upstream timeout route=/api/v1/items",
                    "    at fetch (client.js:10)",
                    "[INFO] recovered",
                    "[ERROR] retrying request id=abc123",
                    "[ERROR] database unavailable",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write


@pytest.fixture
def write_config() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "prompt: 'Diagnose this: $ERROR'",
                    "parsers:",
                    f"  - regex: '{BRACKET_REGEX}'",
                    "    triggers:",
                    "      - variable: LEVEL",
                    "        regex: ERROR",
                    "    filters:",
                    "      - variable: MESSAGE",
                    "        regex: retrying",
                    "    excludes:",
                    "      - variable: LEVEL",
                    "        regex: DEBUG",
                    f"  - regex: '{CATCH_ALL_REGEX}'",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write
