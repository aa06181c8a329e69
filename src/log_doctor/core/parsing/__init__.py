"""Regex-driven log line classification.

A list of parsers is tried in order; the first match classifies the line and
its matchers decide whether it is filtered, triggers diagnosis or is excluded.
"""

from __future__ import annotations

from .errors import (
    InvalidPatternError,
    NoMatchError,
    NoParserMatchedError,
    ParserError,
    UnknownVariableError,
)
from .matcher import Matcher
from .parser import Parser, parse_log_entry, stringify

__all__ = [
    "InvalidPatternError",
    "Matcher",
    "NoMatchError",
    "NoParserMatchedError",
    "Parser",
    "ParserError",
    "UnknownVariableError",
    "parse_log_entry",
    "stringify",
]
