"""Classification errors."""

from __future__ import annotations


class ParserError(Exception):
    """Base class for parser construction and classification failures."""


class InvalidPatternError(ParserError):
    """A parser or matcher regex does not compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"regex is not valid ({pattern}): {reason}")
        self.pattern = pattern


class UnknownVariableError(ParserError):
    """A filter/trigger/exclude references a variable the parser does not capture."""

    def __init__(self, variable: str, kind: str) -> None:
        super().__init__(f"variable ({variable}) in {kind} is not a regex variable")
        self.variable = variable
        self.kind = kind


class NoMatchError(ParserError):
    """A single parser did not match a line."""

    def __init__(self, pattern: str, line: str) -> None:
        super().__init__(f"parser with regex ({pattern}) did not match line ({line})")
        self.pattern = pattern
        self.line = line


class NoParserMatchedError(ParserError):
    """No configured parser matched a line (the chain lacks a catch-all)."""

    def __init__(self, line: str, line_no: int) -> None:
        super().__init__(f"no parser found for line {line_no} ({line})")
        self.line = line
        self.line_no = line_no
