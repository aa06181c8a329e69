"""Core data models for log classification and incident bundling."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .parsing.parser import Parser

LINENO = "LINENO"


class VariableMatcher(BaseModel):
    """A `(variable, regex)` pair as written in configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    variable: str = Field(min_length=1, description="Capture variable the regex is applied to.")
    regex: str = Field(description="Regular expression searched in the variable value.")


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One classified log line."""

    text: str
    line_no: int
    variables: dict[str, str] = field(default_factory=dict)
    filtered: bool = False
    triggered: bool = False
    excluded: bool = False
    # identity only; entries compare by content
    parser: Parser | None = field(default=None, compare=False, repr=False)

    @property
    def should_diagnose(self) -> bool:
        return self.triggered and not self.filtered

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable view of the entry."""
        return {
            "line_no": self.line_no,
            "text": self.text,
            "variables": dict(self.variables),
            "filtered": self.filtered,
            "triggered": self.triggered,
        }


@dataclass(frozen=True, slots=True)
class Incident:
    """A triggering entry bundled with its surrounding context."""

    trigger: LogEntry
    context: list[LogEntry]

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": self.trigger.to_dict(),
            "context": [e.to_dict() for e in self.context],
        }


class MonitorState(str, Enum):
    """States of the bundling state machine."""

    SCANNING = "SCANNING"
    BUNDLING = "BUNDLING"
