"""Variable matchers used for filter, trigger and exclude rules."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..models import LogEntry
from .errors import InvalidPatternError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Matcher:
    """Regex bound to a single capture variable."""

    variable: str
    pattern: re.Pattern[str]

    @classmethod
    def compile(cls, variable: str, regex: str) -> Matcher:
        try:
            pattern = re.compile(regex)
        except re.error as exc:
            raise InvalidPatternError(regex, str(exc)) from exc
        return cls(variable=variable, pattern=pattern)

    def match(self, entry: LogEntry) -> bool:
        """Search the variable's value; a missing variable never matches."""
        value = entry.variables.get(self.variable)
        if value is None:
            logger.debug("Variable %s not found in entry (%s)", self.variable, entry.text)
            return False
        return self.pattern.search(value) is not None

    def __repr__(self) -> str:
        return f"Matcher({self.variable}={self.pattern.pattern!r})"
