"""Regex parsers and the first-match classifier."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import replace

from ..models import LINENO, LogEntry, VariableMatcher
from .errors import InvalidPatternError, NoMatchError, NoParserMatchedError, UnknownVariableError
from .matcher import Matcher

logger = logging.getLogger(__name__)


class Parser:
    """Top-level regex with named captures plus filter/trigger/exclude matchers.

    Instances are immutable after construction and shared read-only by the
    monitor for the whole run.
    """

    __slots__ = ("_regex", "_re", "_variables", "_filters", "_triggers", "_excludes")

    def __init__(
        self,
        regex: str,
        *,
        filters: Iterable[VariableMatcher] = (),
        triggers: Iterable[VariableMatcher] = (),
        excludes: Iterable[VariableMatcher] = (),
    ) -> None:
        try:
            compiled = re.compile(regex)
        except re.error as exc:
            raise InvalidPatternError(regex, str(exc)) from exc

        variables = set(compiled.groupindex)
        variables.add(LINENO)

        self._regex = regex
        self._re = compiled
        self._variables = frozenset(variables)
        self._filters = self._build_matchers(filters, "filter")
        self._triggers = self._build_matchers(triggers, "trigger")
        self._excludes = self._build_matchers(excludes, "exclude")

        logger.debug(
            "New parser (%s) variables=%s filters=%s triggers=%s excludes=%s",
            regex,
            sorted(self._variables),
            self._filters,
            self._triggers,
            self._excludes,
        )

    def _build_matchers(self, matchers: Iterable[VariableMatcher], kind: str) -> tuple[Matcher, ...]:
        out: list[Matcher] = []
        for vm in matchers:
            if vm.variable not in self._variables:
                raise UnknownVariableError(vm.variable, kind)
            out.append(Matcher.compile(vm.variable, vm.regex))
        return tuple(out)

    @property
    def regex(self) -> str:
        return self._regex

    @property
    def variables(self) -> frozenset[str]:
        """Declared capture names plus LINENO."""
        return self._variables

    @property
    def filters(self) -> tuple[Matcher, ...]:
        return self._filters

    @property
    def triggers(self) -> tuple[Matcher, ...]:
        return self._triggers

    @property
    def excludes(self) -> tuple[Matcher, ...]:
        return self._excludes

    def parse(self, line: str, line_no: int) -> LogEntry:
        """Classify a line, raising NoMatchError when the regex does not apply."""
        m = self._re.search(line)
        if m is None:
            raise NoMatchError(self._regex, line)

        # unmatched optional groups capture the empty string
        variables = {name: value or "" for name, value in m.groupdict().items()}
        variables[LINENO] = str(line_no)

        entry = LogEntry(text=line, line_no=line_no, variables=variables, parser=self)
        return replace(
            entry,
            filtered=_any_match(self._filters, entry),
            triggered=_any_match(self._triggers, entry),
            excluded=_any_match(self._excludes, entry),
        )

    def __repr__(self) -> str:
        return f"Parser({self._regex!r})"


def _any_match(matchers: Sequence[Matcher], entry: LogEntry) -> bool:
    for matcher in matchers:
        if matcher.match(entry):
            logger.debug("Matched %r on line %d", matcher, entry.line_no)
            return True
    return False


def parse_log_entry(parsers: Sequence[Parser], line: str, line_no: int) -> tuple[LogEntry, int]:
    """Return the entry from the first parser that matches, with that parser's index."""
    for i, parser in enumerate(parsers):
        try:
            entry = parser.parse(line, line_no)
        except NoMatchError:
            continue
        logger.debug(
            "Line %d matched parser %d (%s): filtered=%s triggered=%s excluded=%s",
            line_no,
            i,
            parser.regex,
            entry.filtered,
            entry.triggered,
            entry.excluded,
        )
        return entry, i
    raise NoParserMatchedError(line, line_no)


def stringify(entries: Iterable[LogEntry]) -> str:
    """Join entry texts, one per line."""
    return "".join(f"{e.text}\n" for e in entries)
