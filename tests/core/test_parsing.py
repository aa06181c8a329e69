from __future__ import annotations

import pytest

from log_doctor.core.models import LINENO, LogEntry, VariableMatcher
from log_doctor.core.parsing import (
    InvalidPatternError,
    Matcher,
    NoMatchError,
    NoParserMatchedError,
    Parser,
    UnknownVariableError,
    parse_log_entry,
    stringify,
)


def test_variables_include_named_groups_and_lineno(make_dropbox_parser) -> None:
    parser = make_dropbox_parser()
    # unnamed groups are not variables
    assert parser.variables == frozenset({"LEVEL", "MESSAGE", LINENO})


def test_parse_captures_variables_and_flags(make_dropbox_parser, dropbox_lines) -> None:
    parser = make_dropbox_parser()
    entry = parser.parse(dropbox_lines[1], 2)

    assert entry.text == dropbox_lines[1]
    assert entry.line_no == 2
    assert entry.variables == {
        "LEVEL": "ERROR",
        "MESSAGE": "Unable to move cache folder GPUCache to old_GPUCache_000",
        LINENO: "2",
    }
    assert entry.triggered is True
    assert entry.filtered is False
    assert entry.excluded is False
    assert entry.should_diagnose is True
    assert entry.parser is parser


def test_parse_warning_is_not_triggered(make_dropbox_parser, dropbox_lines) -> None:
    entry = make_dropbox_parser().parse(dropbox_lines[0], 1)
    assert entry.variables["LEVEL"] == "WARNING"
    assert entry.triggered is False
    assert entry.should_diagnose is False


def test_filtered_trigger_is_not_diagnosed(make_dropbox_parser, dropbox_lines) -> None:
    parser = make_dropbox_parser(filters=[("MESSAGE", "Unable")])
    entry = parser.parse(dropbox_lines[2], 3)
    assert entry.triggered is True
    assert entry.filtered is True
    assert entry.should_diagnose is False


def test_exclude_flag(make_dropbox_parser, dropbox_lines) -> None:
    parser = make_dropbox_parser(excludes=[("LEVEL", "WARNING")])
    assert parser.parse(dropbox_lines[0], 1).excluded is True
    assert parser.parse(dropbox_lines[1], 2).excluded is False


def test_unmatched_optional_group_is_empty_string() -> None:
    parser = Parser(r"^(?P<LEVEL>\w+)(?: code=(?P<CODE>\d+))?$")
    entry = parser.parse("ERROR", 1)
    assert entry.variables["CODE"] == ""
    assert parser.parse("ERROR code=42", 2).variables["CODE"] == "42"


def test_regex_is_searched_not_anchored() -> None:
    parser = Parser(r"(?P<LEVEL>ERROR|WARN)")
    entry = parser.parse("2024-01-01 something ERROR happened", 7)
    assert entry.variables["LEVEL"] == "ERROR"


def test_trigger_on_line_number() -> None:
    parser = Parser(
        r"^(?P<MESSAGE>.*)$",
        triggers=[VariableMatcher(variable=LINENO, regex=r"^3$")],
    )
    assert parser.parse("hello", 3).triggered is True
    assert parser.parse("hello", 13).triggered is False


def test_matchers_are_or_combined() -> None:
    parser = Parser(
        r"^(?P<MESSAGE>.*)$",
        triggers=[
            VariableMatcher(variable="MESSAGE", regex="error"),
            VariableMatcher(variable="MESSAGE", regex="Error:"),
        ],
    )
    assert parser.parse("an error happened", 1).triggered is True
    assert parser.parse("Error: boom", 2).triggered is True
    assert parser.parse("all good", 3).triggered is False


@pytest.mark.parametrize("kind", ["filters", "triggers", "excludes"])
def test_unknown_variable_rejected(kind: str) -> None:
    with pytest.raises(UnknownVariableError) as exc:
        Parser(r"^(?P<MESSAGE>.*)$", **{kind: [VariableMatcher(variable="LEVEL", regex="x")]})
    assert exc.value.variable == "LEVEL"
    assert exc.value.kind == kind.rstrip("s")


def test_invalid_parser_regex() -> None:
    with pytest.raises(InvalidPatternError):
        Parser(r"^(?P<MESSAGE>.*$")


def test_invalid_matcher_regex() -> None:
    with pytest.raises(InvalidPatternError):
        Parser(r"^(?P<MESSAGE>.*)$", triggers=[VariableMatcher(variable="MESSAGE", regex="[")])


def test_parse_no_match() -> None:
    parser = Parser(r"^\[(?P<LEVEL>\w+)\]")
    with pytest.raises(NoMatchError):
        parser.parse("plain line", 1)


def test_matcher_missing_variable_never_matches() -> None:
    matcher = Matcher.compile("LEVEL", ".*")
    entry = LogEntry(text="x", line_no=1, variables={"MESSAGE": "x"})
    assert matcher.match(entry) is False


def test_parse_log_entry_returns_first_match_and_index(
    bracket_parser, catch_all_parser
) -> None:
    parsers = [bracket_parser, catch_all_parser]

    entry, index = parse_log_entry(parsers, "[ERROR] boom", 1)
    assert index == 0
    assert entry.triggered is True

    entry, index = parse_log_entry(parsers, "  at frame()", 2)
    assert index == 1
    assert entry.variables["MESSAGE"] == "  at frame()"
    assert entry.triggered is False


def test_parse_log_entry_without_catch_all(bracket_parser) -> None:
    with pytest.raises(NoParserMatchedError) as exc:
        parse_log_entry([bracket_parser], "no brackets here", 5)
    assert exc.value.line_no == 5


def test_stringify_joins_with_trailing_newlines() -> None:
    entries = [LogEntry(text="a", line_no=1), LogEntry(text="b", line_no=2)]
    assert stringify(entries) == "a\nb\n"
    assert stringify([]) == ""
