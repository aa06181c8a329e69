"""Configuration file loading and prompt settings.

The config file is YAML::

    system_prompt: "..."   # optional override
    prompt: "... $ERROR"   # optional override
    parsers:
      - regex: '^\\[(?P<LEVEL>\\w+)\\]\\s+(?P<MESSAGE>.*)$'
        triggers: [{variable: LEVEL, regex: ERROR}]
      - regex: '^(?P<MESSAGE>.*)$'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import VariableMatcher
from .parsing import Parser

logger = logging.getLogger(__name__)

ERROR_PLACEHOLDER = "$ERROR"

DEFAULT_SYSTEM_PROMPT = (
    "You are ErrorDebuggingGPT. Your sole purpose in this world is to help software engineers "
    "by diagnosing software system errors and bugs that can occur in any type of computer system."
)

DEFAULT_USER_PROMPT = (
    "The message following the first line containing \"ERROR:\" up until the end of the prompt "
    "is a computer error no more and no less. It is your job to try to diagnose and fix what "
    "went wrong. Ready?\nERROR:\n" + ERROR_PLACEHOLDER
)


class ConfigError(Exception):
    """The configuration file is missing or malformed."""


class ParserConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    regex: str
    filters: list[VariableMatcher] = Field(default_factory=list)
    triggers: list[VariableMatcher] = Field(default_factory=list)
    excludes: list[VariableMatcher] = Field(default_factory=list)


class AgentConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    system_prompt: str | None = None
    prompt: str | None = None
    parsers: list[ParserConfig] = Field(min_length=1)


@dataclass(frozen=True, slots=True)
class PromptConfig:
    """Prompt text sent with every diagnosis; also sizes the context budget."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    user_prompt: str = DEFAULT_USER_PROMPT

    @classmethod
    def from_config(cls, cfg: AgentConfig) -> PromptConfig:
        return cls(
            system_prompt=cfg.system_prompt or DEFAULT_SYSTEM_PROMPT,
            user_prompt=cfg.prompt or DEFAULT_USER_PROMPT,
        )

    def token_budget(self, max_tokens: int) -> int:
        """Context budget left after reserving room for the prompts."""
        return max(0, max_tokens - len(self.system_prompt) - len(self.user_prompt))


def load_config(path: str | Path) -> AgentConfig:
    """Read and validate a YAML config file."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to open config file: {p}: {exc}") from exc

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid config (YAML): {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Invalid config: top level must be a mapping")

    try:
        return AgentConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config: {exc}") from exc


def build_parsers(cfg: AgentConfig) -> list[Parser]:
    """Build the ordered parser chain; the last parser should be a catch-all."""
    parsers: list[Parser] = []
    for pc in cfg.parsers:
        parser = Parser(pc.regex, filters=pc.filters, triggers=pc.triggers, excludes=pc.excludes)
        logger.debug("Appending parser (%s)", parser.regex)
        parsers.append(parser)
    logger.info("Initialized (%d) parsers", len(parsers))
    return parsers
