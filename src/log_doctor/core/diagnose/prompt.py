"""Prompt and artifact formatting for diagnoses."""

from __future__ import annotations

from ..config import ERROR_PLACEHOLDER, PromptConfig

MAX_FILENAME_LEN = 200


def build_prompt(prompts: PromptConfig, context_text: str) -> str:
    """Substitute the incident context for the first $ERROR placeholder."""
    return prompts.user_prompt.replace(ERROR_PLACEHOLDER, context_text, 1)


def safe_filename(location: str) -> str:
    """Turn `path:line` into a flat file name."""
    name = location.replace(" ", "-").replace("/", "::")
    return name[:MAX_FILENAME_LEN]


def format_artifact_header(location: str, prompts: PromptConfig, context_text: str) -> str:
    return (
        f"LOG LINE:\n{location}\n\n"
        f"SYSTEM PROMPT:\n{prompts.system_prompt}\n\n"
        f"PROMPT:\n{prompts.user_prompt}\n\n"
        f"CONTEXT:\n{context_text}\n\n"
    )
