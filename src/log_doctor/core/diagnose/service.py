"""LLM-facing diagnosis of bundled incidents.

Each incident is written to `<output_dir>/<log:line>.diagnosing` while the
model is consulted, then renamed to `.diagnosed` once the answer is saved.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path

from google import genai

from ..config import PromptConfig
from ..models import LogEntry
from ..parsing import stringify
from .models import DiagnosisConfig, DiagnosisError, resolve_diagnosis_config
from .prompt import build_prompt, format_artifact_header, safe_filename

logger = logging.getLogger(__name__)

PENDING_SUFFIX = ".diagnosing"
DONE_SUFFIX = ".diagnosed"


def _api_key() -> str:
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise RuntimeError("Missing GEMINI_API_KEY (or GOOGLE_API_KEY).")
    return api_key


def _call_gemini(prompt: str, *, system_prompt: str, cfg: DiagnosisConfig) -> str:
    """Ask the model for a diagnosis and return its text answer."""
    client = genai.Client(api_key=_api_key())
    resp = client.models.generate_content(
        model=cfg.model,
        contents=prompt,
        config={
            "system_instruction": system_prompt,
            "temperature": cfg.temperature,
        },
    )
    if not resp.text:
        raise DiagnosisError("model returned no diagnosis")
    return resp.text


class DiagnosisHandler:
    """Async handler that diagnoses incidents and persists the result."""

    def __init__(
        self,
        log_path: str | Path,
        *,
        prompts: PromptConfig | None = None,
        cfg: DiagnosisConfig | None = None,
    ) -> None:
        self._log_path = str(log_path)
        self._prompts = prompts or PromptConfig()
        self._cfg = cfg or resolve_diagnosis_config(None)

    @property
    def config(self) -> DiagnosisConfig:
        return self._cfg

    def artifact_path(self, trigger: LogEntry) -> Path:
        location = f"{self._log_path}:{trigger.line_no}"
        return self._cfg.output_dir / (safe_filename(location) + DONE_SUFFIX)

    async def __call__(self, trigger: LogEntry, context: list[LogEntry]) -> None:
        await asyncio.to_thread(self._diagnose, trigger, context)

    def _diagnose(self, trigger: LogEntry, context: list[LogEntry]) -> Path:
        cfg = self._cfg
        last_err: Exception | None = None
        for attempt in range(1, cfg.max_retries + 1):
            try:
                return self._diagnose_once(trigger, context)
            except Exception as e:
                last_err = e
                if attempt >= cfg.max_retries:
                    break
                logger.warning("Diagnosis failed (attempt %s/%s): %s", attempt, cfg.max_retries, e)
                time.sleep(cfg.retry_delay)

        logger.error("Failed to diagnose line %d after retries: %s", trigger.line_no, last_err)
        raise DiagnosisError(
            f"diagnosis of line {trigger.line_no} failed after {cfg.max_retries} attempts: {last_err}"
        ) from last_err

    def _diagnose_once(self, trigger: LogEntry, context: list[LogEntry]) -> Path:
        location = f"{self._log_path}:{trigger.line_no}"
        done = self.artifact_path(trigger)
        pending = done.with_name(safe_filename(location) + PENDING_SUFFIX)
        context_text = stringify(context)

        logger.info("Diagnosing %s", location)
        with pending.open("w", encoding="utf-8") as f:
            f.write(format_artifact_header(location, self._prompts, context_text))
            diagnosis = _call_gemini(
                build_prompt(self._prompts, context_text),
                system_prompt=self._prompts.system_prompt,
                cfg=self._cfg,
            )
            logger.info("Diagnosis for %s: %s", location, diagnosis)
            f.write(f"DIAGNOSIS:\n{diagnosis}\n")

        pending.replace(done)
        return done
