"""Diagnosis configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path


class DiagnosisError(RuntimeError):
    """Diagnosing an incident failed after all retries."""


@dataclass(frozen=True, slots=True)
class DiagnosisConfig:
    output_dir: Path = Path("diagnoses")
    model: str = "gemini-2.5-flash"
    temperature: float = 0.0
    max_retries: int = 3
    retry_delay: float = 2.0


def _int_env(name: str) -> int | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = int(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1")
    return value


def resolve_diagnosis_config(cfg: DiagnosisConfig | None) -> DiagnosisConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = DiagnosisConfig()

    model = os.getenv("LOG_DOCTOR_MODEL")
    if model:
        cfg = replace(cfg, model=model)

    retries = _int_env("LOG_DOCTOR_MAX_RETRIES")
    if retries is not None:
        cfg = replace(cfg, max_retries=retries)
    return cfg
