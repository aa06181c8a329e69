"""Incident diagnosis package."""

from __future__ import annotations

from .models import DiagnosisConfig, DiagnosisError, resolve_diagnosis_config
from .prompt import build_prompt, safe_filename
from .service import DiagnosisHandler

__all__ = [
    "DiagnosisConfig",
    "DiagnosisError",
    "DiagnosisHandler",
    "build_prompt",
    "resolve_diagnosis_config",
    "safe_filename",
]
