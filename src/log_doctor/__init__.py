"""Unattended log triage: classify lines, bundle incidents, diagnose them."""

__version__ = "0.1.0"
