"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#3FB68B"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
DEFAULT_SITE = {"enabled": True, "name": "", "url": "https://"}
