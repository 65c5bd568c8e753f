"""Validation helpers for config editing."""

from __future__ import annotations

from dataclasses import dataclass

from core.fetcher import is_http_url
from core.naming import sanitize


@dataclass
class SiteFieldInfo:
    normalized: str | None
    error: str | None = None
    hint: str = ""


def check_site_name(raw_value: str) -> SiteFieldInfo:
    value = raw_value.strip()
    if not value:
        return SiteFieldInfo(None, "name is required")
    safe = sanitize(value)
    hint = f"folder: {safe}" if safe != value else ""
    return SiteFieldInfo(value, None, hint)


def check_site_url(raw_value: str) -> SiteFieldInfo:
    value = raw_value.strip()
    if not value:
        return SiteFieldInfo(None, "url is required")
    if not is_http_url(value):
        return SiteFieldInfo(None, "url must be an absolute http:// or https:// address")
    return SiteFieldInfo(value)


def parse_interval(raw_value: str) -> tuple[int | None, str | None]:
    """Return (minutes, error). Minutes below 1 are rejected in the editor."""

    stripped = raw_value.strip()
    if not stripped:
        return None, None
    if not stripped.isdigit():
        return None, "Enter a whole number of minutes"
    minutes = int(stripped)
    if minutes < 1:
        return None, "Interval must be at least 1 minute"
    return minutes, None
