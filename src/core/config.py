"""Core configuration dataclasses.

We keep config persistence outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from core.errors import ConfigError

DEFAULT_INTERVAL_MINUTES = 60
DEFAULT_USER_AGENT = "httpBackup/1.0"
DEFAULT_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True)
class SiteEntry:
    """One configured download target."""

    name: str
    url: str
    enabled: bool = True


@dataclass(frozen=True)
class ConfigSnapshot:
    """Configuration read once at the top of a cycle.

    The snapshot is never mutated; edits made while a cycle runs are picked up
    by the next load.
    """

    interval_minutes: int
    backup_root: str
    sites: tuple[SiteEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class HttpClientConfig:
    """Fixed transport settings shared by every site in a cycle."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = True


def effective_interval_minutes(snapshot: ConfigSnapshot) -> int:
    """Return the cycle period, never below one minute."""

    return max(1, snapshot.interval_minutes)


def _fold_key(key: str) -> str:
    # IntervalMinutes, intervalMinutes and interval_minutes all fold together.
    return key.replace("_", "").lower()


def _folded(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {_fold_key(str(key)): value for key, value in raw.items()}


def _as_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigError(f"{field_name} must be true or false, got {value!r}")


def _as_str(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise ConfigError(f"{field_name} must be a string, got {value!r}")


def site_from_dict(raw: Mapping[str, Any]) -> SiteEntry:
    """Build a SiteEntry from a JSON object, tolerating key casing."""

    if not isinstance(raw, Mapping):
        raise ConfigError(f"site entries must be objects, got {raw!r}")
    data = _folded(raw)
    return SiteEntry(
        name=_as_str(data.get("name", "site"), "site.name"),
        url=_as_str(data.get("url", ""), "site.url"),
        enabled=_as_bool(data.get("enabled", True), "site.enabled"),
    )


def snapshot_from_dict(
    raw: Mapping[str, Any],
    default_backup_root: str = "",
    default_interval: int = DEFAULT_INTERVAL_MINUTES,
) -> ConfigSnapshot:
    """Build a ConfigSnapshot from the decoded config document.

    Missing keys fall back to the defaults. Out-of-range intervals are kept
    as-is; clamping is the scheduler's job.
    """

    if not isinstance(raw, Mapping):
        raise ConfigError("config root must be an object")
    data = _folded(raw)

    interval = data.get("intervalminutes", default_interval)
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise ConfigError(f"interval_minutes must be an integer, got {interval!r}")

    backup_root = _as_str(data.get("backupfolder", default_backup_root), "backup_folder")

    raw_sites = data.get("sites") or []
    if not isinstance(raw_sites, list):
        raise ConfigError("sites must be a list")

    return ConfigSnapshot(
        interval_minutes=interval,
        backup_root=backup_root,
        sites=tuple(site_from_dict(entry) for entry in raw_sites),
    )


def snapshot_to_dict(snapshot: ConfigSnapshot) -> dict[str, Any]:
    """Serialize a snapshot with the snake_case keys used on disk."""

    return {
        "interval_minutes": snapshot.interval_minutes,
        "backup_folder": snapshot.backup_root,
        "sites": [
            {"enabled": site.enabled, "name": site.name, "url": site.url}
            for site in snapshot.sites
        ],
    }
