"""JSON config store.

Implements the core ConfigSourcePort on top of a single JSON file at a
well-known location. The settings editor and the scheduler both read the
file on demand; nothing is cached between cycles.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from core.config import DEFAULT_INTERVAL_MINUTES, ConfigSnapshot, snapshot_from_dict, snapshot_to_dict
from core.errors import ConfigError
from core.fetcher import is_http_url

LOGGER = logging.getLogger(__name__)


class JsonConfigStore:
    """Thin wrapper around config.json that satisfies the ConfigSourcePort contract."""

    def __init__(
        self,
        path: str | Path,
        default_backup_root: str,
        default_interval: int = DEFAULT_INTERVAL_MINUTES,
    ) -> None:
        self._path = Path(path)
        self._default_backup_root = default_backup_root
        self._default_interval = default_interval

    @property
    def path(self) -> Path:
        return self._path

    def default_snapshot(self) -> ConfigSnapshot:
        return ConfigSnapshot(
            interval_minutes=self._default_interval,
            backup_root=self._default_backup_root,
            sites=(),
        )

    def load(self) -> ConfigSnapshot:
        return self.load_or_create_default()

    def load_or_create_default(self) -> ConfigSnapshot:
        """Return the stored snapshot, persisting the baseline on first use."""

        if not self._path.exists():
            snapshot = self.default_snapshot()
            self.save(snapshot)
            LOGGER.info("Created default config at %s", self._path)
            return snapshot

        return snapshot_from_dict(
            self.load_raw(),
            default_backup_root=self._default_backup_root,
            default_interval=self._default_interval,
        )

    def load_raw(self) -> dict[str, Any]:
        """Return the whole document, including sections the core ignores."""

        try:
            text = self._path.read_text(encoding="utf-8-sig")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc.strerror or exc}") from exc
        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{self._path} is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{self._path}: config root must be an object")
        return data

    def load_document(self) -> dict[str, Any]:
        """Return the document for editing, with snapshot keys in canonical form.

        Files written with other key casings (``IntervalMinutes``) come back
        as ``interval_minutes`` etc.; other sections are left untouched.
        """

        snapshot = self.load_or_create_default()
        return _merge(self.load_raw(), snapshot)

    def save_document(self, document: dict[str, Any]) -> None:
        """Validate and persist an edited document.

        Refuses documents the scheduler could not run: an interval below one
        minute, an empty backup folder, or a site without a name or with a
        non-http(s) URL. The file on disk is left untouched in that case.
        """

        snapshot = snapshot_from_dict(
            document,
            default_backup_root=self._default_backup_root,
            default_interval=self._default_interval,
        )
        _check_runnable(snapshot)
        self.save_raw(_merge(document, snapshot))

    def save(self, snapshot: ConfigSnapshot) -> None:
        """Persist the snapshot, keeping unrelated sections (e.g. logging)."""

        document: dict[str, Any] = {}
        if self._path.exists():
            try:
                document = self.load_raw()
            except ConfigError:
                LOGGER.warning("Overwriting unreadable config at %s", self._path)
        self.save_raw(_merge(document, snapshot))

    def save_raw(self, document: dict[str, Any]) -> None:
        """Write the document atomically so a concurrent reader never sees half a file."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise


_SNAPSHOT_KEYS = frozenset({"intervalminutes", "backupfolder", "sites"})


def _merge(document: dict[str, Any], snapshot: ConfigSnapshot) -> dict[str, Any]:
    merged = {
        key: value
        for key, value in document.items()
        if key.replace("_", "").lower() not in _SNAPSHOT_KEYS
    }
    merged.update(snapshot_to_dict(snapshot))
    return merged


def _check_runnable(snapshot: ConfigSnapshot) -> None:
    if snapshot.interval_minutes < 1:
        raise ConfigError("Interval must be at least 1 minute.")
    if not snapshot.backup_root.strip():
        raise ConfigError("Backup folder is required.")
    for site in snapshot.sites:
        name = site.name.strip()
        if not name:
            raise ConfigError("Each site must have a name.")
        if not is_http_url(site.url.strip()):
            raise ConfigError(f"Invalid URL for site '{name}': {site.url}")
