"""Helpers for archive directory and file names.

The layout ``{root}/{prefix}/backup_{prefix}_{DD-MM-YYYY_HH-MM-SS}.zip`` is
relied on by existing archives and by external tooling that globs it, so it
must not change.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

ARCHIVE_PREFIX = "backup_"
ARCHIVE_SUFFIX = ".zip"
TIMESTAMP_FORMAT = "%d-%m-%Y_%H-%M-%S"

_UNSAFE_CHARS = re.compile(r"[^\w.\-]")


def sanitize(name: str) -> str:
    """Replace every character that is unsafe in a file name with ``_``."""

    safe = _UNSAFE_CHARS.sub("_", name)
    # "." and ".." would escape the per-site directory.
    if safe and set(safe) == {"."}:
        safe = "_" * len(safe)
    return safe


def format_timestamp(moment: datetime) -> str:
    """Return the zero-padded 24-hour ``DD-MM-YYYY_HH-MM-SS`` stamp."""

    return moment.strftime(TIMESTAMP_FORMAT)


def archive_filename(safe_prefix: str, moment: datetime) -> str:
    return f"{ARCHIVE_PREFIX}{safe_prefix}_{format_timestamp(moment)}{ARCHIVE_SUFFIX}"


def site_directory(root: str | Path, prefix: str) -> Path:
    """Return ``root/sanitize(prefix)``."""

    return Path(root) / sanitize(prefix)


def archive_path(root: str | Path, prefix: str, moment: datetime) -> Path:
    """Return the full destination path for one archive."""

    safe_prefix = sanitize(prefix)
    return Path(root) / safe_prefix / archive_filename(safe_prefix, moment)
