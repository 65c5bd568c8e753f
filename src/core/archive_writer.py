"""Archive writer: streams one payload into a new timestamped file."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from core.naming import archive_path

LOGGER = logging.getLogger(__name__)


class ArchiveWriter:
    """Writes payloads under ``root/<prefix>/`` without ever overwriting.

    The file is opened in exclusive-create mode, so two writes for the same
    site within the same wall-clock second fail on the second one. That is
    also the only guard against two processes writing the same archive.

    If the stream breaks after the file was created (disk full, connection
    reset, cancellation), the partial file is removed before the error is
    re-raised so a truncated ZIP never looks like a finished backup.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def write(self, root: str, prefix: str, chunks: Iterable[bytes]) -> Path:
        target = archive_path(root, prefix, self._clock())
        target.parent.mkdir(parents=True, exist_ok=True)

        handle = open(target, "xb")
        try:
            with handle:
                for chunk in chunks:
                    if chunk:
                        handle.write(chunk)
        except BaseException:
            self._discard(target)
            raise
        return target

    @staticmethod
    def _discard(target: Path) -> None:
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.warning("Could not remove partial archive %s: %s", target, exc)
