"""Open the backup folder in the platform's file browser."""

from __future__ import annotations

import logging
import webbrowser
from pathlib import Path

LOGGER = logging.getLogger(__name__)


def open_folder(path: str | Path) -> bool:
    """Create ``path`` if needed and hand it to the desktop's default handler.

    Returns False when no browser/file manager could be launched, which is
    normal on headless machines.
    """

    folder = Path(path).expanduser()
    folder.mkdir(parents=True, exist_ok=True)
    uri = folder.resolve().as_uri()
    opened = webbrowser.open(uri)
    if not opened:
        LOGGER.warning("No file browser available to open %s", folder)
    return opened
