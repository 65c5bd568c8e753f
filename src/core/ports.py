"""Ports (interfaces) used by the core engine.

Ports define the minimal contracts for config sources, cancellation, and
archive storage so that the core can be reused with different backends.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Protocol

from core.config import ConfigSnapshot


class ConfigSourcePort(Protocol):
    """Produces a fresh snapshot on every call."""

    def load(self) -> ConfigSnapshot:
        ...


class CancelSignal(Protocol):
    """Cooperative cancellation. ``threading.Event`` satisfies this."""

    def is_set(self) -> bool:
        ...

    def wait(self, timeout: Optional[float] = None) -> bool:
        ...


class ArchiveSinkPort(Protocol):
    """Writes one payload for one site and returns where it landed."""

    def write(self, root: str, prefix: str, chunks: Iterable[bytes]) -> Path:
        ...
