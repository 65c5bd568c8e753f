"""Core domain models.

A fetch always ends in exactly one FetchOutcome. The runner matches on the
outcome type instead of catching exceptions, so continuing past a bad site
is an explicit loop property.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from core.config import SiteEntry


class SkipKind(str, Enum):
    """Why a site was skipped this cycle."""

    DISABLED = "disabled"
    INVALID = "invalid"
    HTTP_STATUS = "http_status"
    NETWORK = "network"
    IO = "io"
    CANCELLED = "cancelled"


_TRANSIENT_KINDS = frozenset({SkipKind.HTTP_STATUS, SkipKind.NETWORK, SkipKind.IO})


@dataclass(frozen=True)
class Saved:
    """Payload retrieved and fully written to ``path``."""

    path: Path


@dataclass(frozen=True)
class Skipped:
    """Routine, expected non-success. Retried at the next scheduled cycle."""

    reason: str
    kind: SkipKind

    @property
    def is_transient(self) -> bool:
        return self.kind in _TRANSIENT_KINDS


@dataclass(frozen=True)
class Failed:
    """Unexpected error. ``detail`` carries the formatted traceback."""

    error: str
    detail: str = ""


FetchOutcome = Union[Saved, Skipped, Failed]


@dataclass
class CycleReport:
    """Per-site outcomes of one cycle, in processing order."""

    results: list[tuple[SiteEntry, FetchOutcome]] = field(default_factory=list)
    cancelled: bool = False

    def add(self, site: SiteEntry, outcome: FetchOutcome) -> None:
        self.results.append((site, outcome))

    @property
    def saved(self) -> list[Path]:
        return [outcome.path for _, outcome in self.results if isinstance(outcome, Saved)]

    @property
    def skipped(self) -> int:
        return sum(1 for _, outcome in self.results if isinstance(outcome, Skipped))

    @property
    def failed(self) -> int:
        return sum(1 for _, outcome in self.results if isinstance(outcome, Failed))

    def summary(self) -> str:
        text = f"saved={len(self.saved)}, skipped={self.skipped}, failed={self.failed}"
        if self.cancelled:
            text += " (cancelled)"
        return text
