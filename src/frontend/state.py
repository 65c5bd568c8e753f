"""State container for config loading and dirty tracking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ConfigState:
    data: dict[str, Any] | None = None
    dirty: bool = False
    error: str | None = None
    running: bool = False

    def sites(self) -> list[dict[str, Any]]:
        sites = (self.data or {}).get("sites")
        return sites if isinstance(sites, list) else []
