"""Scheduler loop that drives one backup cycle per interval.

The loop is single-threaded, so cycles never overlap. Configuration is
loaded fresh at the top of every iteration; edits made by the settings
editor take effect at the next cycle boundary.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Protocol

from core.config import ConfigSnapshot, effective_interval_minutes
from core.models import CycleReport
from core.ports import CancelSignal, ConfigSourcePort

LOGGER = logging.getLogger(__name__)

CONFIG_RETRY_SECONDS = 30
STOP_POLL_SECONDS = 1.0


class CycleRunnerPort(Protocol):
    def run(self, snapshot: ConfigSnapshot, cancel: CancelSignal) -> CycleReport:
        ...


class SchedulerLoop:
    """Load config, run a cycle, sleep, repeat until stopped."""

    def __init__(
        self,
        config_source: ConfigSourcePort,
        runner: CycleRunnerPort,
        stop_event: Optional[threading.Event] = None,
        config_retry_seconds: float = CONFIG_RETRY_SECONDS,
    ) -> None:
        self._config_source = config_source
        self._runner = runner
        self._stop = stop_event or threading.Event()
        self._wake = threading.Event()
        self._config_retry_seconds = config_retry_seconds

    @property
    def cancel_signal(self) -> threading.Event:
        return self._stop

    def stop(self) -> None:
        """Request cancellation; an in-flight cycle stops at its next checkpoint."""

        self._stop.set()
        self._wake.set()

    def request_run_now(self) -> None:
        """Start the next cycle without waiting out the interval.

        Requests made while a cycle is running collapse into a single extra
        cycle right after it.
        """

        self._wake.set()

    def run_forever(self) -> int:
        """Run until stopped and return the number of completed cycles."""

        LOGGER.info("httpbackup scheduler started.")
        cycles = 0
        while not self._stop.is_set():
            try:
                snapshot = self._config_source.load()
            except Exception:
                LOGGER.exception("Failed to load config.")
                self._sleep(self._config_retry_seconds)
                continue

            interval = effective_interval_minutes(snapshot)
            self._wake.clear()
            try:
                self._runner.run(snapshot, self._stop)
            except Exception:
                LOGGER.exception("Backup cycle aborted by an unexpected error.")
            cycles += 1

            if self._stop.is_set():
                break
            LOGGER.info("Next run in %s minutes.", interval)
            self._sleep(interval * 60)

        LOGGER.info("httpbackup scheduler stopped after %s cycle(s).", cycles)
        return cycles

    def _sleep(self, seconds: float) -> None:
        # Wait in slices so a stop event set directly by the caller still ends
        # the sleep within STOP_POLL_SECONDS.
        deadline = time.monotonic() + seconds
        while not self._stop.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            if self._wake.wait(min(remaining, STOP_POLL_SECONDS)):
                if not self._stop.is_set():
                    self._wake.clear()
                    LOGGER.info("Run requested; starting next cycle early.")
                return
