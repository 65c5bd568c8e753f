"""Backup cycle runner.

This module is transport-agnostic beyond the shared httpx client. It walks
the configured sites in order, lets the fetcher classify each one, and logs
the outcome. A bad site only degrades its own result.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

import httpx

from core.archive_writer import ArchiveWriter
from core.config import ConfigSnapshot, HttpClientConfig, SiteEntry
from core.fetcher import SiteFetcher, build_http_client
from core.models import CycleReport, Failed, FetchOutcome, Saved, SkipKind, Skipped
from core.ports import ArchiveSinkPort, CancelSignal

LOGGER = logging.getLogger(__name__)

FetcherFactory = Callable[[httpx.Client, ArchiveSinkPort, str], SiteFetcher]


class BackupCycleRunner:
    """Runs one pass over all configured sites."""

    def __init__(
        self,
        client: httpx.Client,
        writer: Optional[ArchiveSinkPort] = None,
        fetcher_factory: FetcherFactory = SiteFetcher,
    ) -> None:
        self._client = client
        self._writer = writer or ArchiveWriter()
        self._fetcher_factory = fetcher_factory

    def run(self, snapshot: ConfigSnapshot, cancel: CancelSignal) -> CycleReport:
        report = CycleReport()

        if not snapshot.sites:
            LOGGER.warning("No sites configured.")
            return report

        root = (snapshot.backup_root or "").strip()
        if not root:
            LOGGER.error("backup_folder is empty in config.")
            return report

        try:
            Path(root).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Cannot create backup folder %s: %s", root, exc)
            return report

        fetcher = self._fetcher_factory(self._client, self._writer, root)
        for site in snapshot.sites:
            if cancel.is_set():
                LOGGER.info("Cancellation requested; stopping current run.")
                report.cancelled = True
                return report

            outcome = fetcher.fetch(site, cancel)
            report.add(site, outcome)
            _log_outcome(site, outcome)
            if isinstance(outcome, Skipped) and outcome.kind is SkipKind.CANCELLED:
                report.cancelled = True
                return report

        LOGGER.info("Backup cycle finished: %s", report.summary())
        return report


def _log_outcome(site: SiteEntry, outcome: FetchOutcome) -> None:
    prefix = (site.name or "").strip() or "<unnamed>"
    url = (site.url or "").strip()

    if isinstance(outcome, Saved):
        LOGGER.info("Saved: %s", outcome.path)
    elif isinstance(outcome, Skipped):
        if outcome.kind is SkipKind.DISABLED:
            LOGGER.info("Skipping disabled site %s", prefix)
        elif outcome.kind is SkipKind.INVALID:
            LOGGER.info("Skipping site %s: %s (%s)", prefix, outcome.reason, url)
        elif outcome.kind is SkipKind.CANCELLED:
            LOGGER.info("Download for %s cancelled.", prefix)
        else:
            LOGGER.warning("Download skipped for %s: %s (%s)", prefix, outcome.reason, url)
    elif isinstance(outcome, Failed):
        LOGGER.error("Unexpected error for %s (%s): %s\n%s", prefix, url, outcome.error, outcome.detail)


def run_backup_once(
    snapshot: ConfigSnapshot,
    cancel: Optional[CancelSignal] = None,
    client: Optional[httpx.Client] = None,
) -> CycleReport:
    """Run one cycle now for ``snapshot``.

    Used by the "run now" surfaces. A client is built (and closed) here when
    the caller does not share one.
    """

    cancel = cancel or threading.Event()
    if client is not None:
        return BackupCycleRunner(client).run(snapshot, cancel)

    with build_http_client(HttpClientConfig()) as owned_client:
        return BackupCycleRunner(owned_client).run(snapshot, cancel)
