"""Site fetcher: one HTTP GET per site, classified into a FetchOutcome.

Validation happens before any network traffic. Every failure is turned into
an outcome here; nothing raised by httpx or the filesystem leaves ``fetch``.
"""

from __future__ import annotations

import logging
import traceback
from typing import Iterator
from urllib.parse import urlsplit

import httpx

from core.config import HttpClientConfig, SiteEntry
from core.models import Failed, FetchOutcome, Saved, SkipKind, Skipped
from core.naming import site_directory
from core.ports import ArchiveSinkPort, CancelSignal

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
ALLOWED_SCHEMES = ("http", "https")


class FetchCancelled(Exception):
    """Raised from inside the body stream when cancellation is requested."""


def is_http_url(url: str) -> bool:
    """Return True for an absolute http(s) URL with a host."""

    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ALLOWED_SCHEMES and bool(parts.hostname)


def build_http_client(config: HttpClientConfig) -> httpx.Client:
    """Create the client shared by every site in a cycle.

    One client-wide timeout bounds connect, read, and write waits; there is
    no separate deadline on the streamed body beyond the read timeout.
    """

    LOGGER.debug("Initializing HTTP client (timeout=%ss)", config.timeout_seconds)
    return httpx.Client(
        headers={"User-Agent": config.user_agent},
        timeout=httpx.Timeout(config.timeout_seconds),
        follow_redirects=config.follow_redirects,
    )


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class SiteFetcher:
    """Downloads one site's payload into ``backup_root`` using a shared client."""

    def __init__(self, client: httpx.Client, writer: ArchiveSinkPort, backup_root: str) -> None:
        self._client = client
        self._writer = writer
        self._backup_root = backup_root

    def fetch(self, site: SiteEntry, cancel: CancelSignal) -> FetchOutcome:
        if not site.enabled:
            return Skipped("disabled", SkipKind.DISABLED)

        name = (site.name or "").strip()
        url = (site.url or "").strip()
        if not name or not url:
            return Skipped("missing name or url", SkipKind.INVALID)
        if not is_http_url(url):
            return Skipped("invalid url", SkipKind.INVALID)

        if cancel.is_set():
            return Skipped("cancelled", SkipKind.CANCELLED)

        LOGGER.info("Downloading ZIP for %s from %s", name, url)
        try:
            with self._client.stream("GET", url) as response:
                if not response.is_success:
                    return Skipped(f"http status {response.status_code}", SkipKind.HTTP_STATUS)
                path = self._writer.write(self._backup_root, name, self._body(response, cancel))
        except FetchCancelled:
            return Skipped("cancelled", SkipKind.CANCELLED)
        except httpx.InvalidURL:
            return Skipped("invalid url", SkipKind.INVALID)
        except httpx.RequestError as exc:
            # DNS failure, refused connection, timeout, reset mid-transfer.
            return Skipped(_describe(exc), SkipKind.NETWORK)
        except FileExistsError as exc:
            # Two cycles started within the same second; never overwrite.
            return Failed(f"archive already exists: {exc.filename}", traceback.format_exc())
        except OSError as exc:
            location = exc.filename or site_directory(self._backup_root, name)
            return Skipped(f"{exc.strerror or _describe(exc)} ({location})", SkipKind.IO)
        except Exception as exc:
            return Failed(f"{type(exc).__name__}: {exc}", traceback.format_exc())

        return Saved(path)

    @staticmethod
    def _body(response: httpx.Response, cancel: CancelSignal) -> Iterator[bytes]:
        # iter_bytes() yields decoded content, so gzip/deflate/br responses
        # land on disk already decompressed.
        for chunk in response.iter_bytes(chunk_size=CHUNK_SIZE):
            if cancel.is_set():
                raise FetchCancelled()
            yield chunk
