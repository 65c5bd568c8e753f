"""Tests for the site fetcher.

``respx`` patches ``httpx`` at the transport layer so no real network calls
are made; a route that is never hit proves validation stopped the fetch.
"""

from __future__ import annotations

import gzip
import threading
from datetime import datetime
from pathlib import Path

import httpx
import pytest
import respx

from core.archive_writer import ArchiveWriter
from core.config import HttpClientConfig, SiteEntry
from core.fetcher import CHUNK_SIZE, SiteFetcher, build_http_client, is_http_url
from core.models import Failed, Saved, SkipKind, Skipped

FIXED = datetime(2024, 6, 1, 9, 30, 0)
URL = "https://example.com/a.zip"


class CountdownCancel:
    """Reports cancellation after ``remaining`` checks."""

    def __init__(self, remaining: int) -> None:
        self.remaining = remaining

    def is_set(self) -> bool:
        if self.remaining <= 0:
            return True
        self.remaining -= 1
        return False

    def wait(self, timeout=None) -> bool:
        return self.is_set()


@pytest.fixture
def client():
    with build_http_client(HttpClientConfig()) as http_client:
        yield http_client


def _fetcher(client: httpx.Client, root: Path) -> SiteFetcher:
    return SiteFetcher(client, ArchiveWriter(clock=lambda: FIXED), str(root))


@pytest.mark.parametrize(
    "site, reason, kind",
    [
        (SiteEntry(name="site", url=URL, enabled=False), "disabled", SkipKind.DISABLED),
        (SiteEntry(name="   ", url=URL), "missing name or url", SkipKind.INVALID),
        (SiteEntry(name="site", url=" \t "), "missing name or url", SkipKind.INVALID),
        (SiteEntry(name="site", url="example.com/a.zip"), "invalid url", SkipKind.INVALID),
        (SiteEntry(name="site", url="/relative/a.zip"), "invalid url", SkipKind.INVALID),
        (SiteEntry(name="site", url="ftp://example.com/a.zip"), "invalid url", SkipKind.INVALID),
        (SiteEntry(name="site", url="file:///etc/passwd"), "invalid url", SkipKind.INVALID),
        (SiteEntry(name="site", url="http://[::1"), "invalid url", SkipKind.INVALID),
    ],
)
def test_validation_skips_without_network_call(
    client: httpx.Client, tmp_path: Path, site: SiteEntry, reason: str, kind: SkipKind
) -> None:
    with respx.mock(assert_all_called=False) as router:
        route = router.get(URL).mock(return_value=httpx.Response(200, content=b"PK"))
        outcome = _fetcher(client, tmp_path).fetch(site, threading.Event())

    assert outcome == Skipped(reason, kind)
    assert not route.called
    assert list(tmp_path.iterdir()) == []


def test_success_streams_body_to_archive(client: httpx.Client, tmp_path: Path) -> None:
    body = b"PK\x03\x04" + bytes(range(256)) * 1024
    with respx.mock:
        route = respx.get(URL).mock(return_value=httpx.Response(200, content=body))
        outcome = _fetcher(client, tmp_path).fetch(SiteEntry(name=" site ", url=f" {URL} "), threading.Event())

    assert isinstance(outcome, Saved)
    assert outcome.path == tmp_path / "site" / "backup_site_01-06-2024_09-30-00.zip"
    assert outcome.path.read_bytes() == body
    assert route.calls.last.request.headers["User-Agent"] == "httpBackup/1.0"


def test_gzip_encoded_response_is_decompressed(client: httpx.Client, tmp_path: Path) -> None:
    with respx.mock:
        respx.get(URL).mock(
            return_value=httpx.Response(
                200,
                content=gzip.compress(b"PK-archive"),
                headers={"Content-Encoding": "gzip"},
            )
        )
        outcome = _fetcher(client, tmp_path).fetch(SiteEntry(name="gz", url=URL), threading.Event())

    assert isinstance(outcome, Saved)
    assert outcome.path.read_bytes() == b"PK-archive"


@pytest.mark.parametrize("status", [404, 500, 503])
def test_http_error_status_is_skipped(client: httpx.Client, tmp_path: Path, status: int) -> None:
    with respx.mock:
        respx.get(URL).mock(return_value=httpx.Response(status, content=b"nope"))
        outcome = _fetcher(client, tmp_path).fetch(SiteEntry(name="site", url=URL), threading.Event())

    assert outcome == Skipped(f"http status {status}", SkipKind.HTTP_STATUS)
    assert outcome.is_transient
    assert not (tmp_path / "site").exists()


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("Connection refused"),
        httpx.ReadTimeout("timed out"),
        httpx.RemoteProtocolError("peer closed connection"),
    ],
)
def test_network_errors_are_skipped(client: httpx.Client, tmp_path: Path, error: Exception) -> None:
    with respx.mock:
        respx.get(URL).mock(side_effect=error)
        outcome = _fetcher(client, tmp_path).fetch(SiteEntry(name="site", url=URL), threading.Event())

    assert isinstance(outcome, Skipped)
    assert outcome.kind is SkipKind.NETWORK
    assert outcome.reason == str(error)


def test_filesystem_error_is_skipped_with_location(client: httpx.Client, tmp_path: Path) -> None:
    not_a_dir = tmp_path / "root-file"
    not_a_dir.write_text("occupied")

    with respx.mock:
        respx.get(URL).mock(return_value=httpx.Response(200, content=b"PK"))
        outcome = _fetcher(client, not_a_dir).fetch(SiteEntry(name="site", url=URL), threading.Event())

    assert isinstance(outcome, Skipped)
    assert outcome.kind is SkipKind.IO
    assert "root-file" in outcome.reason


def test_same_second_collision_is_unexpected_failure(client: httpx.Client, tmp_path: Path) -> None:
    site = SiteEntry(name="site", url=URL)
    fetcher = _fetcher(client, tmp_path)

    with respx.mock:
        respx.get(URL).mock(side_effect=[httpx.Response(200, content=b"one"), httpx.Response(200, content=b"two")])
        first = fetcher.fetch(site, threading.Event())
        second = fetcher.fetch(site, threading.Event())

    assert isinstance(first, Saved)
    assert isinstance(second, Failed)
    assert "already exists" in second.error
    assert first.path.read_bytes() == b"one"


def test_unexpected_error_is_failed_with_traceback(tmp_path: Path) -> None:
    class ExplodingClient:
        def stream(self, method: str, url: str):
            raise RuntimeError("boom")

    fetcher = SiteFetcher(ExplodingClient(), ArchiveWriter(), str(tmp_path))
    outcome = fetcher.fetch(SiteEntry(name="site", url=URL), threading.Event())

    assert isinstance(outcome, Failed)
    assert outcome.error == "RuntimeError: boom"
    assert "Traceback" in outcome.detail


def test_cancel_before_request_skips_network(client: httpx.Client, tmp_path: Path) -> None:
    cancel = threading.Event()
    cancel.set()
    with respx.mock(assert_all_called=False) as router:
        route = router.get(URL).mock(return_value=httpx.Response(200, content=b"PK"))
        outcome = _fetcher(client, tmp_path).fetch(SiteEntry(name="site", url=URL), cancel)

    assert outcome == Skipped("cancelled", SkipKind.CANCELLED)
    assert not route.called


def test_cancel_mid_stream_removes_partial_archive(client: httpx.Client, tmp_path: Path) -> None:
    body = b"x" * (CHUNK_SIZE * 4)
    # One check before the request, one before the first chunk, then cancel.
    cancel = CountdownCancel(remaining=2)

    with respx.mock:
        respx.get(URL).mock(return_value=httpx.Response(200, content=body))
        outcome = _fetcher(client, tmp_path).fetch(SiteEntry(name="site", url=URL), cancel)

    assert outcome == Skipped("cancelled", SkipKind.CANCELLED)
    assert list((tmp_path / "site").iterdir()) == []


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com/a.zip", True),
        ("HTTP://EXAMPLE.COM/a.zip", True),
        ("http://localhost:8080/backup", True),
        ("https://", False),
        ("mailto:someone@example.com", False),
        ("", False),
    ],
)
def test_is_http_url(url: str, expected: bool) -> None:
    assert is_http_url(url) is expected
