from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path

import httpx
import pytest
import respx

from core.archive_writer import ArchiveWriter
from core.config import ConfigSnapshot, HttpClientConfig, SiteEntry
from core.fetcher import build_http_client
from core.models import Failed, Saved, SkipKind, Skipped
from core.runner import BackupCycleRunner, run_backup_once

FIXED = datetime(2024, 6, 1, 9, 30, 0)


@pytest.fixture
def client():
    with build_http_client(HttpClientConfig()) as http_client:
        yield http_client


def _runner(client: httpx.Client) -> BackupCycleRunner:
    return BackupCycleRunner(client, ArchiveWriter(clock=lambda: FIXED))


def _snapshot(root: Path, *sites: SiteEntry) -> ConfigSnapshot:
    return ConfigSnapshot(interval_minutes=60, backup_root=str(root), sites=tuple(sites))


class FakeFetcher:
    """Returns canned outcomes and optionally cancels after a given site."""

    def __init__(self, outcomes, cancel_after=None, cancel=None) -> None:
        self.outcomes = list(outcomes)
        self.fetched: list[str] = []
        self.cancel_after = cancel_after
        self.cancel = cancel

    def __call__(self, client, writer, root):
        return self

    def fetch(self, site, cancel):
        self.fetched.append(site.name)
        if self.cancel is not None and site.name == self.cancel_after:
            self.cancel.set()
        return self.outcomes.pop(0)


def test_failing_site_does_not_stop_the_others(client: httpx.Client, tmp_path: Path) -> None:
    snapshot = _snapshot(
        tmp_path,
        SiteEntry(name="one", url="https://one.example/a.zip"),
        SiteEntry(name="two", url="https://two.example/a.zip"),
        SiteEntry(name="three", url="https://three.example/a.zip"),
    )
    with respx.mock:
        respx.get("https://one.example/a.zip").mock(return_value=httpx.Response(200, content=b"PK1"))
        respx.get("https://two.example/a.zip").mock(return_value=httpx.Response(500))
        respx.get("https://three.example/a.zip").mock(return_value=httpx.Response(200, content=b"PK3"))
        report = _runner(client).run(snapshot, threading.Event())

    assert [site.name for site, _ in report.results] == ["one", "two", "three"]
    assert report.results[1][1] == Skipped("http status 500", SkipKind.HTTP_STATUS)
    assert [path.read_bytes() for path in report.saved] == [b"PK1", b"PK3"]
    assert not (tmp_path / "two").exists()
    assert report.summary() == "saved=2, skipped=1, failed=0"


def test_end_to_end_archive_layout(client: httpx.Client, tmp_path: Path) -> None:
    snapshot = _snapshot(tmp_path, SiteEntry(name="My Site!", url="https://example.com/export"))
    with respx.mock:
        respx.get("https://example.com/export").mock(return_value=httpx.Response(200, content=b"PK\x03\x04body"))
        report = _runner(client).run(snapshot, threading.Event())

    expected = tmp_path / "My_Site_" / "backup_My_Site__01-06-2024_09-30-00.zip"
    assert report.saved == [expected]
    assert expected.read_bytes().startswith(b"PK")


def test_no_sites_touches_nothing(client: httpx.Client, tmp_path: Path, caplog) -> None:
    root = tmp_path / "never-created"
    caplog.set_level("WARNING")

    report = _runner(client).run(_snapshot(root), threading.Event())

    assert report.results == []
    assert not root.exists()
    assert "No sites configured." in caplog.text


def test_empty_backup_root_aborts_cycle(client: httpx.Client, caplog) -> None:
    snapshot = ConfigSnapshot(
        interval_minutes=60,
        backup_root="   ",
        sites=(SiteEntry(name="site", url="https://example.com/a.zip"),),
    )
    caplog.set_level("ERROR")

    with respx.mock(assert_all_called=False) as router:
        route = router.get("https://example.com/a.zip").mock(return_value=httpx.Response(200))
        report = _runner(client).run(snapshot, threading.Event())

    assert report.results == []
    assert not route.called
    assert "backup_folder is empty" in caplog.text


def test_cancel_before_first_site(tmp_path: Path) -> None:
    cancel = threading.Event()
    cancel.set()
    fake = FakeFetcher([])

    report = BackupCycleRunner(None, fetcher_factory=fake).run(
        _snapshot(tmp_path, SiteEntry(name="a", url="https://a.example/")),
        cancel,
    )

    assert report.cancelled
    assert report.results == []
    assert fake.fetched == []
    assert report.summary().endswith("(cancelled)")


def test_cancel_between_sites_stops_remaining(tmp_path: Path) -> None:
    cancel = threading.Event()
    fake = FakeFetcher(
        [Saved(tmp_path / "a.zip"), Saved(tmp_path / "b.zip")],
        cancel_after="a",
        cancel=cancel,
    )

    report = BackupCycleRunner(None, fetcher_factory=fake).run(
        _snapshot(
            tmp_path,
            SiteEntry(name="a", url="https://a.example/"),
            SiteEntry(name="b", url="https://b.example/"),
        ),
        cancel,
    )

    assert fake.fetched == ["a"]
    assert report.cancelled
    assert len(report.results) == 1


def test_cancelled_outcome_ends_cycle(tmp_path: Path) -> None:
    fake = FakeFetcher([Skipped("cancelled", SkipKind.CANCELLED), Saved(tmp_path / "b.zip")])

    report = BackupCycleRunner(None, fetcher_factory=fake).run(
        _snapshot(
            tmp_path,
            SiteEntry(name="a", url="https://a.example/"),
            SiteEntry(name="b", url="https://b.example/"),
        ),
        threading.Event(),
    )

    assert fake.fetched == ["a"]
    assert report.cancelled


def test_failed_outcome_is_logged_with_detail(tmp_path: Path, caplog) -> None:
    fake = FakeFetcher([Failed("RuntimeError: boom", "Traceback (most recent call last): ...")])
    caplog.set_level("ERROR")

    report = BackupCycleRunner(None, fetcher_factory=fake).run(
        _snapshot(tmp_path, SiteEntry(name="a", url="https://a.example/")),
        threading.Event(),
    )

    assert report.failed == 1
    assert "RuntimeError: boom" in caplog.text
    assert "Traceback" in caplog.text


def test_run_backup_once_uses_shared_client(client: httpx.Client, tmp_path: Path) -> None:
    snapshot = _snapshot(tmp_path, SiteEntry(name="site", url="https://example.com/a.zip"))
    with respx.mock:
        respx.get("https://example.com/a.zip").mock(return_value=httpx.Response(200, content=b"PK"))
        report = run_backup_once(snapshot, client=client)

    assert len(report.saved) == 1
    assert report.saved[0].parent == tmp_path / "site"


def test_disabled_and_invalid_sites_are_logged_at_info(client: httpx.Client, tmp_path: Path, caplog) -> None:
    snapshot = _snapshot(
        tmp_path,
        SiteEntry(name="off", url="https://off.example/a.zip", enabled=False),
        SiteEntry(name="bad", url="not-a-url"),
    )
    caplog.set_level("INFO", logger="core.runner")

    report = _runner(client).run(snapshot, threading.Event())

    assert report.skipped == 2
    records = {record.getMessage(): record.levelname for record in caplog.records if record.name == "core.runner"}
    assert records["Skipping disabled site off"] == "INFO"
    assert records["Skipping site bad: invalid url (not-a-url)"] == "INFO"
