"""Application entry point for the httpbackup worker."""

from __future__ import annotations

import argparse
import logging
import os
import re
import signal
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint

import settings
from adapters.file_browser import open_folder
from adapters.json_config_store import JsonConfigStore
from core.config import HttpClientConfig
from core.errors import ConfigError
from core.fetcher import build_http_client
from core.models import Failed, Saved, Skipped
from core.runner import BackupCycleRunner, run_backup_once
from core.scheduler import SchedulerLoop

NAME = "HTTPBACKUP"
FONT = "tarty-1"

_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks ``user:password@`` in any URL that reaches the log."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return _URL_CREDENTIALS.sub(r"\g<scheme>***@", message)


def _build_store() -> JsonConfigStore:
    return JsonConfigStore(
        settings.CONFIG_PATH,
        default_backup_root=settings.DEFAULT_BACKUP_FOLDER,
        default_interval=settings.DEFAULT_INTERVAL_MINUTES,
    )


def _logging_section(store: JsonConfigStore) -> dict[str, Any]:
    if not store.path.exists():
        return {}
    try:
        section = store.load_raw().get("logging", {})
    except ConfigError:
        return {}
    return section if isinstance(section, dict) else {}


def _configure_logging(store: JsonConfigStore) -> None:
    config = _logging_section(store)
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if isinstance(file_cfg, dict) and file_cfg.get("enabled", False):
        path = os.path.expanduser(str(file_cfg.get("path", settings.DEFAULT_LOG_PATH)))
        if not os.path.isabs(path):
            path = os.path.join(str(settings.APP_DIR), path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers, force=True)
    # httpx logs every request at INFO; the runner already does that per site.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def _install_signal_handlers(loop: SchedulerLoop) -> None:
    def _stop(signum, _frame) -> None:
        logging.getLogger(__name__).info("Received signal %s, stopping", signum)
        loop.stop()

    def _run_now(_signum, _frame) -> None:
        loop.request_run_now()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)
    # POSIX only: `kill -USR1 <pid>` is the out-of-band "run now" trigger.
    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, _run_now)


def _run() -> None:
    _print_banner()
    store = _build_store()
    _configure_logging(store)
    logger = logging.getLogger(__name__)

    logger.info("Starting httpbackup (config: %s)", store.path)

    # One client for the lifetime of the process, as sites are fetched
    # sequentially and the connection pool can be reused across cycles.
    with build_http_client(HttpClientConfig()) as client:
        loop = SchedulerLoop(
            config_source=store,
            runner=BackupCycleRunner(client),
            config_retry_seconds=settings.CONFIG_RETRY_SECONDS,
        )
        _install_signal_handlers(loop)
        loop.run_forever()


def _describe_outcome(outcome) -> str:
    if isinstance(outcome, Saved):
        return f"saved {outcome.path}"
    if isinstance(outcome, Skipped):
        return f"skipped: {outcome.reason}"
    if isinstance(outcome, Failed):
        return f"failed: {outcome.error}"
    return repr(outcome)


def _once() -> int:
    store = _build_store()
    _configure_logging(store)
    try:
        snapshot = store.load_or_create_default()
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 2
    except OSError as exc:
        print(f"Cannot create config at {store.path}: {exc.strerror or exc}")
        return 2

    report = run_backup_once(snapshot)
    for site, outcome in report.results:
        print(f"{site.name or '<unnamed>'}: {_describe_outcome(outcome)}")
    print(report.summary())
    return 1 if report.failed else 0


def _setup() -> None:
    _print_banner()
    from frontend.app import ConfigPanelApp

    ConfigPanelApp(store=_build_store()).run()


def _open() -> int:
    store = _build_store()
    try:
        snapshot = store.load_or_create_default()
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 2
    except OSError as exc:
        print(f"Cannot create config at {store.path}: {exc.strerror or exc}")
        return 2
    root = snapshot.backup_root.strip()
    if not root:
        print("backup_folder is empty in config.")
        return 2
    if not open_folder(root):
        print(root)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="httpbackup")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the scheduled backup worker")
    subparsers.add_parser("once", help="Run one backup cycle now and exit")
    subparsers.add_parser("config", help="Launch the config TUI")
    subparsers.add_parser("open", help="Open the backup folder in the file browser")
    subparsers.add_parser("where", help="Print the config file location")

    args = parser.parse_args(argv)
    if args.command == "config":
        _setup()
        return 0
    if args.command == "once":
        return _once()
    if args.command == "open":
        return _open()
    if args.command == "where":
        print(settings.CONFIG_PATH)
        return 0
    _run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
