"""Main Textual app for the httpbackup config panel."""

from __future__ import annotations

import threading
from typing import Any, Optional

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.containers import Center, Container, Horizontal, Vertical
from textual.widgets import Button, ContentSwitcher, Footer, Static, Tab, Tabs

from adapters.file_browser import open_folder
from adapters.json_config_store import JsonConfigStore
from core.errors import ConfigError
from core.runner import run_backup_once

from .constants import ACCENT
from .modals import reload_confirm_screen, unsaved_changes_screen
from .state import ConfigState
from .tabs.settings import SettingsTab
from .tabs.sites import SitesTab


class ConfigPanelApp(App):
    """Config panel with global config state and tabs."""

    BINDINGS = [
        ("ctrl+s", "save_config", "Save"),
        ("ctrl+r", "reload_config", "Reload"),
        ("ctrl+n", "run_now", "Run now"),
        ("ctrl+o", "open_folder", "Open folder"),
        ("q", "request_quit", "Quit"),
        ("ctrl+c", "request_quit", "Quit"),
    ]

    CSS_PATH = "app.tcss"

    def __init__(self, store: JsonConfigStore, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.store = store
        self.config_state = ConfigState()
        self._cancel_run = threading.Event()

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static(f"config: {self.store.path}", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static("", id="header-status")
                    yield Static("", id="run-status", classes="subtle")
                    yield Horizontal(
                        Button("Save", id="save-btn"),
                        Button("Reload", id="reload-btn"),
                        Button("Run now", id="run-btn", variant="primary"),
                        Button("Open folder", id="open-btn"),
                        id="header-actions",
                    )

        with Container(id="tabs-bar"):
            with Center(id="tabs-center"):
                yield Tabs(
                    Tab("Sites", id="sites"),
                    Tab("Settings", id="settings"),
                    id="tabs",
                )

        with ContentSwitcher(id="content"):
            yield SitesTab(id="sites")
            yield SettingsTab(id="settings")
        yield Footer()

    def on_mount(self) -> None:
        self._load_config()
        self._set_active_tab("sites")

    def on_unmount(self) -> None:
        self._cancel_run.set()

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        self._set_active_tab(event.tab.id or "sites")

    def _set_active_tab(self, tab_id: str) -> None:
        switcher = self.query_one("#content", ContentSwitcher)
        switcher.current = tab_id

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-btn":
            self.action_save_config()
        elif event.button.id == "reload-btn":
            self.action_reload_config()
        elif event.button.id == "run-btn":
            self.action_run_now()
        elif event.button.id == "open-btn":
            self.action_open_folder()

    def action_save_config(self) -> None:
        self._save_config()

    def action_reload_config(self) -> None:
        if self.config_state.dirty:
            self.push_screen(reload_confirm_screen(), self._handle_reload_choice)
        else:
            self._load_config()

    def action_request_quit(self) -> None:
        if self.config_state.dirty:
            self.push_screen(unsaved_changes_screen(), self._handle_exit_choice)
        else:
            self.exit()

    def action_run_now(self) -> None:
        if self.config_state.running:
            self.notify("A backup cycle is already running.", severity="warning")
            return
        if self.config_state.dirty:
            self.notify("Unsaved changes are not used; the saved config runs.", severity="warning")
        self.config_state.running = True
        self._refresh_header()
        self._run_cycle()

    def action_open_folder(self) -> None:
        folder = str((self.config_state.data or {}).get("backup_folder", "")).strip()
        if not folder:
            self.notify("backup_folder is empty.", severity="error")
            return
        try:
            opened = open_folder(folder)
        except OSError as exc:
            self.notify(f"Cannot open {folder}: {exc.strerror or exc}", severity="error")
            return
        if not opened:
            self.notify(f"No file browser available. Folder: {folder}", severity="warning")

    @work(thread=True, exclusive=True, group="backup")
    def _run_cycle(self) -> None:
        try:
            snapshot = self.store.load_or_create_default()
            report = run_backup_once(snapshot, cancel=self._cancel_run)
        except ConfigError as exc:
            self.call_from_thread(self._finish_run, f"config error: {exc}", "error")
            return
        except Exception as exc:
            self.call_from_thread(self._finish_run, f"Backup aborted: {type(exc).__name__}: {exc}", "error")
            return
        severity = "error" if report.failed else "information"
        self.call_from_thread(self._finish_run, f"Backup finished: {report.summary()}", severity)

    def _finish_run(self, message: str, severity: str) -> None:
        self.config_state.running = False
        self._refresh_header()
        self.notify(message, severity=severity, timeout=8)

    def _handle_exit_choice(self, choice: Optional[str]) -> None:
        if choice == "save":
            if self._save_config():
                self.exit()
        elif choice == "discard":
            self.exit()

    def _handle_reload_choice(self, choice: Optional[str]) -> None:
        if choice == "save":
            if self._save_config():
                self._load_config()
        elif choice == "reload":
            self._load_config()

    def _load_config(self) -> None:
        try:
            self.config_state.data = self.store.load_document()
            self.config_state.error = None
        except ConfigError as exc:
            self.config_state.data = None
            self.config_state.error = str(exc)
        except OSError as exc:
            self.config_state.data = None
            self.config_state.error = f"cannot create {self.store.path}: {exc.strerror or exc}"
        self.config_state.dirty = False
        self._refresh_header()
        self._refresh_tabs()

    def _save_config(self) -> bool:
        if self.config_state.data is None:
            self.config_state.error = "Nothing to save"
            self._refresh_header()
            return False
        try:
            self.store.save_document(self.config_state.data)
        except ConfigError as exc:
            self.notify(str(exc), severity="error")
            return False
        except OSError as exc:
            self.config_state.error = f"save failed: {exc.strerror or exc}"
            self._refresh_header()
            return False
        self.config_state.dirty = False
        self.config_state.error = None
        self._refresh_header()
        return True

    def mark_dirty(self) -> None:
        self.config_state.dirty = True
        self._refresh_header()

    def _refresh_header(self) -> None:
        status = self.query_one("#header-status", Static)
        run_status = self.query_one("#run-status", Static)
        save_btn = self.query_one("#save-btn", Button)
        run_btn = self.query_one("#run-btn", Button)

        status.remove_class("status-loaded", "status-modified", "status-error")
        if self.config_state.error:
            status.update(f"config: {self.config_state.error}")
            status.add_class("status-error")
        elif self.config_state.dirty:
            status.update("config: modified *")
            status.add_class("status-modified")
        else:
            status.update("config: loaded")
            status.add_class("status-loaded")

        run_status.update("backup: running..." if self.config_state.running else "")
        save_btn.disabled = self.config_state.data is None or not self.config_state.dirty
        run_btn.disabled = self.config_state.running

    def _refresh_tabs(self) -> None:
        for tab_type in (SitesTab, SettingsTab):
            try:
                tab = self.query_one(tab_type)
            except Exception:
                continue
            tab.reload_from_config()

    def update_config_section(self, section: str, value: Any) -> None:
        """Update a config section in memory and mark dirty."""
        if self.config_state.data is None:
            self.config_state.data = {}
        self.config_state.data[section] = value
        self.mark_dirty()

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("HTTP", ACCENT),
            ("BACKUP > Config Panel", "bold"),
        )
