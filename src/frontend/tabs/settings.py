"""Settings tab implementation."""

from __future__ import annotations

from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, ScrollableContainer, Vertical
from textual.widgets import ContentSwitcher, DataTable, Input, Select, Static, Switch

import settings as app_settings

from ..constants import LOG_LEVELS
from ..validators import parse_interval


class SettingsTab(Container):
    """Settings tab for the schedule, backup folder, and logging."""

    SECTION_LABELS = [
        ("general", "General", "Interval and backup folder"),
        ("logging", "Logging", "Console/file logging"),
    ]

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._loading_form = False
        self._current_section: Optional[str] = None

    def compose(self):
        with Vertical(id="settings-panel"):
            with Horizontal(id="settings-body"):
                with Container(id="settings-left"):
                    yield DataTable(id="settings-table", cursor_type="row")
                with Container(id="settings-right"):
                    with ContentSwitcher(id="settings-forms"):
                        with Container(id="settings-general"):
                            yield Static("General", classes="settings-title")
                            yield Static("interval_minutes", classes="form-label")
                            yield Input(placeholder="60", id="general-interval")
                            yield Static("backup_folder", classes="form-label")
                            yield Input(placeholder=app_settings.DEFAULT_BACKUP_FOLDER, id="general-folder")
                            yield Static("", id="general-error", classes="settings-error")

                        with ScrollableContainer(id="settings-logging"):
                            yield Static("Logging", classes="settings-title")
                            yield Static("enabled", classes="form-label")
                            yield Switch(id="logging-enabled")
                            yield Static("level", classes="form-label")
                            yield Select(
                                [(level, level) for level in LOG_LEVELS],
                                id="logging-level",
                                allow_blank=False,
                            )
                            yield Static("console", classes="form-label")
                            yield Switch(id="logging-console")
                            yield Static("file.enabled", classes="form-label")
                            yield Switch(id="logging-file-enabled")
                            yield Static("file.path", classes="form-label")
                            yield Input(placeholder=app_settings.DEFAULT_LOG_PATH, id="logging-file-path")
                            yield Static("file.max_bytes", classes="form-label")
                            yield Input(placeholder="5242880", id="logging-file-max-bytes")
                            yield Static("file.backup_count", classes="form-label")
                            yield Input(placeholder="5", id="logging-file-backup")
                            yield Static("", id="logging-error", classes="settings-error")

    def on_mount(self) -> None:
        table = self.query_one("#settings-table", DataTable)
        table.add_column("section", key="section", width=14)
        table.add_column("description", key="description", width=30)
        for key, label, description in self.SECTION_LABELS:
            table.add_row(label, description, key=key)
        table.zebra_stripes = True
        self._select_section("general")
        self.reload_from_config()

    def reload_from_config(self) -> None:
        # Setting widget values posts Changed messages after this returns;
        # prevent them so a reload does not mark the config dirty.
        self._loading_form = True
        with self.prevent(Input.Changed, Switch.Changed, Select.Changed):
            self._load_general()
            self._load_logging()
        self._loading_form = False

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._select_section(self._coerce_row_key(event.row_key))

    def _select_section(self, section_id: str) -> None:
        self._current_section = section_id
        switcher = self.query_one("#settings-forms", ContentSwitcher)
        switcher.current = f"settings-{section_id}"

    def _data(self) -> dict[str, Any]:
        return self.app.config_state.data or {}

    def _get_section(self, key: str) -> dict[str, Any]:
        section = self._data().get(key)
        if isinstance(section, dict):
            return section
        return {}

    def _load_general(self) -> None:
        data = self._data()
        interval = data.get("interval_minutes", app_settings.DEFAULT_INTERVAL_MINUTES)
        folder = data.get("backup_folder", "")
        self.query_one("#general-interval", Input).value = str(interval)
        self.query_one("#general-folder", Input).value = str(folder or "")
        self._set_error("general-error", "")

    def _load_logging(self) -> None:
        logging = self._get_section("logging")
        file_cfg = self._get_subdict(logging, "file")
        level = str(logging.get("level", "INFO")).upper()
        file_enabled = bool(file_cfg.get("enabled", False))

        self.query_one("#logging-enabled", Switch).value = bool(logging.get("enabled", True))
        select = self.query_one("#logging-level", Select)
        if level in LOG_LEVELS:
            select.value = level
            self._set_error("logging-error", "")
        else:
            select.value = "INFO"
            self._set_error("logging-error", f"Invalid level: {level}")
        self.query_one("#logging-console", Switch).value = bool(logging.get("console", True))
        self.query_one("#logging-file-enabled", Switch).value = file_enabled
        self.query_one("#logging-file-path", Input).value = str(
            file_cfg.get("path", app_settings.DEFAULT_LOG_PATH)
        )
        self.query_one("#logging-file-max-bytes", Input).value = str(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        self.query_one("#logging-file-backup", Input).value = str(file_cfg.get("backup_count", 5))
        self._apply_logging_state(file_enabled)

    def _set_error(self, error_id: str, message: str) -> None:
        self.query_one(f"#{error_id}", Static).update(message)

    def _apply_logging_state(self, file_enabled: bool) -> None:
        self.query_one("#logging-file-path", Input).disabled = not file_enabled
        self.query_one("#logging-file-max-bytes", Input).disabled = not file_enabled
        self.query_one("#logging-file-backup", Input).disabled = not file_enabled

    @on(Input.Changed, "#general-interval")
    def _on_interval_changed(self, event: Input.Changed) -> None:
        if self._loading_form:
            return
        minutes, error = parse_interval(event.value)
        self._set_error("general-error", error or "")
        if minutes is not None:
            self.app.update_config_section("interval_minutes", minutes)

    @on(Input.Changed, "#general-folder")
    def _on_folder_changed(self, event: Input.Changed) -> None:
        if self._loading_form:
            return
        folder = event.value.strip()
        self._set_error("general-error", "" if folder else "backup_folder is required")
        self.app.update_config_section("backup_folder", folder)

    @on(Switch.Changed, "#logging-enabled")
    def _on_logging_enabled(self, event: Switch.Changed) -> None:
        self._update_logging("enabled", bool(event.value))

    @on(Select.Changed, "#logging-level")
    def _on_logging_level(self, event: Select.Changed) -> None:
        if event.value is Select.BLANK:
            return
        self._update_logging("level", event.value)

    @on(Switch.Changed, "#logging-console")
    def _on_logging_console(self, event: Switch.Changed) -> None:
        self._update_logging("console", bool(event.value))

    @on(Switch.Changed, "#logging-file-enabled")
    def _on_logging_file_enabled(self, event: Switch.Changed) -> None:
        self._update_logging_file("enabled", bool(event.value))
        self._apply_logging_state(bool(event.value))

    @on(Input.Changed, "#logging-file-path")
    def _on_logging_file_path(self, event: Input.Changed) -> None:
        self._update_logging_file("path", event.value)

    @on(Input.Changed, "#logging-file-max-bytes")
    def _on_logging_file_max(self, event: Input.Changed) -> None:
        parsed = self._parse_int(event.value)
        if parsed is not None:
            self._update_logging_file("max_bytes", parsed)

    @on(Input.Changed, "#logging-file-backup")
    def _on_logging_file_backup(self, event: Input.Changed) -> None:
        parsed = self._parse_int(event.value)
        if parsed is not None:
            self._update_logging_file("backup_count", parsed)

    def _update_logging(self, key: str, value: Any) -> None:
        if self._loading_form:
            return
        logging = self._get_section("logging")
        logging[key] = value
        self.app.update_config_section("logging", logging)

    def _update_logging_file(self, key: str, value: Any) -> None:
        if self._loading_form:
            return
        logging = self._get_section("logging")
        file_cfg = self._get_subdict(logging, "file")
        file_cfg[key] = value
        logging["file"] = file_cfg
        self.app.update_config_section("logging", logging)

    def _parse_int(self, value: str) -> Optional[int]:
        if self._loading_form:
            return None
        stripped = value.strip()
        if not stripped:
            self._set_error("logging-error", "")
            return None
        if not stripped.isdigit():
            self._set_error("logging-error", "Enter a non-negative integer")
            return None
        self._set_error("logging-error", "")
        return int(stripped)

    @staticmethod
    def _coerce_row_key(value: Any) -> str:
        if hasattr(value, "value"):
            return str(value.value)
        return str(value)

    @staticmethod
    def _get_subdict(parent: dict[str, Any], key: str) -> dict[str, Any]:
        value = parent.get(key)
        if isinstance(value, dict):
            return value
        return {}
