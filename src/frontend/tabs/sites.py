"""Sites tab implementation."""

from __future__ import annotations

from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Static, Switch

from core.naming import sanitize

from ..modals import SiteFormScreen, delete_site_screen


class SitesTab(Container):
    """Sites tab for editing config.sites.

    Row order is processing order, so the tab offers move up/down alongside
    add, edit, and delete.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._loading_form = False
        self._current_row_key: Optional[str] = None
        self._table_ready = False

    def compose(self):
        with Vertical(id="sites-panel"):
            with Horizontal(id="sites-body"):
                with Container(id="sites-left"):
                    yield DataTable(id="sites-table", cursor_type="row")
                with Container(id="sites-right"):
                    yield Static("Site details", id="sites-title")
                    yield Static("name", classes="form-label")
                    yield Static("", id="site-name")
                    yield Static("url", classes="form-label")
                    yield Static("", id="site-url")
                    yield Static("archive folder", classes="form-label")
                    yield Static("", id="site-folder")
                    yield Static("enabled", classes="form-label")
                    yield Switch(value=False, id="site-enabled-toggle")
            with Horizontal(id="sites-actions"):
                yield Button("Add", id="add-site", variant="success")
                yield Button("Edit", id="edit-site")
                yield Button("Up", id="move-site-up")
                yield Button("Down", id="move-site-down")
                yield Button("Delete", id="delete-site", variant="error")

    def on_mount(self) -> None:
        table = self.query_one("#sites-table", DataTable)
        table.add_column("enabled", key="enabled", width=8)
        table.add_column("name", key="name", width=20)
        table.add_column("url", key="url", width=44)
        table.zebra_stripes = True
        self._table_ready = True
        self.reload_from_config()
        self._set_form_state(None)

    def reload_from_config(self) -> None:
        if not self._table_ready:
            return
        table = self.query_one("#sites-table", DataTable)
        table.clear()
        for index, site in enumerate(self._get_sites()):
            table.add_row(
                "yes" if site.get("enabled", True) else "no",
                str(site.get("name", "")),
                str(site.get("url", "")),
                key=str(index),
            )
        if self._current_index() is not None and self._current_index() >= len(self._get_sites()):
            self._current_row_key = None
        self._set_form_state(self._current_row_key)
        self._update_action_state()

    def _get_sites(self) -> list[dict[str, Any]]:
        return self.app.config_state.sites()

    def _set_sites(self, sites: list[dict[str, Any]]) -> None:
        self.app.update_config_section("sites", sites)

    def _update_action_state(self) -> None:
        index = self._current_index()
        count = len(self._get_sites())
        self.query_one("#edit-site", Button).disabled = index is None
        self.query_one("#delete-site", Button).disabled = index is None
        self.query_one("#move-site-up", Button).disabled = index is None or index == 0
        self.query_one("#move-site-down", Button).disabled = index is None or index >= count - 1

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None:
            return
        self._current_row_key = self._coerce_row_key(event.row_key)
        self._set_form_state(self._current_row_key)
        self._update_action_state()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._current_row_key = self._coerce_row_key(event.row_key)
        self._on_edit_site()

    @on(Switch.Changed, "#site-enabled-toggle")
    def _on_enabled_changed(self, event: Switch.Changed) -> None:
        if self._loading_form:
            return
        index = self._current_index()
        sites = self._get_sites()
        if index is None or index >= len(sites):
            return
        sites[index]["enabled"] = bool(event.value)
        self._set_sites(sites)
        self._update_table_cell(index, "enabled", "yes" if event.value else "no")

    @on(Button.Pressed, "#add-site")
    def _on_add_site(self) -> None:
        self.app.push_screen(SiteFormScreen(), self._handle_add_site)

    @on(Button.Pressed, "#edit-site")
    def _on_edit_site(self) -> None:
        index = self._current_index()
        sites = self._get_sites()
        if index is None or index >= len(sites):
            return
        self.app.push_screen(SiteFormScreen(sites[index]), self._handle_edit_site)

    @on(Button.Pressed, "#delete-site")
    def _on_delete_site(self) -> None:
        index = self._current_index()
        sites = self._get_sites()
        if index is None or index >= len(sites):
            return
        name = str(sites[index].get("name", ""))
        self.app.push_screen(delete_site_screen(name), self._handle_delete_site)

    @on(Button.Pressed, "#move-site-up")
    def _on_move_up(self) -> None:
        self._move_current(-1)

    @on(Button.Pressed, "#move-site-down")
    def _on_move_down(self) -> None:
        self._move_current(1)

    def _move_current(self, offset: int) -> None:
        index = self._current_index()
        sites = self._get_sites()
        if index is None:
            return
        target = index + offset
        if target < 0 or target >= len(sites):
            return
        sites[index], sites[target] = sites[target], sites[index]
        self._set_sites(sites)
        self._current_row_key = str(target)
        self.reload_from_config()
        self.query_one("#sites-table", DataTable).move_cursor(row=target)

    def _handle_add_site(self, payload: dict[str, Any] | None) -> None:
        if not payload:
            return
        sites = self._get_sites()
        sites.append(payload)
        self._set_sites(sites)
        self._current_row_key = str(len(sites) - 1)
        self.reload_from_config()

    def _handle_edit_site(self, payload: dict[str, Any] | None) -> None:
        index = self._current_index()
        sites = self._get_sites()
        if not payload or index is None or index >= len(sites):
            return
        sites[index].update(payload)
        self._set_sites(sites)
        self.reload_from_config()

    def _handle_delete_site(self, choice: str | None) -> None:
        if choice != "delete":
            return
        index = self._current_index()
        sites = self._get_sites()
        if index is None or index >= len(sites):
            return
        sites.pop(index)
        self._set_sites(sites)
        self._current_row_key = None
        self.reload_from_config()

    def _update_table_cell(self, index: int, column_key: str, value: Any) -> None:
        table = self.query_one("#sites-table", DataTable)
        try:
            table.update_cell(str(index), column_key, value)
        except Exception:
            self.reload_from_config()

    def _set_form_state(self, row_key: Optional[str]) -> None:
        self._loading_form = True
        enabled_toggle = self.query_one("#site-enabled-toggle", Switch)
        name_display = self.query_one("#site-name", Static)
        url_display = self.query_one("#site-url", Static)
        folder_display = self.query_one("#site-folder", Static)
        sites = self._get_sites()
        index = None if row_key is None else int(row_key)
        with self.prevent(Switch.Changed):
            enabled_toggle.value = bool(index is not None and index < len(sites) and sites[index].get("enabled", True))
        if index is None or index >= len(sites):
            enabled_toggle.disabled = True
            name_display.update("")
            url_display.update("")
            folder_display.update("")
        else:
            site = sites[index]
            name = str(site.get("name", "")).strip()
            enabled_toggle.disabled = False
            name_display.update(name)
            url_display.update(str(site.get("url", "")))
            folder_display.update(sanitize(name) if name else "")
        self._loading_form = False

    def _current_index(self) -> Optional[int]:
        if self._current_row_key is None:
            return None
        try:
            return int(self._current_row_key)
        except ValueError:
            return None

    @staticmethod
    def _coerce_row_key(value: Any) -> str:
        if hasattr(value, "value"):
            return str(value.value)
        return str(value)
