"""Modal dialogs for the Textual config panel."""

from __future__ import annotations

from typing import Any, Optional

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static, Switch

from .constants import DEFAULT_SITE
from .validators import check_site_name, check_site_url


class ChoiceScreen(ModalScreen[str]):
    """Ask a question and dismiss with the id of the chosen action.

    ``choices`` is a list of ``(result, label, variant)``; pressing Escape or
    any unlisted button dismisses with ``"cancel"``.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, title: str, body: str, choices: list[tuple[str, str, str]]) -> None:
        super().__init__()
        self._title = title
        self._body = body
        self._choices = choices

    def compose(self) -> ComposeResult:
        buttons = [
            Button(label, id=f"choice-{result}", variant=variant)
            for result, label, variant in self._choices
        ]
        buttons.append(Button("Cancel", id="choice-cancel"))
        yield Container(
            Static(self._title, classes="modal-title"),
            Static(self._body, classes="modal-body"),
            Horizontal(*buttons, classes="modal-actions"),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        self.dismiss(button_id.removeprefix("choice-") or "cancel")

    def action_cancel(self) -> None:
        self.dismiss("cancel")


def unsaved_changes_screen() -> ChoiceScreen:
    return ChoiceScreen(
        "Unsaved changes",
        "Save changes before exit?",
        [("save", "Save", "success"), ("discard", "Discard", "error")],
    )


def reload_confirm_screen() -> ChoiceScreen:
    return ChoiceScreen(
        "Reload config?",
        "Unsaved changes will be lost.",
        [("save", "Save", "default"), ("reload", "Reload", "warning")],
    )


def delete_site_screen(site_name: str) -> ChoiceScreen:
    return ChoiceScreen(
        "Delete site?",
        site_name or "(unnamed site)",
        [("delete", "Delete", "error")],
    )


class SiteFormScreen(ModalScreen[Optional[dict[str, Any]]]):
    """Add or edit one site; dismisses with the site payload or None."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, site: Optional[dict[str, Any]] = None) -> None:
        super().__init__()
        self._editing = site is not None
        self._site = dict(site or DEFAULT_SITE)

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Edit site" if self._editing else "Add site", classes="modal-title"),
            Static("", id="site-form-error", classes="modal-error"),
            Static("name (folder + file prefix)", classes="form-label"),
            Input(value=str(self._site.get("name", "")), placeholder="my-site", id="site-form-name"),
            Static("", id="site-form-hint", classes="subtle"),
            Static("url", classes="form-label"),
            Input(
                value=str(self._site.get("url", "")),
                placeholder="https://example.com/backup.zip",
                id="site-form-url",
            ),
            Static("enabled", classes="form-label"),
            Switch(value=bool(self._site.get("enabled", True)), id="site-form-enabled"),
            Horizontal(
                Button("Save" if self._editing else "Add", id="site-form-confirm", variant="success"),
                Button("Cancel", id="site-form-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--form",
        )

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "site-form-name":
            self.query_one("#site-form-hint", Static).update(check_site_name(event.value).hint)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "site-form-cancel":
            self.dismiss(None)
            return
        if event.button.id != "site-form-confirm":
            return
        error = self.query_one("#site-form-error", Static)
        name = check_site_name(self.query_one("#site-form-name", Input).value)
        if name.error:
            error.update(name.error)
            return
        url = check_site_url(self.query_one("#site-form-url", Input).value)
        if url.error:
            error.update(url.error)
            return
        enabled = self.query_one("#site-form-enabled", Switch).value
        self.dismiss({"enabled": bool(enabled), "name": name.normalized, "url": url.normalized})

    def action_cancel(self) -> None:
        self.dismiss(None)
