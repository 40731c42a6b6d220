from __future__ import annotations

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, ListItem, ListView, Select, Static, TabbedContent, TabPane

from grindstone.core.app_state import AppState, SettingsField
from grindstone.data.models import (
    DEFAULT_CATEGORY_COLOR,
    MAX_CATEGORY_NAME,
    MAX_DESCRIPTION,
    MAX_SESSION_NAME,
    Session,
)


SETTINGS_LABELS = {
    SettingsField.WORK_DURATION: "Work duration (min)",
    SettingsField.SHORT_BREAK: "Short break (min)",
    SettingsField.LONG_BREAK: "Long break (min)",
    SettingsField.SESSIONS_UNTIL_LONG: "Sessions until long break",
}


class _StateModal(ModalScreen[bool]):
    """Modal bound to the app state; validation messages show inside it."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, state: AppState) -> None:
        super().__init__()
        self.state = state

    def action_cancel(self) -> None:
        self.dismiss(False)

    def _show_error(self) -> None:
        notification = self.state.notification
        self.query_one(".modal-error", Static).update(notification.message if notification else "")
        self.state.clear_notification()


class SessionInputScreen(_StateModal):
    def compose(self) -> ComposeResult:
        options = [(category.name, index) for index, category in enumerate(self.state.data.categories)]
        with Vertical(classes="modal"):
            yield Label("New Session", classes="modal-title")
            yield Input(placeholder="Name", id="name", max_length=MAX_SESSION_NAME)
            yield Input(placeholder="Description (optional)", id="description", max_length=MAX_DESCRIPTION)
            yield Select(options, value=0, allow_blank=False, id="category")
            yield Static("", classes="modal-error")
            yield Label("[Enter] Start  [Tab] Next field  [Esc] Cancel", classes="modal-hint")

    def on_mount(self) -> None:
        self.query_one("#name", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.submit()

    def submit(self) -> None:
        name = self.query_one("#name", Input).value
        description = self.query_one("#description", Input).value
        category_index = self.query_one("#category", Select).value
        if self.state.create_session(name, description, int(category_index)):
            self.dismiss(True)
        else:
            self._show_error()


class SettingsScreen(_StateModal):
    def __init__(self, state: AppState) -> None:
        super().__init__(state)
        self.editing_category_id: int | None = None

    def compose(self) -> ComposeResult:
        with Vertical(classes="modal"):
            yield Label("Settings", classes="modal-title")
            with TabbedContent(initial="timer-tab"):
                with TabPane("Timer", id="timer-tab"):
                    for setting, label in SETTINGS_LABELS.items():
                        with Horizontal(classes="form-row"):
                            yield Label(label)
                            yield Input(
                                value=self.state.settings_value(setting),
                                type="integer",
                                id=f"setting-{setting.value}",
                            )
                    with Horizontal(classes="button-row"):
                        yield Button("Save", variant="primary", id="save-settings")
                with TabPane("Categories", id="categories-tab"):
                    yield ListView(*self._category_items(), id="category-list")
                    with Horizontal(classes="form-row"):
                        yield Label("Name")
                        yield Input(placeholder="Category name", id="category-name", max_length=MAX_CATEGORY_NAME)
                    with Horizontal(classes="form-row"):
                        yield Label("Color")
                        yield Input(value=DEFAULT_CATEGORY_COLOR, id="category-color", max_length=7)
                    with Horizontal(classes="button-row"):
                        yield Button("New", id="new-category")
                        yield Button("Save", variant="primary", id="save-category")
                        yield Button("Delete", variant="error", id="delete-category")
            yield Static("", classes="modal-error")
            yield Label("[Enter] Save  [Esc] Close", classes="modal-hint")

    def _category_items(self) -> list[ListItem]:
        return [
            ListItem(Label(f"[{category.color}]■[/] {escape(category.name)}"))
            for category in self.state.data.categories
        ]

    def _reload_categories(self) -> None:
        list_view = self.query_one("#category-list", ListView)
        list_view.clear()
        list_view.extend(self._category_items())

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        if event.input.id and event.input.id.startswith("setting-"):
            self.save_timer_settings()
        else:
            self.save_category()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "save-settings":
            self.save_timer_settings()
        elif event.button.id == "new-category":
            self.new_category()
        elif event.button.id == "save-category":
            self.save_category()
        elif event.button.id == "delete-category":
            self.delete_category()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        index = event.list_view.index
        if index is None or not 0 <= index < len(self.state.data.categories):
            return
        category = self.state.data.categories[index]
        self.editing_category_id = category.id
        self.query_one("#category-name", Input).value = category.name
        self.query_one("#category-color", Input).value = category.color

    def save_timer_settings(self) -> None:
        values = {
            setting: self.query_one(f"#setting-{setting.value}", Input).value
            for setting in SETTINGS_LABELS
        }
        if self.state.submit_settings(values):
            self.dismiss(True)
        else:
            self.state.cancel_settings_edit()
            self._show_error()

    def new_category(self) -> None:
        self.editing_category_id = None
        self.query_one("#category-name", Input).value = ""
        self.query_one("#category-color", Input).value = DEFAULT_CATEGORY_COLOR
        self.query_one("#category-name", Input).focus()

    def save_category(self) -> None:
        name = self.query_one("#category-name", Input).value
        color = self.query_one("#category-color", Input).value
        if self.state.save_category(name, color, self.editing_category_id):
            self.editing_category_id = None
            self._reload_categories()
        self._show_error()

    def delete_category(self) -> None:
        index = self.query_one("#category-list", ListView).index
        if index is not None and self.state.delete_category(index):
            self.editing_category_id = None
            self._reload_categories()
        self._show_error()


class DetailScreen(_StateModal):
    BINDINGS = [
        Binding("escape", "cancel", "Close"),
        Binding("enter", "cancel", "Close", show=False),
        Binding("q", "cancel", "Close", show=False),
    ]

    def __init__(self, state: AppState, session: Session) -> None:
        super().__init__(state)
        self.session = session

    def compose(self) -> ComposeResult:
        session = self.session
        with Vertical(classes="modal"):
            yield Label("Session Details", classes="modal-title")
            yield Static(f"[b]Name:[/b] {escape(session.name)}")
            yield Static(f"[b]Category:[/b] {escape(session.category)}")
            yield Static(f"[b]Description:[/b] {escape(session.description or '-')}")
            yield Static(f"[b]Started:[/b] {session.start_datetime():%Y-%m-%d %H:%M}")
            yield Static(f"[b]Ended:[/b] {session.end_datetime():%Y-%m-%d %H:%M}")
            yield Static(f"[b]Duration:[/b] {session.format_duration()}")
            yield Label("[Esc] Close", classes="modal-hint")
