from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import ContentSwitcher, Digits, Footer, ProgressBar, Static

from grindstone.core.app_state import AppState, NotificationLevel, View
from grindstone.core.config import TICK_RATE
from grindstone.ui import render
from grindstone.ui.modals import DetailScreen, SessionInputScreen, SettingsScreen
from grindstone.ui.styles import APP_CSS


LOGGER = logging.getLogger(__name__)

VIEW_IDS = {
    View.TIMER: "timer-view",
    View.HISTORY: "history-view",
    View.STATS: "stats-view",
}


class MainScreen(Screen):
    """Timer, history and stats views. Every key action first clears the
    pending notification, then may raise a new one.
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("escape", "quit", "Quit", show=False),
        Binding("tab", "show_view('timer')", "Timer", priority=True),
        Binding("h", "show_view('history')", "History"),
        Binding("t", "show_view('stats')", "Stats"),
        Binding("s", "primary", "Start/Skip", show=False),
        Binding("p", "pause", "Pause", show=False),
        Binding("r", "reset", "Reset", show=False),
        Binding("x", "stop", "Stop", show=False),
        Binding("n", "new_session", "New", show=False),
        Binding("c", "settings", "Settings", show=False),
        Binding("j,down", "cursor(1)", "Down", show=False),
        Binding("k,up", "cursor(-1)", "Up", show=False),
        Binding("d", "delete", "Delete", show=False),
        Binding("enter", "details", "Details", show=False),
        Binding("right,l", "period(1)", "Next period", show=False),
        Binding("left", "period(-1)", "Prev period", show=False),
        Binding("v", "toggle_chart", "Chart", show=False),
    ]

    def __init__(self, state: AppState) -> None:
        super().__init__()
        self.state = state

    def compose(self) -> ComposeResult:
        yield Static("GRINDSTONE", id="title")
        with ContentSwitcher(initial=VIEW_IDS[View.TIMER], id="views"):
            with Vertical(id="timer-view"):
                yield Digits("00:00", id="clock")
                yield ProgressBar(total=100, show_eta=False, show_percentage=False, id="progress")
                yield Static("", id="phase")
                yield Static("", id="session-info")
                yield Static("", id="controls")
            yield Static("", id="history-view")
            yield Static("", id="stats-view")
        yield Static("", id="notification")
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_view()

    def refresh_view(self) -> None:
        state = self.state
        self.query_one("#views", ContentSwitcher).current = VIEW_IDS[state.view]
        if state.view is View.TIMER:
            self._refresh_timer()
        elif state.view is View.HISTORY:
            self.query_one("#history-view", Static).update(
                render.history_text(state, state.data.history_index)
            )
        else:
            self.query_one("#stats-view", Static).update(render.stats_text(state))
        self._refresh_notification()

    def _refresh_timer(self) -> None:
        state = self.state
        snapshot = state.timer.snapshot()
        clock = self.query_one("#clock", Digits)
        clock.update(render.format_clock(snapshot.remaining_seconds))
        clock.set_classes(snapshot.phase.value)
        self.query_one("#progress", ProgressBar).update(total=100, progress=snapshot.progress * 100)
        self.query_one("#phase", Static).update(render.phase_line(snapshot))
        self.query_one("#session-info", Static).update(render.session_line(state))
        self.query_one("#controls", Static).update(render.timer_controls(state))

    def _refresh_notification(self) -> None:
        widget = self.query_one("#notification", Static)
        notification = self.state.notification
        widget.remove_class("warning", "error")
        if notification is None:
            widget.update("")
            return
        widget.update(notification.message)
        widget.add_class("error" if notification.level is NotificationLevel.ERROR else "warning")

    def action_quit(self) -> None:
        self.app.exit()

    def action_show_view(self, view: str) -> None:
        self.state.clear_notification()
        self.state.set_view(View(view))
        self.refresh_view()

    def action_primary(self) -> None:
        self.state.clear_notification()
        if self.state.view is View.TIMER:
            self.state.primary_action()
            self.refresh_view()

    def action_pause(self) -> None:
        self.state.clear_notification()
        if self.state.view is View.TIMER:
            self.state.pause()
            self.refresh_view()

    def action_reset(self) -> None:
        self.state.clear_notification()
        if self.state.view is View.TIMER:
            self.state.reset()
            self.refresh_view()

    def action_stop(self) -> None:
        self.state.clear_notification()
        if self.state.view is View.TIMER:
            self.state.stop_session()
            self.refresh_view()

    def action_new_session(self) -> None:
        self.state.clear_notification()
        if self.state.view is View.TIMER:
            self.app.push_screen(SessionInputScreen(self.state), self._after_modal)

    def action_settings(self) -> None:
        self.state.clear_notification()
        if self.state.view is View.TIMER:
            self.state.begin_settings_edit()
            self.app.push_screen(SettingsScreen(self.state), self._after_settings)

    def action_cursor(self, delta: int) -> None:
        self.state.clear_notification()
        if self.state.view is View.HISTORY:
            self.state.move_history_cursor(delta)
            self.refresh_view()

    def action_delete(self) -> None:
        self.state.clear_notification()
        if self.state.view is View.HISTORY:
            self.state.delete_selected_session()
            self.refresh_view()

    def action_details(self) -> None:
        self.state.clear_notification()
        if self.state.view is not View.HISTORY:
            return
        session = self.state.selected_session()
        if session is not None:
            self.app.push_screen(DetailScreen(self.state, session))

    def action_period(self, delta: int) -> None:
        self.state.clear_notification()
        if self.state.view is not View.STATS:
            return
        if delta > 0:
            self.state.next_stats_period()
        else:
            self.state.prev_stats_period()
        self.refresh_view()

    def action_toggle_chart(self) -> None:
        self.state.clear_notification()
        if self.state.view is View.STATS:
            self.state.toggle_chart()
            self.refresh_view()

    def _after_modal(self, _result: bool | None) -> None:
        self.refresh_view()

    def _after_settings(self, _result: bool | None) -> None:
        self.state.cancel_settings_edit()
        self.state.refresh_categories()
        self.refresh_view()


class GrindstoneApp(App):
    TITLE = "grindstone"
    CSS = APP_CSS

    def __init__(self, state: AppState) -> None:
        super().__init__()
        self.state = state
        self.main_screen = MainScreen(state)

    def get_default_screen(self) -> Screen:
        return self.main_screen

    def on_mount(self) -> None:
        self.set_interval(TICK_RATE, self.tick)

    def tick(self) -> None:
        completed = self.state.handle_tick()
        if completed is not None:
            LOGGER.info("Phase finished: %s", completed.value)
            self.bell()
            if self.state.view is not View.TIMER:
                self.state.refresh_data()
        self.main_screen.refresh_view()
