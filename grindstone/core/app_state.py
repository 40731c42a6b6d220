from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, time, timedelta
from enum import Enum

from grindstone.core.clock import Clock, SystemClock
from grindstone.core.config import HISTORY_WINDOW_SEC
from grindstone.core.session import SessionLifecycle
from grindstone.core.timer import PomodoroTimer, TimerPhase
from grindstone.core.validation import (
    validate_hex_color,
    validate_new_category_name,
    validate_session_name,
    validate_update_category_name,
)
from grindstone.data.models import (
    MAX_CATEGORY_NAME,
    MAX_DESCRIPTION,
    MAX_SESSION_NAME,
    Category,
    CategoryStat,
    Session,
    TimerConfig,
    bounded,
)
from grindstone.data.storage import SessionStore, StorageError


LOGGER = logging.getLogger(__name__)


class View(str, Enum):
    TIMER = "timer"
    HISTORY = "history"
    STATS = "stats"


class StatsPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def time_range(self, clock: Clock) -> tuple[int, int]:
        """Local start of the period up to now, as Unix timestamps."""
        now = clock.now_datetime()
        today = now.date()
        if self is StatsPeriod.DAY:
            start_date = today
        elif self is StatsPeriod.WEEK:
            start_date = today - timedelta(days=today.weekday())
        elif self is StatsPeriod.MONTH:
            start_date = today.replace(day=1)
        else:
            start_date = today.replace(month=1, day=1)
        # Local midnight of that day, with the UTC offset in force then.
        start = datetime.combine(start_date, time()).astimezone()
        return int(start.timestamp()), int(now.timestamp())

    def next(self) -> StatsPeriod:
        members = list(StatsPeriod)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> StatsPeriod:
        members = list(StatsPeriod)
        return members[(members.index(self) - 1) % len(members)]


class ChartType(str, Enum):
    BAR = "bar"
    PIE = "pie"

    def toggle(self) -> ChartType:
        return ChartType.PIE if self is ChartType.BAR else ChartType.BAR


class SettingsField(str, Enum):
    WORK_DURATION = "work_duration_secs"
    SHORT_BREAK = "short_break_secs"
    LONG_BREAK = "long_break_secs"
    SESSIONS_UNTIL_LONG = "sessions_until_long_break"

    @property
    def in_minutes(self) -> bool:
        return self is not SettingsField.SESSIONS_UNTIL_LONG


class NotificationLevel(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    message: str
    level: NotificationLevel


@dataclass
class AppData:
    categories: list[Category] = field(default_factory=Category.defaults)
    config: TimerConfig = field(default_factory=TimerConfig)
    sessions: list[Session] = field(default_factory=list)
    category_stats: list[CategoryStat] = field(default_factory=list)
    stats_period: StatsPeriod = StatsPeriod.DAY
    chart_type: ChartType = ChartType.BAR
    history_index: int = 0


class AppState:
    """Single owner of the timer, the session draft, the store and view state.

    Every storage failure is turned into a notification; the in-memory
    transition it accompanies still happens.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock: Clock = clock or SystemClock()
        self.timer = PomodoroTimer(self.clock)
        self.session = SessionLifecycle(self.clock)
        self.data = AppData()
        self.view = View.TIMER
        self.notification: Notification | None = None
        self.settings_buffer: TimerConfig | None = None
        self._storage: SessionStore | None = None

    @property
    def storage(self) -> SessionStore | None:
        return self._storage

    def load_from_storage(self, storage: SessionStore) -> None:
        self._storage = storage
        try:
            categories = storage.get_categories()
            if categories:
                self.data.categories = categories
            config = storage.get_config()
        except StorageError as exc:
            LOGGER.warning("Could not load stored data: %s", exc)
            self.notify(NotificationLevel.WARNING, "Could not load saved data")
            return
        self.data.config = config
        self.timer.apply_config(config)
        self.refresh_data()

    @property
    def current_session(self) -> Session | None:
        return self.session.current_session

    def notify(self, level: NotificationLevel, message: str) -> None:
        self.notification = Notification(message=message, level=level)

    def clear_notification(self) -> None:
        self.notification = None

    # Timer and session actions

    def primary_action(self) -> None:
        """Skips a break, resumes a paused timer, or starts a prepared session."""
        if self.timer.phase.is_break:
            self.timer.skip_break()
        elif self.timer.is_paused():
            self.timer.start()
        elif self.timer.is_idle() and self.session.has_session:
            self.start_timer()

    def pause(self) -> None:
        if self.timer.is_running():
            self.timer.pause()

    def reset(self) -> None:
        self.timer.reset()

    def start_timer(self) -> None:
        self.session.start()
        self.timer.start()

    def create_session(self, name: str, description: str, category_index: int) -> bool:
        """Creates a draft from the input form and starts timing it."""
        if not validate_session_name(name):
            self.notify(NotificationLevel.WARNING, "Session name cannot be empty")
            return False
        if not self.data.categories:
            self.notify(NotificationLevel.WARNING, "No categories available")
            return False
        category = self.data.categories[category_index % len(self.data.categories)]
        description = bounded(description, MAX_DESCRIPTION)
        self.session.create(
            name=bounded(name, MAX_SESSION_NAME),
            description=description or None,
            category=category.name,
        )
        self.start_timer()
        return True

    def complete_session(self) -> None:
        session = self.session.complete(int(self.timer.work_duration))
        if session is not None:
            self._persist_session(session)

    def stop_session(self) -> None:
        if not (self.timer.is_running() or self.timer.is_paused()):
            return
        session = self.session.stop_early(int(self.timer.elapsed()))
        if session is None:
            return
        self._persist_session(session)
        self.timer.reset()

    def _persist_session(self, session: Session) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save_session(session)
        except StorageError as exc:
            LOGGER.error("Failed to save session: %s", exc)
            self.notify(NotificationLevel.ERROR, "Failed to save session!")

    def handle_tick(self) -> TimerPhase | None:
        """Finishes the running phase once its time is up.

        The work session is saved before the phase advances, because saving
        reads the duration of the phase that just ended. The next phase starts
        right away. Returns the phase that completed, if any.
        """
        if not (self.timer.is_running() and self.timer.is_finished()):
            return None
        completed = self.timer.phase
        if completed is TimerPhase.WORK:
            self.complete_session()
        self.timer.advance_phase()
        self.timer.start()
        LOGGER.info("Phase %s completed, now %s", completed.value, self.timer.phase.value)
        return completed

    # Views and history

    def set_view(self, view: View) -> None:
        if view is not self.view and view in {View.HISTORY, View.STATS}:
            self.refresh_data()
        self.view = view

    def refresh_data(self) -> None:
        if self._storage is None:
            return
        now = self.clock.now_timestamp()
        start, end = self.data.stats_period.time_range(self.clock)
        try:
            # +1 so a session saved during this second is included.
            self.data.sessions = self._storage.get_sessions_in_range(now - HISTORY_WINDOW_SEC, now + 1)
            self.data.category_stats = self._storage.get_time_by_category(start, end + 1)
            self.data.history_index = min(self.data.history_index, max(0, len(self.data.sessions) - 1))
        except StorageError as exc:
            LOGGER.warning("Failed to refresh data: %s", exc)
            self.notify(NotificationLevel.WARNING, "Failed to load sessions")

    def move_history_cursor(self, delta: int) -> None:
        count = len(self.data.sessions)
        if count:
            self.data.history_index = (self.data.history_index + delta) % count

    def selected_session(self) -> Session | None:
        if 0 <= self.data.history_index < len(self.data.sessions):
            return self.data.sessions[self.data.history_index]
        return None

    def delete_selected_session(self) -> None:
        session = self.selected_session()
        if session is None or session.id is None or self._storage is None:
            return
        try:
            self._storage.delete_session(session.id)
        except StorageError as exc:
            LOGGER.warning("Failed to delete session: %s", exc)
            self.notify(NotificationLevel.WARNING, "Failed to delete session")
        self.refresh_data()

    def next_stats_period(self) -> None:
        self.data.stats_period = self.data.stats_period.next()
        self.refresh_data()

    def prev_stats_period(self) -> None:
        self.data.stats_period = self.data.stats_period.prev()
        self.refresh_data()

    def toggle_chart(self) -> None:
        self.data.chart_type = self.data.chart_type.toggle()

    # Settings

    def begin_settings_edit(self) -> TimerConfig:
        self.settings_buffer = replace(self.data.config)
        return self.settings_buffer

    def cancel_settings_edit(self) -> None:
        self.settings_buffer = None

    def settings_value(self, setting: SettingsField) -> str:
        config = self.settings_buffer or self.data.config
        value = getattr(config, setting.value)
        return str(value // 60 if setting.in_minutes else value)

    def set_setting_value(self, setting: SettingsField, text: str) -> bool:
        """Writes a typed value into the edit buffer; bad input is ignored."""
        if self.settings_buffer is None:
            self.begin_settings_edit()
        try:
            value = int(text.strip())
        except ValueError:
            return False
        if value <= 0:
            return False
        setattr(self.settings_buffer, setting.value, value * 60 if setting.in_minutes else value)
        return True

    def save_settings(self) -> bool:
        """Commits the edit buffer, applies it to the timer and stores it."""
        buffer = self.settings_buffer
        if buffer is None:
            return False
        if not buffer.is_valid():
            self.notify(NotificationLevel.WARNING, "Invalid settings: all values must be positive")
            return False
        self.data.config = replace(buffer)
        self.settings_buffer = None
        self.timer.apply_config(self.data.config)
        if self._storage is not None:
            try:
                self._storage.save_config(self.data.config)
            except StorageError as exc:
                LOGGER.warning("Failed to save config: %s", exc)
                self.notify(NotificationLevel.WARNING, "Failed to save settings")
        return True

    def submit_settings(self, values: dict[SettingsField, str]) -> bool:
        """Saves a whole settings form; any rejected field keeps the live config."""
        self.begin_settings_edit()
        rejected = [setting for setting, text in values.items() if not self.set_setting_value(setting, text)]
        if rejected:
            self.notify(NotificationLevel.WARNING, "Invalid settings: all values must be positive")
            return False
        return self.save_settings()

    # Categories

    def save_category(self, name: str, color: str, category_id: int | None = None) -> bool:
        """Creates a category, or renames/recolors the one with ``category_id``."""
        if self._storage is None:
            self.notify(NotificationLevel.WARNING, "No database connection")
            return False
        name = bounded(name, MAX_CATEGORY_NAME)
        if category_id is None:
            error = validate_new_category_name(name, self.data.categories)
        else:
            current = next((c.name for c in self.data.categories if c.id == category_id), "")
            error = validate_update_category_name(name, self.data.categories, current)
        if error is None and not validate_hex_color(color):
            error = "Color must look like #RRGGBB"
        if error is not None:
            self.notify(NotificationLevel.WARNING, error)
            return False
        try:
            if category_id is None:
                self._storage.create_category(name, color.upper())
            else:
                self._storage.update_category(category_id, name, color.upper())
        except StorageError as exc:
            LOGGER.warning("Failed to save category: %s", exc)
            self.notify(NotificationLevel.WARNING, "Failed to save category")
            return False
        self.refresh_categories()
        return True

    def delete_category(self, index: int) -> bool:
        if not 0 <= index < len(self.data.categories):
            return False
        category = self.data.categories[index]
        if category.id is None:
            self.notify(NotificationLevel.WARNING, "Cannot delete default category")
            return False
        if self._storage is None:
            return False
        try:
            if self._storage.is_category_in_use(category.name):
                self.notify(NotificationLevel.WARNING, "Cannot delete: category has sessions")
                return False
            self._storage.delete_category(category.id)
        except StorageError as exc:
            LOGGER.warning("Failed to delete category: %s", exc)
            self.notify(NotificationLevel.WARNING, "Failed to delete category")
            return False
        self.refresh_categories()
        return True

    def refresh_categories(self) -> None:
        if self._storage is None:
            return
        try:
            categories = self._storage.get_categories()
        except StorageError as exc:
            LOGGER.warning("Failed to load categories: %s", exc)
            return
        if categories:
            self.data.categories = categories

    def history_day_label(self, session: Session) -> str:
        started = session.start_datetime()
        today = self.clock.now_datetime().date()
        if started.date() == today:
            return "Today"
        if started.date() == today - timedelta(days=1):
            return "Yesterday"
        return started.strftime("%A, %B %d, %Y")
