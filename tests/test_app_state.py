import time
from datetime import datetime, timedelta, timezone

import pytest

from grindstone.core.app_state import (
    AppState,
    ChartType,
    NotificationLevel,
    SettingsField,
    StatsPeriod,
    View,
)
from grindstone.core.session import Active, Inactive, Ready
from grindstone.core.timer import TimerPhase
from grindstone.data.models import Session
from grindstone.data.storage import Storage, StorageError
from grindstone.ui import render


class FailingSaveStorage(Storage):
    def save_session(self, session: Session) -> int:
        raise StorageError("disk full")


def _category_index(state: AppState, name: str) -> int:
    return [c.name for c in state.data.categories].index(name)


def _loaded_state(clock, storage) -> AppState:
    state = AppState(clock)
    state.load_from_storage(storage)
    return state


def test_completed_work_session_is_persisted_and_break_starts(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    assert state.create_session("Write report", "", _category_index(state, "coding")) is True
    started = clock.now_timestamp()

    clock.advance(1500.5)
    completed = state.handle_tick()

    assert completed is TimerPhase.WORK
    rows = storage.get_sessions_in_range(0, clock.now_timestamp() + 1)
    assert len(rows) == 1
    assert rows[0].name == "Write report"
    assert rows[0].category == "coding"
    assert rows[0].duration_secs == 1500
    assert rows[0].started_at == started
    assert state.timer.phase is TimerPhase.SHORT_BREAK
    assert state.timer.is_running()
    assert isinstance(state.session.phase, Ready)


def test_tick_before_phase_end_does_nothing(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.create_session("Write report", "", 0)
    clock.advance(1499)

    assert state.handle_tick() is None
    assert state.timer.phase is TimerPhase.WORK


def test_stop_session_records_elapsed_time(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.create_session("Write report", "notes", 0)
    clock.advance(42)

    state.stop_session()

    rows = storage.get_sessions_in_range(0, clock.now_timestamp() + 1)
    assert [r.duration_secs for r in rows] == [42]
    assert rows[0].description == "notes"
    assert isinstance(state.session.phase, Inactive)
    assert state.timer.is_idle()


def test_stop_session_right_after_start_is_ignored(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.create_session("Write report", "", 0)

    state.stop_session()

    assert isinstance(state.session.phase, Active)
    assert state.timer.is_running()
    assert storage.get_sessions_in_range(0, clock.now_timestamp() + 1) == []


def test_blank_session_name_is_rejected(clock, storage) -> None:
    state = _loaded_state(clock, storage)

    assert state.create_session("   ", "", 0) is False
    assert state.notification is not None
    assert state.notification.level is NotificationLevel.WARNING
    assert isinstance(state.session.phase, Inactive)
    assert state.timer.is_idle()


def test_long_fields_are_truncated(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.create_session("n" * 150, "d" * 600, 0)

    session = state.current_session
    assert len(session.name) == 100
    assert len(session.description) == 500


def test_primary_action_covers_start_resume_and_skip(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.primary_action()
    assert state.timer.is_idle()

    state.create_session("Write report", "", 0)
    state.pause()
    assert state.timer.is_paused()
    state.primary_action()
    assert state.timer.is_running()

    clock.advance(1500)
    state.handle_tick()
    assert state.timer.phase is TimerPhase.SHORT_BREAK
    state.primary_action()
    assert state.timer.phase is TimerPhase.WORK
    assert state.timer.is_idle()

    state.primary_action()
    assert state.timer.is_running()
    assert isinstance(state.session.phase, Active)


def test_failed_save_notifies_and_still_advances(clock, tmp_path) -> None:
    storage = FailingSaveStorage(tmp_path / "grindstone.db")
    storage.init_db()
    state = _loaded_state(clock, storage)
    state.create_session("Write report", "", 0)
    clock.advance(1500)

    assert state.handle_tick() is TimerPhase.WORK
    assert state.notification is not None
    assert state.notification.level is NotificationLevel.ERROR
    assert state.notification.message == "Failed to save session!"
    assert state.timer.phase is TimerPhase.SHORT_BREAK
    assert state.timer.is_running()


def test_without_storage_sessions_still_run(clock) -> None:
    state = AppState(clock)
    assert state.storage is None
    assert state.create_session("Offline", "", 0) is True
    clock.advance(1500)

    assert state.handle_tick() is TimerPhase.WORK
    assert state.notification is None


def test_settings_buffer_is_isolated_until_saved(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.begin_settings_edit()

    assert state.set_setting_value(SettingsField.WORK_DURATION, "50") is True
    assert state.settings_value(SettingsField.WORK_DURATION) == "50"
    assert state.data.config.work_duration_secs == 1500
    assert state.timer.work_duration == 1500

    assert state.save_settings() is True
    assert state.settings_buffer is None
    assert state.data.config.work_duration_secs == 3000
    assert state.timer.work_duration == 3000
    assert storage.get_config().work_duration_secs == 3000


def test_settings_ignore_bad_input(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.begin_settings_edit()

    assert state.set_setting_value(SettingsField.SHORT_BREAK, "abc") is False
    assert state.set_setting_value(SettingsField.SHORT_BREAK, "0") is False
    assert state.set_setting_value(SettingsField.SESSIONS_UNTIL_LONG, "-2") is False
    assert state.settings_value(SettingsField.SHORT_BREAK) == "5"

    state.cancel_settings_edit()
    assert state.settings_buffer is None


def test_submit_settings_rejects_whole_form(clock, storage) -> None:
    state = _loaded_state(clock, storage)

    ok = state.submit_settings(
        {
            SettingsField.WORK_DURATION: "45",
            SettingsField.SHORT_BREAK: "x",
            SettingsField.LONG_BREAK: "20",
            SettingsField.SESSIONS_UNTIL_LONG: "3",
        }
    )

    assert ok is False
    assert state.notification.level is NotificationLevel.WARNING
    assert state.data.config.work_duration_secs == 1500

    ok = state.submit_settings(
        {
            SettingsField.WORK_DURATION: "45",
            SettingsField.SHORT_BREAK: "10",
            SettingsField.LONG_BREAK: "20",
            SettingsField.SESSIONS_UNTIL_LONG: "3",
        }
    )

    assert ok is True
    assert state.data.config.sessions_until_long_break == 3
    assert state.timer.sessions_until_long == 3
    assert state.timer.long_break == 1200


def test_saved_settings_are_loaded_on_next_start(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.begin_settings_edit()
    state.set_setting_value(SettingsField.LONG_BREAK, "30")
    state.save_settings()

    again = _loaded_state(clock, storage)
    assert again.timer.long_break == 1800


def test_category_create_update_delete(clock, storage) -> None:
    state = _loaded_state(clock, storage)

    assert state.save_category("music", "#aabbcc") is True
    music = next(c for c in state.data.categories if c.name == "music")
    assert music.color == "#AABBCC"

    assert state.save_category("work", "#000000") is False
    assert state.notification.message == "Category already exists"

    assert state.save_category("music", "#112233", music.id) is True
    assert state.save_category("piano", "red", music.id) is False
    assert state.notification.message == "Color must look like #RRGGBB"

    assert state.delete_category(_category_index(state, "music")) is True
    assert "music" not in [c.name for c in state.data.categories]


def test_category_in_use_cannot_be_deleted(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.create_session("Write report", "", _category_index(state, "coding"))
    clock.advance(60)
    state.stop_session()

    assert state.delete_category(_category_index(state, "coding")) is False
    assert state.notification.message == "Cannot delete: category has sessions"


def test_categories_need_a_database(clock) -> None:
    state = AppState(clock)

    assert state.save_category("music", "#AABBCC") is False
    assert state.notification.message == "No database connection"
    assert state.delete_category(0) is False
    assert state.notification.message == "Cannot delete default category"


def test_history_cursor_and_delete(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    for name in ("first", "second", "third"):
        state.create_session(name, "", 0)
        clock.advance(60)
        state.stop_session()

    state.set_view(View.HISTORY)

    assert [s.name for s in state.data.sessions] == ["third", "second", "first"]
    state.move_history_cursor(-1)
    assert state.selected_session().name == "first"
    state.move_history_cursor(1)
    assert state.selected_session().name == "third"

    state.move_history_cursor(1)
    state.delete_selected_session()

    assert [s.name for s in state.data.sessions] == ["third", "first"]
    assert state.data.history_index == 1


def test_stats_follow_period_and_chart(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.create_session("Write report", "", _category_index(state, "coding"))
    clock.advance(600)
    state.stop_session()

    state.set_view(View.STATS)
    assert [(s.name, s.total_seconds) for s in state.data.category_stats] == [("coding", 600)]

    state.next_stats_period()
    assert state.data.stats_period is StatsPeriod.WEEK
    state.prev_stats_period()
    state.prev_stats_period()
    assert state.data.stats_period is StatsPeriod.YEAR

    state.toggle_chart()
    assert state.data.chart_type is ChartType.PIE


def test_stats_period_ranges(clock) -> None:
    now = clock.now_timestamp()

    def start_of(*args: int) -> int:
        return int(datetime(*args).astimezone().timestamp())

    assert StatsPeriod.DAY.time_range(clock) == (start_of(2026, 3, 11), now)
    assert StatsPeriod.WEEK.time_range(clock) == (start_of(2026, 3, 9), now)
    assert StatsPeriod.MONTH.time_range(clock) == (start_of(2026, 3, 1), now)
    assert StatsPeriod.YEAR.time_range(clock) == (start_of(2026, 1, 1), now)


def test_history_day_labels(clock) -> None:
    state = AppState(clock)
    now = clock.now_timestamp()

    assert state.history_day_label(Session("a", "work", started_at=now - 60)) == "Today"
    assert state.history_day_label(Session("b", "work", started_at=now - 86400)) == "Yesterday"
    assert state.history_day_label(Session("c", "work", started_at=now - 3 * 86400)) == "Sunday, March 08, 2026"


def test_unreadable_store_falls_back_to_defaults(clock, tmp_path) -> None:
    storage = Storage(tmp_path / "grindstone.db")
    state = AppState(clock)

    state.load_from_storage(storage)

    assert state.notification.level is NotificationLevel.WARNING
    assert len(state.data.categories) == 6
    assert state.data.config.work_duration_secs == 1500


def test_resume_keeps_session_start_time(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.create_session("Write report", "", 0)
    first_start = state.session.phase.start_time

    clock.advance(30)
    state.pause()
    clock.advance(120)
    state.primary_action()

    assert state.timer.is_running()
    assert isinstance(state.session.phase, Active)
    assert state.session.phase.start_time == first_start


def test_auto_started_work_phase_has_no_armed_session(clock, storage) -> None:
    state = _loaded_state(clock, storage)
    state.create_session("Write report", "", 0)
    clock.advance(1500)
    assert state.handle_tick() is TimerPhase.WORK
    clock.advance(300)
    assert state.handle_tick() is TimerPhase.SHORT_BREAK

    assert state.timer.phase is TimerPhase.WORK
    assert state.timer.is_running()
    assert isinstance(state.session.phase, Ready)
    assert "[x] Stop" not in render.timer_controls(state)

    clock.advance(60)
    state.stop_session()
    assert state.timer.is_running()

    clock.advance(1440)
    assert state.handle_tick() is TimerPhase.WORK
    rows = storage.get_sessions_in_range(0, clock.now_timestamp() + 1)
    assert len(rows) == 1


class _FixedClock:
    def __init__(self, now: datetime) -> None:
        self._now = now

    def now_datetime(self) -> datetime:
        return self._now


@pytest.fixture
def eastern_time(monkeypatch):
    monkeypatch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
def test_stats_period_start_uses_offset_of_that_day(eastern_time) -> None:
    # Daylight saving started on 2026-03-08; January and March 1 are on standard time.
    now = datetime(2026, 3, 11, 10, 0, tzinfo=timezone(timedelta(hours=-4)))
    clock = _FixedClock(now)

    def utc(*args: int) -> int:
        return int(datetime(*args, tzinfo=timezone.utc).timestamp())

    assert StatsPeriod.DAY.time_range(clock)[0] == utc(2026, 3, 11, 4)
    assert StatsPeriod.WEEK.time_range(clock)[0] == utc(2026, 3, 9, 4)
    assert StatsPeriod.MONTH.time_range(clock)[0] == utc(2026, 3, 1, 5)
    assert StatsPeriod.YEAR.time_range(clock)[0] == utc(2026, 1, 1, 5)
