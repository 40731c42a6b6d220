import pytest

from grindstone.data.models import CategoryStat, Session, TimerConfig
from grindstone.data.storage import Storage, StorageError


def _session(name: str, category: str, started_at: int, duration: int) -> Session:
    return Session(
        name=name,
        category=category,
        started_at=started_at,
        ended_at=started_at + duration,
        duration_secs=duration,
    )


def test_init_db_creates_file_and_seeds_defaults(tmp_path) -> None:
    db = tmp_path / "grindstone.db"
    storage = Storage(db)
    storage.init_db()
    storage.init_db()

    assert db.exists()
    categories = storage.get_categories()
    assert [c.name for c in categories] == ["coding", "exercise", "other", "reading", "study", "work"]
    assert all(c.id is not None for c in categories)
    assert next(c for c in categories if c.name == "work").color == "#FF6B6B"
    assert storage.get_config() == TimerConfig()


def test_storage_path_that_cannot_exist_raises(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(StorageError):
        Storage(blocker / "grindstone.db")


def test_save_and_query_sessions_in_range(storage) -> None:
    first = storage.save_session(_session("A", "work", 1000, 60))
    second = storage.save_session(_session("B", "study", 2000, 120))
    storage.save_session(_session("C", "work", 3000, 30))

    rows = storage.get_sessions_in_range(1000, 3000)

    assert second > first
    assert [s.name for s in rows] == ["B", "A"]
    assert rows[0].id == second
    assert rows[0].duration_secs == 120
    assert rows[0].description is None


def test_time_by_category_is_grouped_and_sorted(storage) -> None:
    storage.save_session(_session("A", "work", 100, 600))
    storage.save_session(_session("B", "study", 200, 1500))
    storage.save_session(_session("C", "work", 300, 1200))
    storage.save_session(_session("D", "work", 5000, 9999))

    stats = storage.get_time_by_category(0, 1000)

    assert stats == [CategoryStat("work", 1800), CategoryStat("study", 1500)]


def test_delete_session(storage) -> None:
    session_id = storage.save_session(_session("A", "work", 100, 60))

    assert storage.delete_session(session_id) == 1
    assert storage.delete_session(session_id) == 0
    assert storage.get_sessions_in_range(0, 1000) == []


def test_category_crud(storage) -> None:
    category_id = storage.create_category("music", "#AABBCC")
    assert "music" in [c.name for c in storage.get_categories()]

    assert storage.update_category(category_id, "guitar", "#112233") == 1
    renamed = next(c for c in storage.get_categories() if c.id == category_id)
    assert (renamed.name, renamed.color) == ("guitar", "#112233")

    assert storage.delete_category(category_id) == 1
    assert category_id not in [c.id for c in storage.get_categories()]


def test_duplicate_category_raises_storage_error(storage) -> None:
    with pytest.raises(StorageError):
        storage.create_category("work", "#000000")


def test_category_in_use(storage) -> None:
    assert storage.is_category_in_use("coding") is False
    storage.save_session(_session("A", "coding", 100, 60))
    assert storage.is_category_in_use("coding") is True


def test_save_config_round_trip(storage) -> None:
    config = TimerConfig(
        work_duration_secs=3000,
        short_break_secs=600,
        long_break_secs=1800,
        sessions_until_long_break=3,
    )
    storage.save_config(config)

    assert storage.get_config() == config

    reopened = Storage(storage.db_path)
    reopened.init_db()
    assert reopened.get_config() == config
