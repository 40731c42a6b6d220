from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from grindstone.data.storage import Storage


class ManualClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, start: datetime) -> None:
        self._now = start
        self._instant = 1000.0

    def now_timestamp(self) -> int:
        return int(self._now.timestamp())

    def now_datetime(self) -> datetime:
        return self._now

    def instant(self) -> float:
        return self._instant

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)
        self._instant += seconds


@pytest.fixture
def clock() -> ManualClock:
    # A Wednesday, mid-morning local time.
    return ManualClock(datetime(2026, 3, 11, 10, 0, 0).astimezone())


@pytest.fixture
def storage(tmp_path) -> Storage:
    store = Storage(tmp_path / "grindstone.db")
    store.init_db()
    return store
