from __future__ import annotations

import time
from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Source of wall-clock and monotonic time."""

    def now_timestamp(self) -> int:
        """Current Unix timestamp in seconds."""

    def now_datetime(self) -> datetime:
        """Current local time, timezone-aware."""

    def instant(self) -> float:
        """Monotonic marker in seconds, only meaningful as a difference."""


class SystemClock:
    def now_timestamp(self) -> int:
        return int(time.time())

    def now_datetime(self) -> datetime:
        return datetime.now().astimezone()

    def instant(self) -> float:
        return time.monotonic()
