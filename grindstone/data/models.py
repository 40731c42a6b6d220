from __future__ import annotations

"""Records shared by the session lifecycle, the store and the views."""

from dataclasses import dataclass
from datetime import datetime

from grindstone.core.config import (
    DEFAULT_LONG_BREAK_SEC,
    DEFAULT_SHORT_BREAK_SEC,
    DEFAULT_WORK_DURATION_SEC,
    SESSIONS_UNTIL_LONG_BREAK,
)


MAX_SESSION_NAME = 100
MAX_DESCRIPTION = 500
MAX_CATEGORY_NAME = 50
DEFAULT_CATEGORY_COLOR = "#808080"

_FALLBACK_RGB = (128, 128, 128)


@dataclass
class Session:
    """A focus session; time fields stay zero until the session is finalized."""

    name: str
    category: str
    description: str | None = None
    started_at: int = 0
    ended_at: int = 0
    duration_secs: int = 0
    id: int | None = None

    def start_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.started_at).astimezone()

    def end_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.ended_at).astimezone()

    def format_duration(self) -> str:
        return format_duration(self.duration_secs)


@dataclass(frozen=True)
class Category:
    id: int | None
    name: str
    color: str = DEFAULT_CATEGORY_COLOR

    @classmethod
    def defaults(cls) -> list[Category]:
        return [
            cls(None, "work", "#FF6B6B"),
            cls(None, "study", "#4ECDC4"),
            cls(None, "coding", "#45B7D1"),
            cls(None, "reading", "#96CEB4"),
            cls(None, "exercise", "#FFEAA7"),
            cls(None, "other", "#DFE6E9"),
        ]


@dataclass(frozen=True)
class CategoryStat:
    name: str
    total_seconds: int


@dataclass
class TimerConfig:
    work_duration_secs: int = DEFAULT_WORK_DURATION_SEC
    short_break_secs: int = DEFAULT_SHORT_BREAK_SEC
    long_break_secs: int = DEFAULT_LONG_BREAK_SEC
    sessions_until_long_break: int = SESSIONS_UNTIL_LONG_BREAK

    def is_valid(self) -> bool:
        return (
            self.work_duration_secs > 0
            and self.short_break_secs > 0
            and self.long_break_secs > 0
            and self.sessions_until_long_break > 0
        )


def format_duration(seconds: int) -> str:
    """Formats seconds as ``"Xh Ym"`` or ``"Xm"``."""
    minutes = int(seconds) // 60
    hours, rest = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {rest}m"
    return f"{minutes}m"


def parse_hex_color(value: str) -> tuple[int, int, int]:
    """Parses ``#RRGGBB``; anything malformed maps to grey."""
    digits = value.strip().removeprefix("#")
    if len(digits) != 6:
        return _FALLBACK_RGB
    try:
        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)
    except ValueError:
        return _FALLBACK_RGB


def bounded(text: str, limit: int) -> str:
    return text[:limit]
