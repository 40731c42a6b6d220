from __future__ import annotations

"""Compile-time defaults and on-disk locations."""

from pathlib import Path

from platformdirs import user_data_dir


APP_NAME = "grindstone"

DEFAULT_WORK_DURATION_SEC = 25 * 60
DEFAULT_SHORT_BREAK_SEC = 5 * 60
DEFAULT_LONG_BREAK_SEC = 15 * 60
SESSIONS_UNTIL_LONG_BREAK = 4

# Upper bound on display staleness and completion detection.
TICK_RATE = 0.1

HISTORY_WINDOW_SEC = 30 * 24 * 60 * 60


def data_dir() -> Path:
    """Returns the per-user data directory, creating it when missing.

    Linux: ``~/.local/share/grindstone``; macOS:
    ``~/Library/Application Support/grindstone``; Windows:
    ``%APPDATA%\\grindstone``.
    """
    path = Path(user_data_dir(APP_NAME, appauthor=False, roaming=True))
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_db_path() -> Path:
    return data_dir() / f"{APP_NAME}.db"


def default_log_path() -> Path:
    return data_dir() / f"{APP_NAME}.log"
