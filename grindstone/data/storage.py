from __future__ import annotations

"""SQLite-слой хранения: сессии, категории и настройки таймера."""

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import fields
from pathlib import Path
from typing import Iterator, Protocol

from grindstone.data.models import Category, CategoryStat, Session, TimerConfig


LOGGER = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_CONFIG_KEYS = tuple(f.name for f in fields(TimerConfig))


class StorageError(Exception):
    """Raised when the database cannot be opened, read or written."""


class SessionStore(Protocol):
    """Operations the application needs from persistence."""

    def save_session(self, session: Session) -> int: ...

    def delete_session(self, session_id: int) -> int: ...

    def get_sessions_in_range(self, start: int, end: int) -> list[Session]: ...

    def get_time_by_category(self, start: int, end: int) -> list[CategoryStat]: ...

    def get_categories(self) -> list[Category]: ...

    def create_category(self, name: str, color: str) -> int: ...

    def update_category(self, category_id: int, name: str, color: str) -> int: ...

    def delete_category(self, category_id: int) -> int: ...

    def is_category_in_use(self, name: str) -> bool: ...

    def get_config(self) -> TimerConfig: ...

    def save_config(self, config: TimerConfig) -> None: ...


class Storage:
    """Инкапсулирует подключение к SQLite и транзакционные операции."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create {self.db_path.parent}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(str(exc)) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Создает таблицы и заполняет категории и настройки по умолчанию."""
        with self._transaction() as conn:
            conn.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
            if not row:
                conn.execute("INSERT INTO schema_version(version) VALUES (?)", (SCHEMA_VERSION,))
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions(
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT,
                    category TEXT NOT NULL DEFAULT 'uncategorized',
                    started_at INTEGER NOT NULL,
                    ended_at INTEGER NOT NULL,
                    duration_secs INTEGER NOT NULL,
                    created_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now'))
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_started_at ON sessions(started_at)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_category ON sessions(category)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS categories(
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    color TEXT NOT NULL DEFAULT '#808080'
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS config(
                    key TEXT PRIMARY KEY,
                    value INTEGER NOT NULL
                )
                """
            )

            count = conn.execute("SELECT COUNT(*) AS c FROM categories").fetchone()["c"]
            if count == 0:
                conn.executemany(
                    "INSERT OR IGNORE INTO categories(name, color) VALUES (?, ?)",
                    [(c.name, c.color) for c in Category.defaults()],
                )
                LOGGER.info("Seeded default categories")

            count = conn.execute("SELECT COUNT(*) AS c FROM config").fetchone()["c"]
            if count == 0:
                defaults = TimerConfig()
                conn.executemany(
                    "INSERT INTO config(key, value) VALUES (?, ?)",
                    [(key, getattr(defaults, key)) for key in _CONFIG_KEYS],
                )

    def save_session(self, session: Session) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO sessions(name, description, category, started_at, ended_at, duration_secs)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    session.name,
                    session.description,
                    session.category,
                    session.started_at,
                    session.ended_at,
                    session.duration_secs,
                ),
            )
            session_id = int(cursor.lastrowid)
        LOGGER.info("Saved session %s (%ss, %s)", session_id, session.duration_secs, session.category)
        return session_id

    def delete_session(self, session_id: int) -> int:
        with self._transaction() as conn:
            return conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,)).rowcount

    def get_sessions_in_range(self, start: int, end: int) -> list[Session]:
        """Возвращает сессии с ``start <= started_at < end``, новые первыми."""
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT id, name, description, category, started_at, ended_at, duration_secs
                FROM sessions
                WHERE started_at >= ? AND started_at < ?
                ORDER BY started_at DESC, id DESC
                """,
                (start, end),
            ).fetchall()
        return [
            Session(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                category=row["category"],
                started_at=row["started_at"],
                ended_at=row["ended_at"],
                duration_secs=row["duration_secs"],
            )
            for row in rows
        ]

    def get_time_by_category(self, start: int, end: int) -> list[CategoryStat]:
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT category, SUM(duration_secs) AS total
                FROM sessions
                WHERE started_at >= ? AND started_at < ?
                GROUP BY category
                ORDER BY total DESC
                """,
                (start, end),
            ).fetchall()
        return [CategoryStat(name=row["category"], total_seconds=int(row["total"])) for row in rows]

    def get_categories(self) -> list[Category]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT id, name, color FROM categories ORDER BY name").fetchall()
        return [Category(id=row["id"], name=row["name"], color=row["color"]) for row in rows]

    def create_category(self, name: str, color: str) -> int:
        with self._transaction() as conn:
            cursor = conn.execute("INSERT INTO categories(name, color) VALUES (?, ?)", (name, color))
            category_id = int(cursor.lastrowid)
        LOGGER.info("Created category %s", name)
        return category_id

    def update_category(self, category_id: int, name: str, color: str) -> int:
        with self._transaction() as conn:
            return conn.execute(
                "UPDATE categories SET name = ?, color = ? WHERE id = ?",
                (name, color, category_id),
            ).rowcount

    def delete_category(self, category_id: int) -> int:
        with self._transaction() as conn:
            return conn.execute("DELETE FROM categories WHERE id = ?", (category_id,)).rowcount

    def is_category_in_use(self, name: str) -> bool:
        with self._transaction() as conn:
            row = conn.execute("SELECT COUNT(*) AS c FROM sessions WHERE category = ?", (name,)).fetchone()
        return int(row["c"]) > 0

    def get_config(self) -> TimerConfig:
        config = TimerConfig()
        with self._transaction() as conn:
            rows = conn.execute("SELECT key, value FROM config").fetchall()
        for row in rows:
            if row["key"] in _CONFIG_KEYS:
                setattr(config, row["key"], int(row["value"]))
        return config

    def save_config(self, config: TimerConfig) -> None:
        with self._transaction() as conn:
            conn.executemany(
                "INSERT INTO config(key, value) VALUES(?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                [(key, getattr(config, key)) for key in _CONFIG_KEYS],
            )
