from __future__ import annotations

"""Точка входа grindstone.

Настраивает журнал, открывает хранилище (если получится), загружает состояние
и запускает текстовый интерфейс.
"""

import logging
from logging.handlers import RotatingFileHandler

from grindstone.core.app_state import AppState, NotificationLevel
from grindstone.core.config import default_db_path, default_log_path
from grindstone.data.storage import Storage, StorageError
from grindstone.ui.main_window import GrindstoneApp


LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    """Пишет журнал в файл; в терминал ничего не выводится, там работает TUI."""
    try:
        handler = RotatingFileHandler(default_log_path(), maxBytes=1024 * 1024, backupCount=3)
    except OSError:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[handler],
    )
    LOGGER.info("grindstone starting")


def open_storage() -> Storage | None:
    try:
        storage = Storage(default_db_path())
        storage.init_db()
    except (OSError, StorageError) as exc:
        LOGGER.warning("Running without database: %s", exc)
        return None
    return storage


def main() -> int:
    """Собирает зависимости приложения и запускает UI-цикл."""
    configure_logging()

    app_state = AppState()
    storage = open_storage()
    if storage is None:
        app_state.notify(NotificationLevel.WARNING, "Running without database")
    else:
        app_state.load_from_storage(storage)

    GrindstoneApp(app_state).run()
    LOGGER.info("grindstone stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
