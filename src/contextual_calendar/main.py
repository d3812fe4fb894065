from __future__ import annotations

import logging
from pathlib import Path

from telegram.ext import Application

from contextual_calendar.birthday_store import BirthdayStore
from contextual_calendar.bot_handlers import HandlerDependencies, build_handlers
from contextual_calendar.config_store import ensure_default_config, load_config
from contextual_calendar.kv_store import KeyValueStore
from contextual_calendar.settings import load_settings

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def main() -> None:
    configure_logging()

    settings = load_settings()
    _ensure_parent(settings.calendar_config_path)
    _ensure_parent(settings.birthday_store_path)

    ensure_default_config(settings.calendar_config_path)
    config = load_config(settings.calendar_config_path)

    store = BirthdayStore(KeyValueStore(settings.birthday_store_path))
    LOGGER.info(
        "Loaded %s birthdays from %s (timezone %s)",
        len(store),
        settings.birthday_store_path,
        config.timezone,
    )

    application = Application.builder().token(settings.telegram_bot_token).build()
    application.bot_data["handler_deps"] = HandlerDependencies(settings=settings, store=store)

    for handler in build_handlers():
        application.add_handler(handler)

    application.run_polling()


if __name__ == "__main__":
    main()
