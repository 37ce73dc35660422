"""Application wiring: settings, logging, database and the guild config manager."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import partial
from pathlib import Path
from typing import Optional

import structlog

from .catalog import Catalog
from .config.manager import GuildConfigManager
from .config.settings import Settings, initialize_settings
from .gateway.commands import handle_config_command, register_config_module
from .observability.logging import configure_logging
from .persistence import (
    DatabaseManager,
    SqliteConfigPersistence,
    SqliteSecondaryStore,
    set_db_manager,
)

logger = structlog.get_logger(__name__)


async def create_manager(
    settings: Settings,
    catalog: Optional[Catalog] = None,
) -> GuildConfigManager:
    """Open the database, apply the schema and build the manager.

    Args:
        settings: Loaded process settings
        catalog: Module and command catalog (a catalog with only the config
            commands is created when omitted)

    Returns:
        Manager persisting to the configured SQLite database
    """
    if catalog is None:
        catalog = Catalog()
    if not catalog.has_module("config"):
        register_config_module(catalog)

    db_manager = DatabaseManager(settings.get("database.path"),
                                 wal_mode=settings.get("database.wal_mode"))
    set_db_manager(db_manager)
    await db_manager.init_db()

    manager = GuildConfigManager(
        SqliteConfigPersistence(),
        catalog=catalog,
        secondary=SqliteSecondaryStore(),
        strict_migrations=settings.get("migrations.strict"),
    )
    logger.info("guild_config_manager_ready",
                db_path=settings.get("database.path"),
                strict_migrations=settings.get("migrations.strict"))
    return manager


def command_handler(
    settings: Settings,
    manager: GuildConfigManager,
) -> Callable[[str, str], Awaitable[list[str]]]:
    """Bind the configuration commands to a manager and the bot settings.

    The returned coroutine function takes (guild_id, command_text) and
    returns the reply messages, named after bot.app_name and split at
    bot.max_message_length.
    """
    return partial(
        handle_config_command,
        manager,
        app_name=settings.get("bot.app_name"),
        max_length=settings.get("bot.max_message_length"),
    )


async def bootstrap(
    config_file: Optional[Path] = None,
    env_file: Optional[Path] = None,
    catalog: Optional[Catalog] = None,
) -> GuildConfigManager:
    """Load settings, configure logging and return a ready manager."""
    settings = initialize_settings(config_file, env_file)
    configure_logging(settings.get("logging.level"),
                      json_output=settings.get("logging.json_output"))
    return await create_manager(settings, catalog)
