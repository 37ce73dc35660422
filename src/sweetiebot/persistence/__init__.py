# Persistence Layer - SQLite database for guild configuration and migration side data

from .db import DatabaseManager, get_db, get_db_manager, set_db_manager
from .guild_config import (
    SqliteConfigPersistence,
    load_guild_config,
    save_guild_config,
    delete_guild_config,
    list_guild_ids,
)
from .schedule import (
    add_schedule_event,
    get_schedule_rows,
    get_schedule_event,
    update_schedule_data,
)
from .tags import (
    create_tag,
    add_item,
    tag_item,
    get_tagged_items,
    import_tag,
)
from .secondary import SqliteSecondaryStore

__all__ = [
    "DatabaseManager",
    "get_db",
    "get_db_manager",
    "set_db_manager",
    "SqliteConfigPersistence",
    "load_guild_config",
    "save_guild_config",
    "delete_guild_config",
    "list_guild_ids",
    "add_schedule_event",
    "get_schedule_rows",
    "get_schedule_event",
    "update_schedule_data",
    "create_tag",
    "add_item",
    "tag_item",
    "get_tagged_items",
    "import_tag",
    "SqliteSecondaryStore",
]
