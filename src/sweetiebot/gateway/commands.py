"""Gateway command handlers for the configuration commands."""

from __future__ import annotations

import shlex

import structlog

from ..catalog import Catalog, CommandInfo
from ..config.manager import GuildConfigManager
from ..config.paths import resolve
from ..config.store import qualified_path
from ..errors import PathAmbiguous, PathNotFound
from .formatters import (
    MAX_MESSAGE_LENGTH,
    code_block,
    render_category,
    render_option,
    render_summary,
    split_message,
)

logger = structlog.get_logger(__name__)

CONFIG_MODULE = "config"


def register_config_module(catalog: Catalog) -> None:
    """Add the configuration commands to a catalog."""
    catalog.register_module(CONFIG_MODULE, [
        CommandInfo("getconfig", sensitive=True),
        CommandInfo("setconfig", sensitive=True),
        CommandInfo("setup"),
    ])


def parse_arguments(text: str) -> list[str]:
    """Split command text into arguments, honouring "quoted values"."""
    try:
        return shlex.split(text)
    except ValueError:
        return text.split()


def _unrecognized(prefix: str) -> str:
    return (
        f"That's not a recognized config option! Type {prefix}getconfig without any arguments "
        "to list all possible config options. Use \".\" to specify which category of options you "
        "want - for example, \"Basic.ModChannel\". If the option is a map, you can specify the key "
        f"as well: \"Information.Rules 1\". Using {prefix}getconfig with just a category will list "
        f"help for that category, e.g. \"{prefix}getconfig Basic\"."
    )


async def handle_getconfig(
    manager: GuildConfigManager,
    guild_id: str,
    args: list[str],
    app_name: str = "Sweetie Bot",
) -> str:
    """Handle !getconfig [option [key]]."""
    store = manager.store(guild_id)
    if not args:
        return render_summary(store.summary(), app_name)

    prefix = store.value("Basic", "CommandPrefix")
    try:
        target = resolve(args[0], store.registry)
    except PathAmbiguous as e:
        return code_block(str(e))
    except PathNotFound:
        return code_block(_unrecognized(prefix))

    if target.option is None:
        return render_category(target.category, store.describe_category(target.category))
    if store.registry.option(target.category, target.option) is None:
        return code_block(_unrecognized(prefix))

    key = args[1] if len(args) > 1 else None
    lines = store.get(str(target), key)
    return render_option(f"{target.category}.{target.option}", lines)


async def handle_setconfig(manager: GuildConfigManager, guild_id: str, args: list[str]) -> str:
    """Handle !setconfig <option> <value> [extra values...]."""
    if len(args) < 1:
        return code_block("No configuration parameter to look for!")
    if len(args) < 2:
        return code_block("No value to set!")
    try:
        path = qualified_path(args[0], manager.store(guild_id).registry)
    except PathAmbiguous as e:
        return code_block(str(e))

    message, ok = await manager.set_config(guild_id, args[0], args[1], *args[2:])
    if ok:
        return code_block(f"Successfully set {path} to {message}.")
    return code_block(message)


async def handle_setup(manager: GuildConfigManager, guild_id: str, args: list[str]) -> str:
    """Handle !setup [override] <mod role> <mod channel> [log channel]."""
    message, ok = await manager.setup_guild(guild_id, args)
    if not ok:
        return code_block(message)
    prefix = manager.store(guild_id).value("Basic", "CommandPrefix")
    return code_block(message) + (
        f"\nType `{prefix}getconfig` with no arguments for a list of configuration options, "
        f"or `{prefix}getconfig <category>` for help on every option in that category."
    )


async def handle_config_command(
    manager: GuildConfigManager,
    guild_id: str,
    command_text: str,
    app_name: str = "Sweetie Bot",
    max_length: int = MAX_MESSAGE_LENGTH,
) -> list[str]:
    """Route a configuration command and split the reply into messages.

    Returns:
        Messages to send, or an empty list if the text is not a
        configuration command
    """
    prefix = manager.store(guild_id).value("Basic", "CommandPrefix")
    if not command_text.startswith(prefix):
        return []
    args = parse_arguments(command_text[len(prefix):])
    if not args:
        return []
    name, args = args[0].lower(), args[1:]

    if name == "getconfig":
        response = await handle_getconfig(manager, guild_id, args, app_name)
    elif name == "setconfig":
        response = await handle_setconfig(manager, guild_id, args)
    elif name == "setup":
        response = await handle_setup(manager, guild_id, args)
    else:
        return []
    logger.debug("config_command_handled", guild_id=guild_id, command=name)
    return split_message(response, max_length)
