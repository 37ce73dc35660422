"""First-time setup of a guild's configuration."""

from collections.abc import Sequence
from typing import Optional

import structlog

from ..catalog import Catalog
from ..directory import Directory
from ..errors import ReferenceUnresolved
from .migrations import SILENCE_ROLE_NAME
from .store import ConfigStore

logger = structlog.get_logger(__name__)

# Modules that stay off until a moderator enables them
DISABLED_BY_DEFAULT = ("bucket", "bored", "markov", "witty", "poll", "misc")

SETUP_ALIASES = {"calc": "roll", "calculate": "roll"}


def _missing_arguments() -> tuple[str, bool]:
    return "You must provide at least the Moderator Role and Mod Channel arguments to this function.", False


async def run_setup(
    store: ConfigStore,
    directory: Directory,
    catalog: Optional[Catalog],
    args: Sequence[str],
) -> tuple[str, bool]:
    """Configure a guild for first use.

    Arguments are ``[override] <mod role> <mod channel> [log channel]``. A
    guild that was already set up is only reconfigured when the first argument
    is ``override``, and then starts again from default values.

    Args:
        store: The guild's configuration store (mutated on success only)
        directory: Guild directory used to resolve arguments and create roles
        catalog: Module and command catalog
        args: Command arguments

    Returns:
        Tuple of (message, success)
    """
    args = list(args)
    if len(args) < 2:
        return _missing_arguments()
    reset = False
    if store.setup_done:
        if args[0].lower() != "override":
            prefix = store.value("Basic", "CommandPrefix")
            return (
                f"WARNING: This server has already been configured. If you run {prefix}setup again, "
                "it will reset ALL CONFIGURATION DATA to defaults! If you wish to proceed, use "
                f"{prefix}setup OVERRIDE <your arguments>"
            ), False
        args = args[1:]
        reset = True
    if len(args) < 2:
        return _missing_arguments()
    if len(args) > 3:
        return (
            f"This function only accepts 3 arguments, but you put in {len(args)}! Are you actually "
            "using @Role for the mod role and #channel for the channels? Alternatively, put your "
            "moderator role in \"quotes\"."
        ), False

    try:
        mod_role = directory.resolve_role(args[0])
    except ReferenceUnresolved:
        return f"{args[0]} is not a valid role!", False
    channels = []
    for arg in args[1:]:
        try:
            channels.append(directory.resolve_channel(arg))
        except ReferenceUnresolved:
            return f"{arg} is not a valid channel!", False
    mod_channel = channels[0]
    log_channel = channels[1] if len(channels) > 1 else ""

    try:
        silence_role = await directory.create_role(SILENCE_ROLE_NAME, read_only=True)
    except Exception as e:
        logger.error("silence_role_create_failed", guild_id=directory.guild_id, error=str(e))
        return f"Failed to create the silent role! {e}", False

    if reset:
        store.reset()
        logger.warning("guild_config_reset", guild_id=directory.guild_id)

    store.install(store.option("Basic", "ModRole"), mod_role)
    store.install(store.option("Basic", "ModChannel"), mod_channel)
    if log_channel:
        store.install(store.option("Log", "Channel"), log_channel)
    store.install(store.option("Basic", "SilenceRole"), silence_role)
    store.install(store.option("Basic", "Aliases"), {**store.value("Basic", "Aliases"), **SETUP_ALIASES})

    sensitive = catalog.sensitive_commands() if catalog else []
    roles = dict(store.value("Modules", "CommandRoles"))
    for command in sensitive:
        roles[command] = {mod_role: True}
    store.install(store.option("Modules", "CommandRoles"), roles)

    disabled_commands: dict[str, bool] = {}
    for module in DISABLED_BY_DEFAULT:
        for command in catalog.commands_in(module) if catalog else []:
            disabled_commands[command] = True
    store.install(store.option("Modules", "CommandDisabled"), disabled_commands)
    store.install(store.option("Modules", "Disabled"), dict.fromkeys(DISABLED_BY_DEFAULT, True))
    store.setup_done = True

    logger.info("guild_setup_completed",
                guild_id=directory.guild_id,
                restricted=len(sensitive),
                disabled_commands=len(disabled_commands))

    codec = store.codec
    options = store.registry
    lines = [
        "Server configured!",
        f"Moderator Role: {codec.format(options.option('Basic', 'ModRole').kind, mod_role)}",
        f"Mod Channel: {codec.format(options.option('Basic', 'ModChannel').kind, mod_channel)}",
        f"Log Channel: {codec.format(options.option('Log', 'Channel').kind, log_channel)}",
    ]
    return "\n".join(lines), True
