"""Migration Pipeline - Upgrades persisted guild blobs to the current layout.

A guild's blob is first decoded straight into the current ConfigStore shape,
which keeps its persisted version. Every step whose ``applies_below`` is above
that version then runs once, in order. Each step re-reads the raw blob through
its own narrow legacy shape to recover values the current layout stores under
another name or type.

Legacy reads copy only fields that are present in the blob, so a step aimed
at a later layout never overwrites what an earlier step recovered from an
older one.

Failure policy:
- Decoding the blob into the current shape fails the load (DecodeError)
- A later step's DecodeError or SideEffectFailure is logged and the step is
  skipped, unless the pipeline is strict, in which case MigrationError is raised
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import structlog

from ..catalog import Catalog
from ..directory import Directory, parse_channel_id, parse_role_id, role_mention
from ..errors import DecodeError, MigrationError, SideEffectFailure
from .kinds import (
    BOOLEAN,
    CHANNEL,
    COMMAND,
    INTEGER,
    MODULE,
    ROLE,
    STRING,
    USER,
    ListOf,
    MapListOf,
    MapOf,
    ValueKind,
)
from .registry import CONFIG_VERSION, REGISTRY, ConfigRegistry
from .store import Blob, ConfigStore, decode_value, load_blob, lookup_key

logger = structlog.get_logger(__name__)

# Schedule rows of this type carry "group+group|message" in their data
SCHEDULE_GROUP_MESSAGE = 7

SILENCE_ROLE_NAME = "Silence"

_MISSING = object()

_STRING_SET = ListOf(STRING)
_STRING_MAPLIST = MapListOf(STRING, _STRING_SET)


class SecondaryStore(Protocol):
    """Rows outside the configuration blob that migrations rewrite."""

    async def get_schedule_rows(self, guild_id: str, event_type: int) -> list[tuple[int, str]]:
        ...

    async def update_schedule_data(self, row_id: int, data: str) -> None:
        ...

    async def import_tag(self, guild_id: str, tag: str, items: Iterable[str]) -> int:
        ...


@dataclass
class MigrationContext:
    """Everything a step may read or touch while it runs."""

    raw: dict
    store: ConfigStore
    guild_id: str = ""
    directory: Optional[Directory] = None
    secondary: Optional[SecondaryStore] = None

    def legacy(self, path: str, kind: ValueKind) -> Any:
        """Read ``path`` from the raw blob through a legacy shape.

        Returns:
            The decoded value, or _MISSING when any segment is absent

        Raises:
            DecodeError: If the blob holds a value of another shape
        """
        node: Any = self.raw
        for part in path.split("."):
            if not isinstance(node, dict):
                raise DecodeError(f"{path}: expected an object")
            node = lookup_key(node, part)
            if node is None:
                return _MISSING
        return decode_value(kind, node, path)

    def legacy_first(self, paths: Iterable[str], kind: ValueKind) -> Any:
        """Read the first of several legacy locations that is present."""
        for path in paths:
            found = self.legacy(path, kind)
            if found is not _MISSING:
                return found
        return _MISSING

    def get(self, path: str) -> Any:
        category, _, name = path.partition(".")
        return self.store.value(category, name)

    def put(self, path: str, value: Any) -> None:
        category, _, name = path.partition(".")
        self.store.install(self.store.option(category, name), value)

    def mod_role(self) -> str:
        """Moderator role, falling back to the legacy alert role of 10-20 era blobs."""
        role = self.get("Basic.ModRole")
        if not role or role == "0":
            found = self.legacy("basic.alertrole", ROLE)
            role = "" if found is _MISSING else found
        return "" if role == "0" else role

    def require_directory(self) -> Directory:
        if self.directory is None:
            raise SideEffectFailure("No server directory available")
        return self.directory


def restrict_command(store: ConfigStore, command: str, mod_role: str) -> None:
    """Limit ``command`` to the moderator role unless it already has a role entry."""
    roles = store.value("Modules", "CommandRoles")
    if command in roles or not mod_role:
        return
    updated = dict(roles)
    updated[command] = {mod_role: True}
    store.install(store.option("Modules", "CommandRoles"), updated)


def _restrict(ctx: MigrationContext, *commands: str, mod_role: Optional[str] = None) -> None:
    if mod_role is None:
        mod_role = ctx.mod_role()
    for command in commands:
        restrict_command(ctx.store, command, mod_role)


@dataclass(frozen=True)
class MigrationStep:
    """A transform applied to blobs persisted below ``applies_below``."""

    applies_below: int
    name: str
    transform: Callable[[MigrationContext], Awaitable[None]]
    side_effects: bool = False


@dataclass
class MigrationResult:
    store: ConfigStore
    from_version: int
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    needs_save: bool = False


# Historical steps
# ================

# Flat pre-10 keys copied as-is into the categorised layout
_FLAT_FIELDS: list[tuple[str, ValueKind, str]] = [
    ("alertrole", ROLE, "Basic.ModRole"),
    ("ignoreinvalidcommands", BOOLEAN, "Basic.IgnoreInvalidCommands"),
    ("importable", BOOLEAN, "Basic.Importable"),
    ("modchannel", CHANNEL, "Basic.ModChannel"),
    ("silentrole", ROLE, "Basic.SilenceRole"),
    ("command_limits", MapOf(COMMAND, INTEGER), "Modules.CommandLimits"),
    ("command_disabled", ListOf(COMMAND), "Modules.CommandDisabled"),
    ("module_disabled", ListOf(MODULE), "Modules.Disabled"),
    ("commandmaxduration", INTEGER, "Modules.CommandMaxDuration"),
    ("commandperduration", INTEGER, "Modules.CommandPerDuration"),
    ("autosilence", INTEGER, "Spam.AutoSilence"),
    ("maxraidtime", INTEGER, "Spam.RaidTime"),
    ("maxspamremovelookback", INTEGER, "Spam.MaxRemoveLookback"),
    ("raidsize", INTEGER, "Spam.RaidSize"),
    ("maxbucket", INTEGER, "Bucket.MaxItems"),
    ("maxbucketlength", INTEGER, "Bucket.MaxItemLength"),
    ("maxfightdamage", INTEGER, "Bucket.MaxFightDamage"),
    ("maxfighthp", INTEGER, "Bucket.MaxFightHP"),
    ("defaultmarkovlines", INTEGER, "Markov.DefaultLines"),
    ("maxpmlines", INTEGER, "Markov.MaxPMlines"),
    ("maxquotelines", INTEGER, "Markov.MaxLines"),
    ("usemembernames", BOOLEAN, "Markov.UseMemberNames"),
    ("timezonelocation", STRING, "Users.TimezoneLocation"),
    ("welcomechannel", CHANNEL, "Users.WelcomeChannel"),
    ("welcomemessage", STRING, "Users.WelcomeMessage"),
    ("silencemessage", STRING, "Users.SilenceMessage"),
    ("maxbored", INTEGER, "Bored.Cooldown"),
    ("hidenegativerules", BOOLEAN, "Information.HideNegativeRules"),
    ("rules", MapOf(INTEGER, STRING), "Information.Rules"),
    ("logchannel", CHANNEL, "Log.Channel"),
    ("maxerror", INTEGER, "Log.Cooldown"),
    ("maxwit", INTEGER, "Witty.Cooldown"),
    ("witty", MapOf(STRING, STRING), "Witty.Responses"),
    ("birthdayrole", ROLE, "Scheduler.BirthdayRole"),
    ("maxsearchresults", INTEGER, "Miscellaneous.MaxSearchResults"),
    ("statusdelaytime", INTEGER, "Status.Cooldown"),
    ("quotes", MapListOf(USER, ListOf(STRING, unique=False)), "Quote.Quotes"),
]

# Flat pre-10 maplists whose inner members are mention or id strings
_FLAT_REFERENCE_MAPLISTS: list[tuple[str, Callable[[str], Optional[str]], str]] = [
    ("command_channels", parse_channel_id, "Modules.CommandChannels"),
    ("command_roles", parse_role_id, "Modules.CommandRoles"),
    ("module_channels", parse_channel_id, "Modules.Channels"),
]

# Commands introduced with the categorised layout
_CATEGORISED_COMMANDS = (
    "addevent", "addbirthday", "autosilence", "silence", "unsilence", "wipewelcome",
    "new", "addquote", "removequote", "removealias", "delete", "createpoll",
    "deletepoll", "addoption",
)


def _timezone_location(offset: int) -> str:
    # Etc/GMT zones carry the reversed sign
    location = "Etc/GMT"
    if offset < 0:
        location += "+"
    return location + str(-offset)


async def flatten_legacy_layout(ctx: MigrationContext) -> None:
    legacy_version = ctx.store.version
    recovered: dict[str, Any] = {}
    for key, kind, path in _FLAT_FIELDS:
        found = ctx.legacy(key, kind)
        if found is not _MISSING:
            recovered[path] = found

    free = ctx.legacy("freechannels", _STRING_SET)
    if free is not _MISSING:
        recovered["Basic.FreeChannels"] = {
            ch: True for ch in (parse_channel_id(k) for k in free) if ch
        }
    for key, parse, path in _FLAT_REFERENCE_MAPLISTS:
        found = ctx.legacy(key, _STRING_MAPLIST)
        if found is not _MISSING:
            recovered[path] = {
                name.lower(): {ref: True for ref in (parse(m) for m in members) if ref}
                for name, members in found.items()
            }
    spoil = ctx.legacy("spoilchannels", ListOf(CHANNEL, unique=False))
    if spoil is not _MISSING:
        recovered["Filter.Channels"] = {"spoiler": dict.fromkeys(spoil, True)}

    aliases = ctx.legacy("aliases", MapOf(STRING, STRING))
    if legacy_version <= 1:
        aliases = {} if aliases is _MISSING else dict(aliases)
        aliases["cute"] = "pick cute"
    if aliases is not _MISSING:
        recovered["Basic.Aliases"] = aliases
    if legacy_version <= 3:
        recovered["Bored.Commands"] = {}
    else:
        bored = ctx.legacy("boredcommands", _STRING_SET)
        if bored is not _MISSING:
            recovered["Bored.Commands"] = bored
    if legacy_version <= 5:
        offset = ctx.legacy("timezone", INTEGER)
        recovered["Users.TimezoneLocation"] = _timezone_location(0 if offset is _MISSING else offset)

    mod_role = recovered.get("Basic.ModRole", "")
    if mod_role in ("", "0"):
        mod_role = ctx.mod_role()
    for path, value in recovered.items():
        ctx.put(path, value)
    _restrict(ctx, *_CATEGORISED_COMMANDS, mod_role=mod_role)


async def create_silence_role(ctx: MigrationContext) -> None:
    silent = ctx.legacy("silentrole", ROLE)
    if silent is not _MISSING and silent not in ("", "0"):
        return
    directory = ctx.require_directory()
    try:
        role = await directory.create_role(SILENCE_ROLE_NAME, read_only=True)
    except Exception as e:
        raise SideEffectFailure(f"Could not create the silence role: {e}") from e
    ctx.put("Basic.SilenceRole", role)
    logger.info("silence_role_created", role_id=role)


async def move_command_rate_settings(ctx: MigrationContext) -> None:
    max_duration = ctx.legacy("basic.commandmaxduration", INTEGER)
    per_duration = ctx.legacy("basic.commandperduration", INTEGER)
    if max_duration is not _MISSING:
        ctx.put("Modules.CommandMaxDuration", max_duration)
    if per_duration is not _MISSING:
        ctx.put("Modules.CommandPerDuration", per_duration)


async def restrict_audit(ctx: MigrationContext) -> None:
    _restrict(ctx, "getaudit")


async def reset_spam_pressure(ctx: MigrationContext) -> None:
    max_images = ctx.legacy("spam.maximagespam", INTEGER)
    max_pings = ctx.legacy("spam.maxpingspam", INTEGER)

    base, maximum = 10.0, 60.0
    span = maximum - base
    image = span / 6.0
    ping = span / 24.0
    if max_images is not _MISSING:
        image = span / (max_images + 1) if max_images > 0 else 0.0
    if max_pings is not _MISSING:
        ping = span / (max_pings + 1) if max_pings > 0 else 0.0

    ctx.put("Spam.BasePressure", base)
    ctx.put("Spam.MaxPressure", maximum)
    ctx.put("Spam.ImagePressure", image)
    ctx.put("Spam.PingPressure", ping)
    ctx.put("Spam.LengthPressure", span / (2000.0 * 4))
    ctx.put("Spam.RepeatPressure", base)
    ctx.put("Spam.PressureDecay", 2.5)


async def convert_groups_to_roles(ctx: MigrationContext) -> None:
    groups = ctx.legacy_first(("basic.groups", "groups"), _STRING_MAPLIST)
    if groups is _MISSING:
        return
    directory = ctx.require_directory()

    roles = dict(ctx.get("Users.Roles"))
    role_ids: dict[str, str] = {}
    for group, members in groups.items():
        name = group
        if directory.find_role_by_name(name) is not None:
            name = "sb-" + name
        try:
            role = await directory.create_role(name)
        except Exception as e:
            logger.warning("group_role_create_failed", group=group, error=str(e))
            continue
        role_ids[group.lower()] = role
        roles[role] = True
        for user in members:
            try:
                await directory.add_member_role(user, role)
            except Exception as e:
                logger.warning("group_member_add_failed", group=group, user_id=user, error=str(e))
        logger.info("group_converted_to_role", group=group, role_id=role, members=len(members))
    ctx.put("Users.Roles", roles)

    if ctx.secondary is None:
        logger.warning("schedule_rewrite_unavailable", groups=len(role_ids))
        return
    await _rewrite_group_schedule(ctx, role_ids)


async def _rewrite_group_schedule(ctx: MigrationContext, role_ids: dict[str, str]) -> None:
    try:
        rows = await ctx.secondary.get_schedule_rows(ctx.guild_id, SCHEDULE_GROUP_MESSAGE)
    except Exception as e:
        logger.warning("schedule_read_failed", error=str(e))
        return
    for row_id, data in rows:
        targets, sep, message = data.partition("|")
        if not sep:
            logger.warning("schedule_row_malformed", row_id=row_id)
            continue
        groups = targets.split("+")
        rewritten = [
            role_mention(role_ids[g.lower()]) if g.lower() in role_ids else g
            for g in groups
        ]
        try:
            await ctx.secondary.update_schedule_data(row_id, " ".join(rewritten) + "|" + message)
        except Exception as e:
            logger.warning("schedule_row_update_failed", row_id=row_id, error=str(e))


async def restrict_role_commands(ctx: MigrationContext) -> None:
    _restrict(ctx, "addrole", "removerole", "deleterole")


async def restrict_ban_newcomers(ctx: MigrationContext) -> None:
    _restrict(ctx, "bannewcomers")
    ctx.put("Spam.LockdownDuration", 120)


async def reset_command_prefix(ctx: MigrationContext) -> None:
    ctx.put("Basic.CommandPrefix", "!")


async def mark_setup_done(ctx: MigrationContext) -> None:
    ctx.store.setup_done = True


async def restrict_raid_commands(ctx: MigrationContext) -> None:
    _restrict(ctx, "banraid", "getraid", "wipe", "bannewcomers", "getpressure")
    span = ctx.get("Spam.MaxPressure") - ctx.get("Spam.BasePressure")
    ctx.put("Spam.LinePressure", span / 70.0)


_COLLECTION_SOURCES = ("basic.collections", "collections")
_SPLIT_COLLECTIONS = ("bucket", "emote", "status", "spoiler")


async def split_legacy_collections(ctx: MigrationContext) -> None:
    collections = ctx.legacy_first(_COLLECTION_SOURCES, _STRING_MAPLIST)
    mod_role = ctx.mod_role()
    if collections is not _MISSING:
        filters = dict(ctx.get("Filter.Filters"))
        filters["emote"] = collections.get("emote", {})
        filters["spoiler"] = collections.get("spoiler", {})
        ctx.put("Bucket.Items", collections.get("bucket", {}))
        ctx.put("Status.Lines", collections.get("status", {}))
        ctx.put("Filter.Filters", filters)
    _restrict(ctx, "addset", "removeset", "searchset", mod_role=mod_role)


async def import_collections_as_tags(ctx: MigrationContext) -> None:
    collections = ctx.legacy_first(_COLLECTION_SOURCES, _STRING_MAPLIST)
    if collections is _MISSING:
        return
    remaining = {k: v for k, v in collections.items() if k not in _SPLIT_COLLECTIONS}
    if not any(remaining.values()):
        return
    if ctx.secondary is None:
        raise SideEffectFailure("No item store available to import collections")
    for name, items in remaining.items():
        if not items:
            logger.info("collection_import_skipped_empty", collection=name)
            continue
        try:
            count = await ctx.secondary.import_tag(ctx.guild_id, name, items)
        except Exception as e:
            raise SideEffectFailure(f"Could not import collection {name}: {e}") from e
        logger.info("collection_imported", collection=name, items=count)


SPOILER_RESPONSE = (
    "[](/nospoilers) ```\nNO SPOILERS! Posting spoilers is a bannable offense. "
    "All discussion about new and future content MUST be in #mylittlespoilers.```"
)
EMOTE_RESPONSE = (
    "```\nThat emote isn't allowed here! Try to avoid using large or disturbing "
    "emotes, as they can be problematic.```"
)
EMOTE_TEMPLATE = "\\[\\]\\(\\/r?%%[-) \"]"

# References that older layouts persisted as "0" when unset
_ZERO_REFERENCES = (
    "Basic.ModRole",
    "Basic.ModChannel",
    "Basic.SilenceRole",
    "Spam.IgnoreRole",
    "Users.WelcomeChannel",
    "Users.NotifyChannel",
    "Log.Channel",
    "Scheduler.BirthdayRole",
)

_RENAMED_MODULES = {
    "schedule": "scheduler",
    "anti-spam": "spam",
    "help/about": "information",
}


# Legacy 20-era fields that moved to another category
_RENAMED_FIELDS: list[tuple[str, ValueKind, str]] = [
    ("basic.alertrole", ROLE, "Basic.ModRole"),
    ("search.maxsearchresults", INTEGER, "Miscellaneous.MaxSearchResults"),
    ("schedule.birthdayrole", ROLE, "Scheduler.BirthdayRole"),
    ("basic.trackuserleft", BOOLEAN, "Users.TrackUserLeft"),
    ("spam.silencemessage", STRING, "Users.SilenceMessage"),
    ("spam.silentrole", ROLE, "Basic.SilenceRole"),
]


async def move_renamed_settings(ctx: MigrationContext) -> None:
    recovered: dict[str, Any] = {}
    for legacy_path, kind, path in _RENAMED_FIELDS:
        found = ctx.legacy(legacy_path, kind)
        if found is not _MISSING:
            recovered[path] = found

    collections = ctx.legacy_first(_COLLECTION_SOURCES, _STRING_MAPLIST)
    spoiler_channels = ctx.legacy_first(
        ("spoiler.spoilchannels", "spoilchannels"), ListOf(CHANNEL, unique=False)
    )
    if collections is not _MISSING:
        recovered.update(_rebuild_filters(
            collections, [] if spoiler_channels is _MISSING else spoiler_channels
        ))

    for path, value in recovered.items():
        ctx.put(path, value)


async def normalize_references(ctx: MigrationContext) -> None:
    autosilence = ctx.get("Spam.AutoSilence")
    if autosilence == -2:
        ctx.put("Users.NotifyChannel", ctx.get("Log.Channel"))
    elif autosilence != 0:
        ctx.put("Users.NotifyChannel", ctx.get("Basic.ModChannel"))
    if autosilence < 0:
        ctx.put("Spam.AutoSilence", 0)

    for path in _ZERO_REFERENCES:
        if ctx.get(path) == "0":
            ctx.put(path, "")

    ctx.put("Modules.Channels", {
        _RENAMED_MODULES.get(k, k): v for k, v in ctx.get("Modules.Channels").items()
    })
    ctx.put("Modules.Disabled", {
        _RENAMED_MODULES.get(k, k): v for k, v in ctx.get("Modules.Disabled").items()
    })


def _rebuild_filters(collections: dict, spoiler_channels: list) -> dict[str, Any]:
    filters: dict[str, dict] = {}
    channels: dict[str, dict] = {}
    responses: dict[str, str] = {}
    templates: dict[str, str] = {}

    spoilers = collections.get("spoiler", {})
    if spoilers or spoiler_channels:
        filters["spoiler"] = dict(spoilers)
        channels["spoiler"] = dict.fromkeys(spoiler_channels, True)
        responses["spoiler"] = SPOILER_RESPONSE
    emotes = collections.get("emote", {})
    if emotes:
        filters["emote"] = dict(emotes)
        channels["emote"] = {}
        responses["emote"] = EMOTE_RESPONSE
        templates["emote"] = EMOTE_TEMPLATE

    return {
        "Bucket.Items": dict(collections.get("bucket", {})),
        "Status.Lines": dict(collections.get("status", {})),
        "Filter.Filters": filters,
        "Filter.Channels": channels,
        "Filter.Responses": responses,
        "Filter.Templates": templates,
    }


STEPS: tuple[MigrationStep, ...] = (
    MigrationStep(10, "flatten_legacy_layout", flatten_legacy_layout),
    MigrationStep(10, "create_silence_role", create_silence_role, side_effects=True),
    MigrationStep(11, "move_command_rate_settings", move_command_rate_settings),
    MigrationStep(12, "restrict_audit", restrict_audit),
    MigrationStep(13, "reset_spam_pressure", reset_spam_pressure),
    MigrationStep(14, "convert_groups_to_roles", convert_groups_to_roles, side_effects=True),
    MigrationStep(15, "restrict_role_commands", restrict_role_commands),
    MigrationStep(16, "restrict_ban_newcomers", restrict_ban_newcomers),
    MigrationStep(17, "reset_command_prefix", reset_command_prefix),
    MigrationStep(18, "mark_setup_done", mark_setup_done),
    MigrationStep(19, "restrict_raid_commands", restrict_raid_commands),
    MigrationStep(20, "split_legacy_collections", split_legacy_collections),
    MigrationStep(20, "import_collections_as_tags", import_collections_as_tags, side_effects=True),
    MigrationStep(21, "move_renamed_settings", move_renamed_settings),
    MigrationStep(21, "normalize_references", normalize_references),
)


class MigrationPipeline:
    """Runs the version-gated steps over a persisted blob.

    Args:
        steps: Ordered steps (defaults to the historical steps)
        strict: Raise MigrationError instead of skipping a failed step
        side_effect_lock: Lock held while a step with side effects runs
    """

    def __init__(
        self,
        steps: Iterable[MigrationStep] = STEPS,
        strict: bool = False,
        side_effect_lock: Optional[asyncio.Lock] = None,
    ):
        self.steps = sorted(steps, key=lambda s: s.applies_below)
        self.strict = strict
        self.side_effect_lock = side_effect_lock or asyncio.Lock()

    async def migrate(
        self,
        blob: Blob,
        guild_id: str = "",
        directory: Optional[Directory] = None,
        catalog: Optional[Catalog] = None,
        secondary: Optional[SecondaryStore] = None,
        registry: ConfigRegistry = REGISTRY,
    ) -> MigrationResult:
        """Decode a blob and bring it up to CONFIG_VERSION.

        Args:
            blob: Persisted configuration blob
            guild_id: Guild the blob belongs to
            directory: Guild directory (needed by role-creating steps)
            catalog: Module and command catalog bound to the new store
            secondary: Schedule and item store (needed by row-rewriting steps)
            registry: Registry describing the option tree

        Returns:
            MigrationResult holding a fresh store; needs_save is set when any
            step ran

        Raises:
            DecodeError: If the blob cannot be decoded into the current shape
            MigrationError: If strict and a step had to be skipped
        """
        raw = load_blob(blob)
        store = ConfigStore.from_blob(raw, directory, catalog, registry)
        result = MigrationResult(store=store, from_version=store.version)

        if store.version > CONFIG_VERSION:
            logger.warning("config_version_newer_than_supported",
                           guild_id=guild_id,
                           version=store.version,
                           supported=CONFIG_VERSION)
            return result
        if store.version == CONFIG_VERSION:
            return result

        ctx = MigrationContext(raw=raw, store=store, guild_id=guild_id,
                               directory=directory, secondary=secondary)
        with structlog.contextvars.bound_contextvars(guild_id=guild_id):
            logger.info("config_migration_started", from_version=result.from_version)
            for step in self.steps:
                if result.from_version >= step.applies_below:
                    continue
                try:
                    if step.side_effects:
                        async with self.side_effect_lock:
                            await step.transform(ctx)
                    else:
                        await step.transform(ctx)
                except (DecodeError, SideEffectFailure) as e:
                    if self.strict:
                        raise MigrationError(step.name, e) from e
                    logger.warning("migration_step_skipped", step=step.name, error=str(e))
                    result.skipped.append(step.name)
                else:
                    result.applied.append(step.name)

            store.fill()
            store.version = CONFIG_VERSION
            result.needs_save = True
            logger.info("config_migration_completed",
                        applied=len(result.applied),
                        skipped=len(result.skipped))
        return result
