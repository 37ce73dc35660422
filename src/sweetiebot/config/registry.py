"""Configuration Registry - Defines every per-guild configuration option.

This module provides the Option and Category descriptors and the REGISTRY that
describes the shape of a guild's configuration tree. It is built once at import
time and never mutated.

Each option has:
- A category and a name (addressed by users as "Category.Option")
- A value kind (scalar, reference, list/set, map or maplist)
- The key it is persisted under in the guild's JSON blob
- A default used for new guilds (absent fields of persisted blobs decode to
  the kind's zero value instead)
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from .kinds import (
    BOOLEAN,
    CHANNEL,
    COMMAND,
    FLOAT,
    INTEGER,
    MODULE,
    ROLE,
    STRING,
    USER,
    ListOf,
    MapListOf,
    MapOf,
    ValueKind,
    zero_value,
)

# Latest version of the persisted configuration layout
CONFIG_VERSION = 21


@dataclass(frozen=True)
class Option:
    """Defines a single configuration option.

    Attributes:
        category: Name of the category the option belongs to
        name: Option name as shown to users
        kind: Value kind driving parsing, formatting and Set dispatch
        key: Key used in the persisted JSON object (defaults to name.lower())
        default: Default value for new guilds (defaults to the kind's zero value)
    """
    category: str
    name: str
    kind: ValueKind
    key: str = ""
    default: Any = None

    def __post_init__(self):
        """Derive the persisted key and default when they are not given."""
        if not self.key:
            object.__setattr__(self, "key", self.name.lower())
        if self.default is None:
            object.__setattr__(self, "default", zero_value(self.kind))

    @property
    def path(self) -> str:
        return f"{self.category}.{self.name}"

    def default_value(self) -> Any:
        """Return a fresh copy of the default so callers can mutate it."""
        return copy.deepcopy(self.default)


@dataclass(frozen=True)
class Category:
    name: str
    key: str
    options: tuple[Option, ...] = field(default_factory=tuple)

    def option(self, name: str) -> Optional[Option]:
        lowered = name.lower()
        for option in self.options:
            if option.name.lower() == lowered:
                return option
        return None


class ConfigRegistry:
    """Ordered, case-insensitive lookup over categories and their options."""

    def __init__(self, categories: list[Category]):
        self._categories = tuple(categories)
        self._by_name = {c.name.lower(): c for c in self._categories}

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def category(self, name: str) -> Optional[Category]:
        return self._by_name.get(name.lower())

    def option(self, category: str, name: str) -> Optional[Option]:
        found = self.category(category)
        if found is None:
            return None
        return found.option(name)

    def options(self) -> Iterator[Option]:
        for category in self._categories:
            yield from category.options

    def find_option(self, name: str) -> list[Option]:
        """Return every option called ``name`` across all categories."""
        lowered = name.lower()
        return [o for o in self.options() if o.name.lower() == lowered]


def _category(name: str, key: str, *options: tuple) -> Category:
    built = []
    for entry in options:
        option_name, kind, *rest = entry
        extra = rest[0] if rest else {}
        built.append(Option(category=name, name=option_name, kind=kind, **extra))
    return Category(name=name, key=key, options=tuple(built))


_BASE_PRESSURE = 10.0
_MAX_PRESSURE = 60.0
_PRESSURE_RANGE = _MAX_PRESSURE - _BASE_PRESSURE

ROLE_SET = ListOf(ROLE)
CHANNEL_SET = ListOf(CHANNEL)
STRING_SET = ListOf(STRING)


# Configuration Registry
# =======================
# Categories appear in the order they are listed to users.

REGISTRY = ConfigRegistry([
    _category(
        "Basic", "basic",
        ("IgnoreInvalidCommands", BOOLEAN),
        ("Importable", BOOLEAN),
        ("ModRole", ROLE),
        ("ModChannel", CHANNEL),
        ("FreeChannels", CHANNEL_SET),
        ("BotChannel", CHANNEL),
        ("Aliases", MapOf(STRING, STRING)),
        ("ListenToBots", BOOLEAN),
        ("CommandPrefix", STRING, {"default": "!"}),
        ("SilenceRole", ROLE),
    ),
    _category(
        "Modules", "modules",
        ("Channels", MapListOf(MODULE, CHANNEL_SET), {"key": "modulechannels"}),
        ("Disabled", ListOf(MODULE), {"key": "moduledisabled"}),
        ("CommandRoles", MapListOf(COMMAND, ROLE_SET)),
        ("CommandChannels", MapListOf(COMMAND, CHANNEL_SET)),
        ("CommandLimits", MapOf(COMMAND, INTEGER), {"key": "Commandlimits"}),
        ("CommandDisabled", ListOf(COMMAND)),
        ("CommandPerDuration", INTEGER, {"default": 3}),
        ("CommandMaxDuration", INTEGER, {"default": 15}),
    ),
    _category(
        "Spam", "spam",
        ("ImagePressure", FLOAT, {"default": _PRESSURE_RANGE / 6}),
        ("PingPressure", FLOAT, {"default": _PRESSURE_RANGE / 20}),
        ("LengthPressure", FLOAT, {"default": _PRESSURE_RANGE / 8000}),
        ("RepeatPressure", FLOAT, {"default": _BASE_PRESSURE}),
        ("LinePressure", FLOAT, {"default": _PRESSURE_RANGE / 70}),
        ("BasePressure", FLOAT, {"default": _BASE_PRESSURE}),
        ("PressureDecay", FLOAT, {"default": 2.5}),
        ("MaxPressure", FLOAT, {"default": _MAX_PRESSURE}),
        ("MaxChannelPressure", MapOf(CHANNEL, FLOAT)),
        ("MaxRemoveLookback", INTEGER, {"key": "MaxSpamRemoveLookback", "default": 4}),
        ("IgnoreRole", ROLE),
        ("RaidTime", INTEGER, {"key": "maxraidtime", "default": 240}),
        ("RaidSize", INTEGER, {"default": 4}),
        ("AutoSilence", INTEGER, {"default": 1}),
        ("LockdownDuration", INTEGER, {"default": 120}),
    ),
    _category(
        "Users", "users",
        ("TimezoneLocation", STRING),
        ("WelcomeChannel", CHANNEL),
        ("WelcomeMessage", STRING),
        ("SilenceMessage", STRING),
        ("Roles", ROLE_SET, {"key": "userroles"}),
        ("NotifyChannel", CHANNEL, {"key": "joinchannel"}),
        ("TrackUserLeft", BOOLEAN),
    ),
    _category(
        "Bucket", "bucket",
        ("MaxItems", INTEGER, {"key": "maxbucket", "default": 10}),
        ("MaxItemLength", INTEGER, {"key": "maxbucketlength", "default": 100}),
        ("MaxFightHP", INTEGER, {"default": 300}),
        ("MaxFightDamage", INTEGER, {"default": 60}),
        ("Items", STRING_SET),
    ),
    _category(
        "Markov", "markov",
        ("MaxPMlines", INTEGER, {"default": 5}),
        ("MaxLines", INTEGER, {"key": "maxquotelines", "default": 30}),
        ("DefaultLines", INTEGER, {"key": "defaultmarkovlines", "default": 5}),
        ("UseMemberNames", BOOLEAN, {"default": True}),
    ),
    _category(
        "Filter", "filter",
        ("Filters", MapListOf(STRING, STRING_SET)),
        ("Channels", MapListOf(STRING, CHANNEL_SET)),
        ("Responses", MapOf(STRING, STRING)),
        ("Templates", MapOf(STRING, STRING)),
    ),
    _category(
        "Bored", "Bored",
        ("Cooldown", INTEGER, {"key": "maxbored", "default": 500}),
        ("Commands", STRING_SET, {"key": "boredcommands", "default": {"!quote": True, "!drop": True}}),
    ),
    _category(
        "Information", "help",
        ("Rules", MapOf(INTEGER, STRING)),
        ("HideNegativeRules", BOOLEAN),
    ),
    _category(
        "Log", "log",
        ("Cooldown", INTEGER, {"key": "maxerror", "default": 4}),
        ("Channel", CHANNEL, {"key": "logchannel"}),
    ),
    _category(
        "Witty", "Wit",
        ("Responses", MapOf(STRING, STRING), {"key": "witty"}),
        ("Cooldown", INTEGER, {"key": "maxwit", "default": 180}),
    ),
    _category(
        "Scheduler", "scheduler",
        ("BirthdayRole", ROLE),
    ),
    _category(
        "Miscellaneous", "misc",
        ("MaxSearchResults", INTEGER, {"default": 10}),
    ),
    _category(
        "Status", "status",
        ("Cooldown", INTEGER, {"key": "statusdelaytime", "default": 3600}),
        ("Lines", STRING_SET),
    ),
    _category(
        "Quote", "quote",
        ("Quotes", MapListOf(USER, ListOf(STRING, unique=False))),
    ),
])


def get_option(path: str) -> Option:
    """Get an option descriptor from a fully qualified path.

    Args:
        path: Qualified option path (e.g., "Spam.MaxPressure", any casing)

    Returns:
        Option descriptor

    Raises:
        KeyError: If the path does not name a registered option
    """
    category, _, name = path.partition(".")
    option = REGISTRY.option(category, name) if name else None
    if option is None:
        raise KeyError(f"Configuration option '{path}' not found in registry")
    return option


def get_default_values() -> dict[str, Any]:
    """Get default values for all options.

    Returns:
        Dictionary of "Category.Option" -> default value
    """
    return {option.path: option.default_value() for option in REGISTRY.options()}


def get_collection_options() -> list[Option]:
    """Get every option whose value is a list, set, map or maplist.

    Returns:
        List of option descriptors
    """
    return [
        option for option in REGISTRY.options()
        if isinstance(option.kind, (ListOf, MapOf, MapListOf))
    ]
