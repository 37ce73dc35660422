"""Config Store - Live configuration values of a single guild.

This module provides the ConfigStore, which holds one guild's value tree and
serves the Get/Set operations used by the config commands:
1. Tolerant decoding of a persisted JSON blob (absent fields take zero values)
2. Read-only Get in three forms (discovery, category preview, single option)
3. Set dispatch on the option's value kind (atom, list/set, map, maplist)

Design:
- Values are addressed through the registry, never by reaching into the tree
- Every mutation builds the new value first and installs it with one
  assignment, so lock-free readers never observe a half-applied Set
- User-facing errors are caught in get()/set() and returned as messages
"""

import copy
import json
from collections.abc import Sequence
from typing import Any, Optional, Union

import structlog

from ..catalog import Catalog
from ..directory import Directory
from ..errors import (
    ConfigError,
    DecodeError,
    MissingArgument,
    ParseError,
    PathNotFound,
    TypeMismatch,
)
from .codec import ValueCodec
from .help import HELP_PLACEHOLDER, get_config_help
from .kinds import (
    ListOf,
    MapListOf,
    MapOf,
    Primitive,
    Reference,
    Scalar,
    ValueKind,
    is_atom,
    shape_tag,
    zero_value,
)
from .paths import resolve
from .registry import CONFIG_VERSION, REGISTRY, ConfigRegistry, Option

logger = structlog.get_logger(__name__)

Blob = Union[bytes, str, dict]


def lookup_key(data: dict, key: str) -> Any:
    """Find ``key`` in a decoded JSON object, preferring an exact match."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for candidate, value in data.items():
        if candidate.lower() == lowered:
            return value
    return None


def load_blob(blob: Blob) -> dict:
    """Decode a persisted blob into a JSON object.

    Raises:
        DecodeError: If the blob is not valid JSON or not an object
    """
    if isinstance(blob, dict):
        return blob
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Configuration blob is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError("Configuration blob is not a JSON object")
    return data


def decode_atom(kind: ValueKind, raw: Any, where: str) -> Any:
    """Decode one persisted scalar or reference value."""
    if isinstance(kind, Reference):
        if isinstance(raw, str):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            return str(raw)
        raise DecodeError(f"{where}: expected an identifier, got {raw!r}")

    primitive = kind.primitive
    if primitive is Primitive.STRING and isinstance(raw, str):
        return raw
    if primitive is Primitive.BOOLEAN and isinstance(raw, bool):
        return raw
    if primitive is Primitive.INTEGER and isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if primitive is Primitive.FLOAT and isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)
    raise DecodeError(f"{where}: expected {primitive.value}, got {raw!r}")


def decode_key(kind: ValueKind, raw: str, where: str) -> Any:
    """Decode a JSON object key (always a string) into a map key."""
    if isinstance(kind, Scalar) and kind.primitive is Primitive.INTEGER:
        try:
            return int(raw)
        except ValueError:
            raise DecodeError(f"{where}: map key {raw!r} is not an integer") from None
    return raw


def decode_value(kind: ValueKind, raw: Any, where: str) -> Any:
    """Decode a persisted value of any kind. ``None`` decodes to the zero value."""
    if raw is None:
        return zero_value(kind)
    if is_atom(kind):
        return decode_atom(kind, raw, where)

    if isinstance(kind, ListOf):
        if kind.unique:
            if not isinstance(raw, dict):
                raise DecodeError(f"{where}: expected an object of set members")
            return {decode_key(kind.element, k, where): True for k in raw}
        if not isinstance(raw, list):
            raise DecodeError(f"{where}: expected an array")
        return [decode_atom(kind.element, item, where) for item in raw]

    if not isinstance(raw, dict):
        raise DecodeError(f"{where}: expected an object")
    if isinstance(kind, MapOf):
        return {
            decode_key(kind.key, k, where): decode_atom(kind.value, v, where)
            for k, v in raw.items()
        }
    return {
        decode_key(kind.key, k, where): decode_value(kind.element, v, where)
        for k, v in raw.items()
    }


def encode_value(kind: ValueKind, value: Any) -> Any:
    """Encode a stored value into its JSON form."""
    if is_atom(kind):
        return value
    if isinstance(kind, ListOf):
        return dict(value) if kind.unique else list(value)
    if isinstance(kind, MapOf):
        return {str(k): v for k, v in value.items()}
    return {str(k): encode_value(kind.element, v) for k, v in value.items()}


class ConfigStore:
    """One guild's configuration values plus its schema version.

    Attributes:
        registry: Registry describing the option tree
        codec: Value codec bound to the guild's directory and the catalog
        version: Schema version of the values
        setup_done: Whether first-time setup has run
    """

    def __init__(
        self,
        directory: Optional[Directory] = None,
        catalog: Optional[Catalog] = None,
        registry: ConfigRegistry = REGISTRY,
    ):
        """Create a store holding default values at the current version."""
        self.registry = registry
        self.codec = ValueCodec(directory, catalog)
        self.version = CONFIG_VERSION
        self.setup_done = False
        self._values: dict[str, Any] = {
            option.path: option.default_value() for option in registry.options()
        }

    @classmethod
    def from_blob(
        cls,
        blob: Blob,
        directory: Optional[Directory] = None,
        catalog: Optional[Catalog] = None,
        registry: ConfigRegistry = REGISTRY,
    ) -> "ConfigStore":
        """Decode a persisted blob into a store of the current shape.

        Absent fields take their kind's zero value, not the default, and the
        persisted version is kept so the migration pipeline can gate on it.

        Args:
            blob: Persisted JSON (bytes, text or an already decoded object)
            directory: Guild directory for reference parsing and display
            catalog: Module and command catalog
            registry: Registry describing the option tree

        Returns:
            Decoded store with every collection present

        Raises:
            DecodeError: If the blob does not match the current shape
        """
        data = load_blob(blob)
        store = cls(directory, catalog, registry)

        version = lookup_key(data, "version")
        if version is None:
            version = 0
        if not isinstance(version, int) or isinstance(version, bool):
            raise DecodeError(f"version: expected integer, got {version!r}")
        setup_done = lookup_key(data, "setupdone")
        if setup_done is not None and not isinstance(setup_done, bool):
            raise DecodeError(f"setupdone: expected boolean, got {setup_done!r}")

        store.version = version
        store.setup_done = bool(setup_done)
        for category in registry:
            section = lookup_key(data, category.key)
            if section is not None and not isinstance(section, dict):
                raise DecodeError(f"{category.key}: expected an object")
            for option in category.options:
                raw = lookup_key(section, option.key) if section else None
                where = f"{category.key}.{option.key}"
                store._values[option.path] = decode_value(option.kind, raw, where)
        return store

    def bind(self, directory: Optional[Directory], catalog: Optional[Catalog]) -> None:
        """Point the codec at a (new) directory and catalog."""
        self.codec = ValueCodec(directory, catalog)

    def reset(self) -> None:
        """Replace every value with its default and clear the setup flag."""
        self._values = {
            option.path: option.default_value() for option in self.registry.options()
        }
        self.version = CONFIG_VERSION
        self.setup_done = False

    def fill(self) -> None:
        """Ensure every collection option holds a collection, never None."""
        for option in self.registry.options():
            if self._values.get(option.path) is None:
                self._values[option.path] = zero_value(option.kind)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"version": self.version, "setupdone": self.setup_done}
        for category in self.registry:
            data[category.key] = {
                option.key: encode_value(option.kind, self._values[option.path])
                for option in category.options
            }
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    # Value access
    # ============

    def option(self, category: str, name: str) -> Option:
        option = self.registry.option(category, name)
        if option is None:
            raise PathNotFound(f"{category}.{name}")
        return option

    def value(self, category: str, name: str) -> Any:
        """Read the current value of ``Category.Option``.

        Collections are returned as stored; callers must not mutate them.
        """
        return self._values[self.option(category, name).path]

    def install(self, option: Option, value: Any) -> None:
        """Replace an option's value in one assignment."""
        self._values[option.path] = value

    def module_disabled(self, module: str) -> bool:
        return module.lower() in self.value("Modules", "Disabled")

    def command_disabled(self, command: str) -> bool:
        return command.lower() in self.value("Modules", "CommandDisabled")

    # Get
    # ===

    def summary(self) -> dict[str, dict[str, str]]:
        """Structured discovery listing: category -> option -> shape tag."""
        return {
            category.name: {option.name: shape_tag(option.kind) for option in category.options}
            for category in self.registry
        }

    def describe_category(self, name: str) -> list[tuple[str, str, str]]:
        """Return (option, help text, value preview) for each option of a category.

        Raises:
            PathNotFound: If ``name`` is not a category
        """
        category = self.registry.category(name)
        if category is None:
            raise PathNotFound(name)
        described = []
        for option in category.options:
            help_text = get_config_help(category.name, option.name) or HELP_PLACEHOLDER
            described.append((option.name, help_text, self.preview(option)))
        return described

    def preview(self, option: Option) -> str:
        lines = self.format_option(option)
        if not lines:
            return "[empty]"
        if len(lines) == 1:
            return lines[0]
        return f"[{len(lines)} items]"

    def format_option(self, option: Option) -> list[str]:
        """Render an option's value as display lines."""
        return self._format(option.kind, self._values[option.path])

    def _format(self, kind: ValueKind, value: Any) -> list[str]:
        fmt = self.codec.format
        if is_atom(kind):
            return [fmt(kind, value)]
        if isinstance(kind, ListOf):
            return [fmt(kind.element, item) for item in value]
        if isinstance(kind, MapOf):
            return [f'"{fmt(kind.key, k)}": {fmt(kind.value, v)}' for k, v in value.items()]
        lines = []
        for k, items in value.items():
            if len(items) == 1:
                lines.append(f'"{fmt(kind.key, k)}": {", ".join(self._format(kind.element, items))}')
            else:
                lines.append(f'"{fmt(kind.key, k)}": [{len(items)} items]')
        return lines

    def get(self, path: Optional[str] = None, key: Optional[str] = None) -> list[str]:
        """Render configuration as display lines.

        Args:
            path: None for the discovery listing, a category for value
                previews, or ``Category.Option[.Key]`` for a single option
            key: Map key to look up (ignored when the path carries one)

        Returns:
            Display lines; errors are returned as lines, never raised
        """
        try:
            if not path:
                return [
                    f"{category}: " + ", ".join(
                        f"{name} {tag}" if tag else name for name, tag in options.items()
                    )
                    for category, options in self.summary().items()
                ]
            target = resolve(path, self.registry)
            if target.option is None:
                return [f"{name}: {preview}" for name, _, preview in self.describe_category(target.category)]

            option = self.registry.option(target.category, target.option)
            if option is None:
                raise PathNotFound(path)
            lookup = target.key if target.key is not None else key
            if lookup is None:
                return self.format_option(option)
            return self._get_key(option, lookup)
        except ConfigError as e:
            return str(e).splitlines()

    def _get_key(self, option: Option, key: str) -> list[str]:
        kind = option.kind
        if not isinstance(kind, (MapOf, MapListOf)):
            return [f"{option.name} is not a map."]
        try:
            parsed = self.codec.parse(kind.key, key.lower())
        except ParseError:
            return [f"can't find {key}"]
        found = self._values[option.path].get(parsed)
        if found is None or found == "" or found == [] or found == {}:
            return [f"can't find {key}"]
        if isinstance(kind, MapOf):
            return [self.codec.format(kind.value, found)]
        return self._format(kind.element, found)

    # Set
    # ===

    def _target(self, path: str) -> tuple[Option, Optional[str]]:
        """Resolve a Set path to its option and optional map key."""
        try:
            target = resolve(path, self.registry)
        except PathNotFound:
            raise PathNotFound(path) from None
        if target.option is None:
            raise TypeMismatch(
                "Can't set a configuration category! "
                "Use \"Category.Option\" to set a specific option."
            )
        option = self.registry.option(target.category, target.option)
        if option is None:
            raise PathNotFound(path)
        if target.key is not None and not isinstance(option.kind, (MapOf, MapListOf)):
            raise TypeMismatch(f"{option.path} is not a map and has no keys!")
        return option, target.key

    def set(self, path: str, value: str, *extra: str) -> tuple[str, bool]:
        """Set an option from user text.

        Args:
            path: ``Category.Option`` (or a bare option name), optionally
                followed by ``.Key`` for maps and maplists
            value: New value, or the map key for maps and maplists
            *extra: Further list elements, or the map value(s)

        Returns:
            Tuple of (message, success). On success the message is the new
            value as displayed.
        """
        try:
            option, key = self._target(path)
            kind = option.kind
            if is_atom(kind):
                if isinstance(kind, Scalar) and kind.primitive is Primitive.BOOLEAN:
                    try:
                        return self._set_value(option, value), True
                    except ParseError:
                        return f"{path} must be set to either 'true' or 'false'", False
                return self._set_value(option, value), True
            if isinstance(kind, ListOf):
                return self._set_list(option, [value, *extra]), True
            if key is None:
                key, values = value, list(extra)
            else:
                values = [value, *extra]
            if isinstance(kind, MapOf):
                return self._set_map_value(option, key, values[0] if values else None), True
            return self._set_map_list(option, key, values), True
        except ConfigError as e:
            logger.debug("config_set_rejected", path=path, error=str(e))
            return str(e), False

    def set_value(self, path: str, text: str) -> str:
        """Set a scalar or reference option.

        Raises:
            TypeMismatch: If the option is a collection
        """
        option, _ = self._target(path)
        if not is_atom(option.kind):
            raise TypeMismatch(f"{option.path} is a {shape_tag(option.kind)}, not a single value!")
        return self._set_value(option, text)

    def set_list(self, path: str, values: Sequence[str]) -> str:
        """Replace a list or set option with ``values``.

        Raises:
            TypeMismatch: If the option is not a list or set
        """
        option, _ = self._target(path)
        if not isinstance(option.kind, ListOf):
            raise TypeMismatch(f"{option.path} is not a list!")
        return self._set_list(option, values)

    def set_map_value(self, path: str, key: str, value: Optional[str]) -> str:
        """Set (or with no value, delete) one key of a map option.

        Raises:
            TypeMismatch: If the option is not a map
        """
        option, _ = self._target(path)
        if not isinstance(option.kind, MapOf):
            raise TypeMismatch(f"{option.path} is not a map!")
        return self._set_map_value(option, key, value)

    def set_map_list(self, path: str, key: str, values: Sequence[str]) -> str:
        """Replace (or with no values, delete) one key of a maplist option.

        Raises:
            TypeMismatch: If the option is not a maplist
        """
        option, _ = self._target(path)
        if not isinstance(option.kind, MapListOf):
            raise TypeMismatch(f"{option.path} is not a maplist!")
        return self._set_map_list(option, key, values)

    def _set_value(self, option: Option, text: str) -> str:
        parsed = self.codec.parse(option.kind, text)
        self.install(option, parsed)
        return self.codec.format(option.kind, parsed)

    def _build_list(self, kind: ListOf, values: Sequence[str]) -> Any:
        parsed = []
        if values and values[0]:
            for text in values:
                try:
                    parsed.append(self.codec.parse(kind.element, text))
                except ParseError as e:
                    raise ParseError(f"Value error: {e}") from e
        if kind.unique:
            return dict.fromkeys(parsed, True)
        return parsed

    def _render_list(self, kind: ListOf, value: Any) -> str:
        return "[" + ", ".join(self._format(kind, value)) + "]"

    def _set_list(self, option: Option, values: Sequence[str]) -> str:
        built = self._build_list(option.kind, values)
        self.install(option, built)
        return self._render_list(option.kind, built)

    def _parse_key(self, kind: Union[MapOf, MapListOf], key: str) -> Any:
        try:
            return self.codec.parse(kind.key, key.lower())
        except ParseError as e:
            raise ParseError(f"Key error: {e}") from e

    def _set_map_value(self, option: Option, key: str, value: Optional[str]) -> str:
        kind = option.kind
        if not key:
            raise MissingArgument("No value parameter given")
        parsed_key = self._parse_key(kind, key)
        updated = dict(self._values[option.path])
        if not value:
            updated.pop(parsed_key, None)
            self.install(option, updated)
            return f"Deleted {key.lower()}"
        try:
            parsed = self.codec.parse(kind.value, value)
        except ParseError as e:
            raise ParseError(f"Value error: {e}") from e
        updated[parsed_key] = parsed
        self.install(option, updated)
        return f"{self.codec.format(kind.key, parsed_key)}: {self.codec.format(kind.value, parsed)}"

    def _set_map_list(self, option: Option, key: str, values: Sequence[str]) -> str:
        kind = option.kind
        if not key:
            raise MissingArgument("No key specified")
        parsed_key = self._parse_key(kind, key)
        updated = copy.copy(self._values[option.path])
        if not values or not values[0]:
            updated.pop(parsed_key, None)
            self.install(option, updated)
            return f"Deleted {key.lower()}"
        built = self._build_list(kind.element, values)
        updated[parsed_key] = built
        self.install(option, updated)
        return f"{self.codec.format(kind.key, parsed_key)}: {self._render_list(kind.element, built)}"


def qualified_path(raw: str, registry: ConfigRegistry = REGISTRY) -> str:
    """Qualify a user path for display, leaving unknown paths untouched.

    Raises:
        PathAmbiguous: If a bare option name exists in several categories
    """
    try:
        return str(resolve(raw, registry))
    except PathNotFound:
        return raw

