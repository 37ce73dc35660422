"""Value kinds describing the shape of every configuration option."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Union


class Primitive(enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"


class Target(enum.Enum):
    ROLE = "role"
    CHANNEL = "channel"
    USER = "user"
    MODULE = "module"
    COMMAND = "command"


@dataclass(frozen=True)
class Scalar:
    primitive: Primitive


@dataclass(frozen=True)
class Reference:
    """String-backed identifier that only means something to the directory."""

    target: Target


Atom = Union[Scalar, Reference]


@dataclass(frozen=True)
class ListOf:
    """Ordered list, or a set (element -> True) when ``unique`` is set."""

    element: Atom
    unique: bool = True


@dataclass(frozen=True)
class MapOf:
    key: Atom
    value: Atom


@dataclass(frozen=True)
class MapListOf:
    key: Atom
    element: ListOf


ValueKind = Union[Scalar, Reference, ListOf, MapOf, MapListOf]

STRING = Scalar(Primitive.STRING)
INTEGER = Scalar(Primitive.INTEGER)
FLOAT = Scalar(Primitive.FLOAT)
BOOLEAN = Scalar(Primitive.BOOLEAN)
ROLE = Reference(Target.ROLE)
CHANNEL = Reference(Target.CHANNEL)
USER = Reference(Target.USER)
MODULE = Reference(Target.MODULE)
COMMAND = Reference(Target.COMMAND)


def is_atom(kind: ValueKind) -> bool:
    return isinstance(kind, (Scalar, Reference))


def shape_tag(kind: ValueKind) -> str:
    """Suffix shown next to an option name in the discovery listing."""
    if isinstance(kind, ListOf):
        return "[list]"
    if isinstance(kind, MapOf):
        return "[map]"
    if isinstance(kind, MapListOf):
        return "[maplist]"
    return ""


def zero_value(kind: ValueKind) -> Any:
    """Value a field takes when it is absent from a persisted blob."""
    if isinstance(kind, Reference):
        return ""
    if isinstance(kind, Scalar):
        return {
            Primitive.STRING: "",
            Primitive.INTEGER: 0,
            Primitive.FLOAT: 0.0,
            Primitive.BOOLEAN: False,
        }[kind.primitive]
    if isinstance(kind, ListOf) and not kind.unique:
        return []
    return {}
