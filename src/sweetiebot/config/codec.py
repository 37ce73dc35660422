"""Parsing and display formatting of individual configuration values.

Only atom kinds (scalars and references) are handled here; collections are
assembled element by element by the ConfigStore.
"""

from __future__ import annotations

from typing import Any, Optional

from ..catalog import Catalog
from ..directory import Directory
from ..errors import ParseError, ReferenceUnresolved
from .kinds import Atom, Primitive, Reference, Scalar, Target


def format_float(value: float) -> str:
    """Render a float the way users typed it: ``75`` rather than ``75.0``."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class ValueCodec:
    """Parses user text into stored values and renders stored values for display.

    Args:
        directory: Guild directory used to resolve and name references
        catalog: Registered modules and commands
    """

    def __init__(self, directory: Optional[Directory], catalog: Optional[Catalog]):
        self.directory = directory
        self.catalog = catalog

    def parse(self, kind: Atom, text: str) -> Any:
        """Parse ``text`` into a value of ``kind``.

        Raises:
            ParseError: If the text is not a valid value of the kind
            ReferenceUnresolved: If the directory has no matching entity
        """
        if isinstance(kind, Scalar):
            return self._parse_scalar(kind.primitive, text)
        return self._parse_reference(kind.target, text)

    def format(self, kind: Atom, value: Any) -> str:
        if isinstance(kind, Scalar):
            if kind.primitive is Primitive.FLOAT:
                return format_float(value)
            if kind.primitive is Primitive.BOOLEAN:
                return "true" if value else "false"
            return str(value)
        return self._format_reference(kind.target, str(value))

    def _parse_scalar(self, primitive: Primitive, text: str) -> Any:
        if primitive is Primitive.STRING:
            return text
        if primitive is Primitive.BOOLEAN:
            lowered = text.strip().lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
            raise ParseError(f"{text} must be either 'true' or 'false'")
        try:
            if primitive is Primitive.INTEGER:
                return int(text.strip(), 10)
            return float(text.strip())
        except ValueError:
            expected = "an integer" if primitive is Primitive.INTEGER else "a number"
            raise ParseError(f"{text} is not {expected}!") from None

    def _parse_reference(self, target: Target, text: str) -> str:
        text = text.strip()
        if target is Target.MODULE:
            name = text.lower()
            if self.catalog is None or not self.catalog.has_module(name):
                raise ParseError(f"{name} is not a module name!")
            return name
        if target is Target.COMMAND:
            name = text.lower()
            if self.catalog is None or not self.catalog.has_command(name):
                raise ParseError(f"{name} is not a command name!")
            return name
        if not text:
            return ""
        if self.directory is None:
            raise ReferenceUnresolved(f"Can't look up {text} without a server directory!")
        if target is Target.ROLE:
            return self.directory.resolve_role(text)
        if target is Target.CHANNEL:
            return self.directory.resolve_channel(text)
        return self.directory.resolve_user(text)

    def _format_reference(self, target: Target, value: str) -> str:
        if not value or self.directory is None:
            return value
        if target is Target.ROLE:
            name = self.directory.role_name(value)
            return "@" + name if name is not None else value
        if target is Target.CHANNEL:
            name = self.directory.channel_name(value)
            return "#" + name if name is not None else value
        if target is Target.USER:
            name = self.directory.user_display_name(value)
            return name if name is not None else value
        return value
