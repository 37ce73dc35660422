"""Registered modules and their commands.

Module and Command configuration values are validated against the catalog,
and first-time setup uses it to find sensitive commands and the commands of
modules it disables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class CommandInfo:
    name: str
    sensitive: bool = False


class Catalog:
    """Case-insensitive registry of module names and command names."""

    def __init__(self):
        self._modules: dict[str, list[CommandInfo]] = {}

    def register_module(self, name: str, commands: Iterable[CommandInfo | str] = ()) -> None:
        infos = [c if isinstance(c, CommandInfo) else CommandInfo(c) for c in commands]
        self._modules.setdefault(name.lower(), []).extend(infos)

    def module_names(self) -> list[str]:
        return list(self._modules)

    def command_names(self) -> list[str]:
        return [c.name.lower() for commands in self._modules.values() for c in commands]

    def has_module(self, name: str) -> bool:
        return name.lower() in self._modules

    def has_command(self, name: str) -> bool:
        return name.lower() in self.command_names()

    def commands_in(self, module: str) -> list[str]:
        return [c.name.lower() for c in self._modules.get(module.lower(), [])]

    def sensitive_commands(self) -> list[str]:
        return [
            c.name.lower()
            for commands in self._modules.values()
            for c in commands
            if c.sensitive
        ]
