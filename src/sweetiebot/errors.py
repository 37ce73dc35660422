"""Error taxonomy for the configuration core.

User-facing errors (bad paths, bad values, missing arguments) are recovered
at the ConfigStore boundary and turned into messages. DecodeError is fatal
only for the initial decode of a persisted blob; inside a migration step it
and SideEffectFailure cause that step to be skipped.
"""

from __future__ import annotations

from typing import Sequence


class ConfigError(Exception):
    """Base class for all configuration errors."""


class PathNotFound(ConfigError):
    """Raised when a dotted path names no category or option."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Could not find configuration parameter {path}!")


class PathAmbiguous(ConfigError):
    """Raised when a bare option name exists in more than one category."""

    def __init__(self, option: str, candidates: Sequence[str]):
        self.option = option
        self.candidates = list(candidates)
        super().__init__("Could be any of the following:\n" + "\n".join(self.candidates))


class TypeMismatch(ConfigError):
    """Raised when a Set entry point does not fit the option's value kind."""


class ParseError(ConfigError):
    """Raised when text cannot be parsed into the expected value kind."""


class ReferenceUnresolved(ParseError):
    """Raised when the directory has no role, channel or user matching the text."""


class MissingArgument(ConfigError):
    """Raised when a Set call lacks a required key or value."""


class DecodeError(ConfigError):
    """Raised when a persisted blob does not match the shape being decoded."""


class SideEffectFailure(ConfigError):
    """Raised when a migration side effect (role creation, store rewrite) fails."""


class MigrationError(ConfigError):
    """Raised by a strict pipeline when a migration step had to be skipped."""

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"Migration step '{step}' failed: {cause}")
