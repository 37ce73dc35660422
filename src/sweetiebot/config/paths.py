"""Resolution of user-typed dotted paths into qualified option paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import PathAmbiguous, PathNotFound
from .registry import REGISTRY, ConfigRegistry


@dataclass(frozen=True)
class Path:
    """A qualified ``Category[.Option[.Key]]`` path. Never persisted."""

    category: str
    option: Optional[str] = None
    key: Optional[str] = None

    def __str__(self) -> str:
        return ".".join(p for p in (self.category, self.option, self.key) if p is not None)


def _split(raw: str) -> list[str]:
    return raw.strip().lower().split(".", 2)


def resolve(raw: str, registry: ConfigRegistry = REGISTRY) -> Path:
    """Qualify a user-typed path, filling in an omitted category.

    Users usually type bare option names ("maxpressure"); a bare name found in
    exactly one category is qualified with it, and a name found in several
    categories is reported with every candidate rather than guessing.

    Args:
        raw: Path as typed by the user, any casing
        registry: Registry to resolve against

    Returns:
        Path with registry casing for the category and option (when known)

    Raises:
        PathNotFound: If the first segment is neither a category nor an option
        PathAmbiguous: If a bare option name exists in more than one category
    """
    segments = _split(raw)
    if not segments[0]:
        raise PathNotFound(raw)

    category = registry.category(segments[0])
    if category is None:
        matches = registry.find_option(segments[0])
        if not matches:
            raise PathNotFound(raw)
        if len(matches) > 1:
            raise PathAmbiguous(segments[0], [m.path for m in matches])
        category = registry.category(matches[0].category)
        segments = _split(f"{category.name}.{raw.strip()}")

    if len(segments) < 2:
        return Path(category.name)

    option = category.option(segments[1])
    key = segments[2] if len(segments) > 2 else None
    return Path(category.name, option.name if option else segments[1], key)
