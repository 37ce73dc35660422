"""Directory of a guild's roles, channels and members.

The configuration core only ever talks to the Directory protocol. Lookups are
synchronous reads of the bot's cached guild state; role creation and role
assignment are awaited and only used by migrations and first-time setup.

MemoryDirectory is a complete in-process implementation used when the bot runs
without a live gateway connection and in tests.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol

from .errors import ReferenceUnresolved

_ROLE_MENTION = re.compile(r"^<@&(\d+)>$")
_CHANNEL_MENTION = re.compile(r"^<#(\d+)>$")
_USER_MENTION = re.compile(r"^<@!?(\d+)>$")
_SNOWFLAKE = re.compile(r"^\d+$")


def parse_role_id(text: str) -> Optional[str]:
    """Extract a role id from a mention or raw id without consulting a directory."""
    return _parse_id(text, _ROLE_MENTION)


def parse_channel_id(text: str) -> Optional[str]:
    """Extract a channel id from a mention or raw id without consulting a directory."""
    return _parse_id(text, _CHANNEL_MENTION)


def parse_user_id(text: str) -> Optional[str]:
    """Extract a user id from a mention or raw id without consulting a directory."""
    return _parse_id(text, _USER_MENTION)


def role_mention(role_id: str) -> str:
    return f"<@&{role_id}>"


def _parse_id(text: str, mention: re.Pattern) -> Optional[str]:
    text = str(text).strip()
    match = mention.match(text)
    if match:
        return match.group(1)
    if _SNOWFLAKE.match(text):
        return text
    return None


class Directory(Protocol):
    """Live roster of a single guild."""

    guild_id: str

    def resolve_role(self, text: str) -> str:
        ...

    def resolve_channel(self, text: str) -> str:
        ...

    def resolve_user(self, text: str) -> str:
        ...

    def role_name(self, role_id: str) -> Optional[str]:
        ...

    def channel_name(self, channel_id: str) -> Optional[str]:
        ...

    def user_display_name(self, user_id: str) -> Optional[str]:
        ...

    def find_role_by_name(self, name: str) -> Optional[str]:
        ...

    async def create_role(self, name: str, *, read_only: bool = False) -> str:
        ...

    async def add_member_role(self, user_id: str, role_id: str) -> None:
        ...


@dataclass
class Role:
    id: str
    name: str
    read_only: bool = False


@dataclass
class Channel:
    id: str
    name: str


@dataclass
class Member:
    id: str
    username: str
    nick: str = ""
    roles: set[str] = field(default_factory=set)

    @property
    def display_name(self) -> str:
        return self.nick or self.username


class MemoryDirectory:
    """In-memory guild roster implementing the Directory protocol."""

    def __init__(
        self,
        guild_id: str,
        roles: Optional[list[Role]] = None,
        channels: Optional[list[Channel]] = None,
        members: Optional[list[Member]] = None,
    ):
        self.guild_id = guild_id
        self.roles: dict[str, Role] = {r.id: r for r in roles or []}
        self.channels: dict[str, Channel] = {c.id: c for c in channels or []}
        self.members: dict[str, Member] = {m.id: m for m in members or []}
        start = max((int(i) for i in itertools.chain(self.roles, self.channels, self.members)), default=0)
        self._next_id = itertools.count(max(start + 1, 900000000000000000))

    def resolve_role(self, text: str) -> str:
        if not _ROLE_MENTION.match(text):
            text = text.lstrip("@")
        role_id = parse_role_id(text)
        if role_id is not None:
            if role_id in self.roles:
                return role_id
            raise ReferenceUnresolved(f"{text} is not a role on this server!")
        return self._by_name(text, {r.id: r.name for r in self.roles.values()}, "role")

    def resolve_channel(self, text: str) -> str:
        if not _CHANNEL_MENTION.match(text):
            text = text.lstrip("#")
        channel_id = parse_channel_id(text)
        if channel_id is not None:
            if channel_id in self.channels:
                return channel_id
            raise ReferenceUnresolved(f"{text} is not a channel on this server!")
        return self._by_name(text, {c.id: c.name for c in self.channels.values()}, "channel")

    def resolve_user(self, text: str) -> str:
        user_id = parse_user_id(text)
        if user_id is not None:
            if user_id in self.members:
                return user_id
            raise ReferenceUnresolved(f"{text} is not a member of this server!")
        lowered = text.lower()
        matches = [
            m.id for m in self.members.values()
            if lowered in (m.username.lower(), m.nick.lower())
        ]
        return self._single(text, matches, "member")

    def role_name(self, role_id: str) -> Optional[str]:
        role = self.roles.get(role_id)
        return role.name if role else None

    def channel_name(self, channel_id: str) -> Optional[str]:
        channel = self.channels.get(channel_id)
        return channel.name if channel else None

    def user_display_name(self, user_id: str) -> Optional[str]:
        member = self.members.get(user_id)
        return member.display_name if member else None

    def find_role_by_name(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for role in self.roles.values():
            if role.name.lower() == lowered:
                return role.id
        return None

    async def create_role(self, name: str, *, read_only: bool = False) -> str:
        role = Role(id=str(next(self._next_id)), name=name, read_only=read_only)
        self.roles[role.id] = role
        return role.id

    async def add_member_role(self, user_id: str, role_id: str) -> None:
        if role_id not in self.roles:
            raise ReferenceUnresolved(f"{role_id} is not a role on this server!")
        member = self.members.get(user_id)
        if member is None:
            raise ReferenceUnresolved(f"{user_id} is not a member of this server!")
        member.roles.add(role_id)

    def _by_name(self, text: str, names: dict[str, str], what: str) -> str:
        lowered = text.strip().lower()
        matches = [entity_id for entity_id, name in names.items() if name.lower() == lowered]
        return self._single(text, matches, what)

    @staticmethod
    def _single(text: str, matches: list[str], what: str) -> str:
        if not matches:
            raise ReferenceUnresolved(f"Could not find any {what} named {text}!")
        if len(matches) > 1:
            raise ReferenceUnresolved(f"Could be more than one {what} named {text}! Use a mention or ID instead.")
        return matches[0]
