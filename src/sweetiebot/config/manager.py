"""Guild Configuration Manager - Owns every loaded guild's ConfigStore.

This module ties the configuration core to persistence and provides:
1. Loading a guild (decode, migrate, re-save when the layout was upgraded)
2. Serialized mutation per guild (Set, first-time setup) with persistence
3. Subscriber notifications after successful changes

Design:
- One GuildContext per guild, each with its own asyncio.Lock
- Reads never lock; a store is only ever replaced or mutated by single
  assignments, so readers see either the old or the new value
- Migration steps with side effects also hold a manager-wide lock, since
  role creation and row rewrites are not transactional with the blob save
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import structlog

from ..catalog import Catalog
from ..directory import Directory
from .migrations import MigrationPipeline, MigrationResult, SecondaryStore
from .registry import REGISTRY, ConfigRegistry
from .setup import run_setup
from .store import ConfigStore

logger = structlog.get_logger(__name__)


class ConfigPersistence(Protocol):
    """Load/save of the opaque configuration blob per guild."""

    async def load(self, guild_id: str) -> Optional[str]:
        ...

    async def save(self, guild_id: str, data: str) -> None:
        ...

    async def delete(self, guild_id: str) -> bool:
        ...


@dataclass
class GuildContext:
    guild_id: str
    store: ConfigStore
    directory: Optional[Directory] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class GuildConfigManager:
    """Manages per-guild configuration with per-guild locking.

    Attributes:
        persistence: Blob storage
        catalog: Module and command catalog shared by every guild
        secondary: Schedule and item store used by migrations
        pipeline: Migration pipeline run on load
    """

    def __init__(
        self,
        persistence: ConfigPersistence,
        catalog: Optional[Catalog] = None,
        secondary: Optional[SecondaryStore] = None,
        strict_migrations: bool = False,
        registry: ConfigRegistry = REGISTRY,
    ):
        self.persistence = persistence
        self.catalog = catalog
        self.secondary = secondary
        self.registry = registry
        self._side_effect_lock = asyncio.Lock()
        self.pipeline = MigrationPipeline(strict=strict_migrations,
                                          side_effect_lock=self._side_effect_lock)
        self._guilds: dict[str, GuildContext] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._subscribers: list[Callable[[str, str, str], Any]] = []

    def _lock_for(self, guild_id: str) -> asyncio.Lock:
        return self._locks.setdefault(guild_id, asyncio.Lock())

    async def load_guild(self, guild_id: str, directory: Optional[Directory] = None) -> GuildContext:
        """Load (or create) a guild's configuration.

        Args:
            guild_id: Guild to load
            directory: The guild's directory

        Returns:
            The guild's context

        Raises:
            DecodeError: If the stored blob cannot be decoded
            MigrationError: If migrations are strict and a step failed
        """
        lock = self._lock_for(guild_id)
        async with lock:
            blob = await self.persistence.load(guild_id)
            if blob is None:
                store = ConfigStore(directory, self.catalog, self.registry)
                logger.info("guild_config_created", guild_id=guild_id)
            else:
                result = await self.pipeline.migrate(
                    blob,
                    guild_id=guild_id,
                    directory=directory,
                    catalog=self.catalog,
                    secondary=self.secondary,
                    registry=self.registry,
                )
                store = result.store
                if result.needs_save:
                    await self.persistence.save(guild_id, store.to_json())
                    self._log_migration(guild_id, result)

            context = GuildContext(guild_id, store, directory, lock)
            self._guilds[guild_id] = context
        logger.info("guild_config_loaded", guild_id=guild_id, version=store.version)
        return context

    @staticmethod
    def _log_migration(guild_id: str, result: MigrationResult) -> None:
        logger.info("guild_config_migrated",
                    guild_id=guild_id,
                    from_version=result.from_version,
                    applied=result.applied,
                    skipped=result.skipped)

    def context(self, guild_id: str) -> GuildContext:
        """Get a loaded guild's context.

        Raises:
            KeyError: If the guild has not been loaded
        """
        if guild_id not in self._guilds:
            raise KeyError(f"Guild {guild_id} is not loaded")
        return self._guilds[guild_id]

    def store(self, guild_id: str) -> ConfigStore:
        return self.context(guild_id).store

    def get_config(self, guild_id: str, path: Optional[str] = None, key: Optional[str] = None) -> list[str]:
        return self.store(guild_id).get(path, key)

    async def set_config(self, guild_id: str, path: str, value: str, *extra: str) -> tuple[str, bool]:
        """Set an option and persist the guild on success.

        Returns:
            Tuple of (message, success) from ConfigStore.set
        """
        context = self.context(guild_id)
        async with context.lock:
            # Removed or reloaded while the lock was awaited
            context = self.context(guild_id)
            message, ok = context.store.set(path, value, *extra)
            if ok:
                await self.persistence.save(guild_id, context.store.to_json())
        if ok:
            logger.info("guild_config_set", guild_id=guild_id, path=path)
            await self._notify_subscribers(guild_id, path, message)
        return message, ok

    async def setup_guild(self, guild_id: str, args: Sequence[str]) -> tuple[str, bool]:
        """Run first-time setup and publish the result only on success."""
        context = self.context(guild_id)
        if context.directory is None:
            return "Can't find this server's directory!", False
        async with context.lock:
            context = self.context(guild_id)
            staged = ConfigStore.from_blob(context.store.to_dict(), context.directory,
                                           self.catalog, self.registry)
            message, ok = await run_setup(staged, context.directory, self.catalog, args)
            if ok:
                await self.persistence.save(guild_id, staged.to_json())
                context.store = staged
        if ok:
            await self._notify_subscribers(guild_id, "setup", message)
        return message, ok

    async def save_guild(self, guild_id: str) -> None:
        context = self.context(guild_id)
        async with context.lock:
            context = self.context(guild_id)
            await self.persistence.save(guild_id, context.store.to_json())

    async def remove_guild(self, guild_id: str) -> bool:
        """Forget a guild and delete its stored blob."""
        lock = self._lock_for(guild_id)
        async with lock:
            self._guilds.pop(guild_id, None)
            deleted = await self.persistence.delete(guild_id)
        logger.info("guild_config_removed", guild_id=guild_id, deleted=deleted)
        return deleted

    def guild_ids(self) -> list[str]:
        return list(self._guilds)

    async def _notify_subscribers(self, guild_id: str, path: str, message: str) -> None:
        """Notify all subscribers of a configuration change.

        Args:
            guild_id: Guild that changed
            path: Path that was set ("setup" for first-time setup)
            message: Result message of the change
        """
        for subscriber in self._subscribers:
            try:
                result = subscriber(guild_id, path, message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error("subscriber_notification_failed",
                             guild_id=guild_id,
                             path=path,
                             subscriber=getattr(subscriber, "__name__", repr(subscriber)),
                             error=str(e))

    def subscribe(self, callback: Callable[[str, str, str], Any]) -> None:
        """Subscribe to configuration change events.

        Args:
            callback: Called as (guild_id, path, message) after each
                successful change; may be sync or async
        """
        self._subscribers.append(callback)
        logger.info("config_subscriber_added",
                    callback=getattr(callback, "__name__", repr(callback)))
