"""Unit tests for the guild configuration manager."""

import asyncio
import json

import pytest

from src.sweetiebot.config.manager import GuildConfigManager
from src.sweetiebot.errors import DecodeError

GUILD = "1000"


@pytest.fixture
def manager(persistence, catalog, secondary):
    return GuildConfigManager(persistence, catalog=catalog, secondary=secondary)


class TestLoading:
    """Test loading guilds from persisted blobs."""

    @pytest.mark.asyncio
    async def test_new_guild_gets_unsaved_defaults(self, manager, persistence, directory):
        context = await manager.load_guild(GUILD, directory)
        assert context.store.value("Basic", "CommandPrefix") == "!"
        assert context.directory is directory
        assert persistence.saves == []
        assert manager.guild_ids() == [GUILD]

    @pytest.mark.asyncio
    async def test_current_blob_is_not_resaved(self, manager, persistence):
        persistence.blobs[GUILD] = json.dumps({"version": 21, "spam": {"maxpressure": 75}})
        await manager.load_guild(GUILD)
        assert manager.store(GUILD).value("Spam", "MaxPressure") == 75.0
        assert persistence.saves == []

    @pytest.mark.asyncio
    async def test_migrated_blob_is_resaved(self, manager, persistence):
        persistence.blobs[GUILD] = json.dumps({"version": 20, "basic": {"commandprefix": "?"}})
        await manager.load_guild(GUILD)
        assert persistence.saves == [GUILD]
        assert json.loads(persistence.blobs[GUILD])["version"] == 21

    @pytest.mark.asyncio
    async def test_corrupt_blob_fails_load(self, manager, persistence):
        persistence.blobs[GUILD] = "{not json"
        with pytest.raises(DecodeError):
            await manager.load_guild(GUILD)
        assert manager.guild_ids() == []

    def test_unknown_guild(self, manager):
        with pytest.raises(KeyError, match="not loaded"):
            manager.context("404")


class TestSetConfig:
    """Test Set through the manager."""

    @pytest.mark.asyncio
    async def test_successful_set_is_saved_and_notified(self, manager, persistence, directory):
        await manager.load_guild(GUILD, directory)
        events = []
        manager.subscribe(lambda guild_id, path, message: events.append((guild_id, path, message)))

        message, ok = await manager.set_config(GUILD, "maxpressure", "75")

        assert (message, ok) == ("75", True)
        assert events == [(GUILD, "maxpressure", "75")]
        assert json.loads(persistence.blobs[GUILD])["spam"]["maxpressure"] == 75.0
        assert manager.get_config(GUILD, "spam.maxpressure") == ["75"]

    @pytest.mark.asyncio
    async def test_failed_set_is_not_saved(self, manager, persistence, directory):
        await manager.load_guild(GUILD, directory)
        events = []
        manager.subscribe(lambda *args: events.append(args))

        message, ok = await manager.set_config(GUILD, "maxpressure", "lots")

        assert not ok
        assert events == []
        assert persistence.saves == []

    @pytest.mark.asyncio
    async def test_async_and_failing_subscribers(self, manager, directory):
        await manager.load_guild(GUILD, directory)
        received = []

        def broken(guild_id, path, message):
            raise RuntimeError("subscriber bug")

        async def recorder(guild_id, path, message):
            received.append(path)

        manager.subscribe(broken)
        manager.subscribe(recorder)

        _, ok = await manager.set_config(GUILD, "basic.aliases", "kawaii", "pick cute")
        assert ok
        assert received == ["basic.aliases"]

    @pytest.mark.asyncio
    async def test_save_guild_persists_current_values(self, manager, persistence):
        await manager.load_guild(GUILD)
        await manager.save_guild(GUILD)
        assert json.loads(persistence.blobs[GUILD])["basic"]["commandprefix"] == "!"


class TestSetupGuild:
    @pytest.mark.asyncio
    async def test_setup_publishes_new_store(self, manager, persistence, directory):
        await manager.load_guild(GUILD, directory)
        before = manager.store(GUILD)
        events = []
        manager.subscribe(lambda *args: events.append(args[1]))

        message, ok = await manager.setup_guild(GUILD, ["@Mods", "#mod-chat"])

        assert ok
        assert message.startswith("Server configured!")
        assert manager.store(GUILD) is not before
        assert before.setup_done is False
        assert manager.store(GUILD).value("Basic", "ModRole") == "100"
        assert json.loads(persistence.blobs[GUILD])["setupdone"] is True
        assert events == ["setup"]

    @pytest.mark.asyncio
    async def test_failed_setup_keeps_store(self, manager, persistence, directory):
        await manager.load_guild(GUILD, directory)
        before = manager.store(GUILD)

        message, ok = await manager.setup_guild(GUILD, ["@Nobody", "#mod-chat"])

        assert not ok
        assert manager.store(GUILD) is before
        assert persistence.saves == []

    @pytest.mark.asyncio
    async def test_setup_needs_directory(self, manager):
        await manager.load_guild(GUILD)
        assert await manager.setup_guild(GUILD, ["@Mods", "#mod-chat"]) == (
            "Can't find this server's directory!", False
        )


@pytest.mark.asyncio
async def test_remove_guild(manager, persistence):
    persistence.blobs[GUILD] = json.dumps({"version": 21})
    await manager.load_guild(GUILD)

    assert await manager.remove_guild(GUILD) is True
    assert manager.guild_ids() == []
    assert GUILD not in persistence.blobs
    assert await manager.remove_guild(GUILD) is False


@pytest.mark.asyncio
async def test_set_waiting_on_removed_guild_is_dropped(manager, persistence):
    persistence.blobs[GUILD] = json.dumps({"version": 21})
    context = await manager.load_guild(GUILD)

    async with context.lock:
        removal = asyncio.create_task(manager.remove_guild(GUILD))
        pending_set = asyncio.create_task(manager.set_config(GUILD, "spam.raidsize", "9"))
        await asyncio.sleep(0)

    assert await removal is True
    with pytest.raises(KeyError):
        await pending_set
    assert GUILD not in persistence.blobs

    reloaded = await manager.load_guild(GUILD)
    assert reloaded.lock is context.lock


@pytest.mark.asyncio
async def test_set_waiting_on_reload_uses_new_store(manager, persistence):
    persistence.blobs[GUILD] = json.dumps({"version": 21})
    context = await manager.load_guild(GUILD)

    async with context.lock:
        reload = asyncio.create_task(manager.load_guild(GUILD))
        pending_set = asyncio.create_task(manager.set_config(GUILD, "spam.raidsize", "9"))
        await asyncio.sleep(0)

    fresh = await reload
    assert await pending_set == ("9", True)
    assert fresh.store.value("Spam", "RaidSize") == 9
    assert manager.store(GUILD) is fresh.store
