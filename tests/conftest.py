"""Shared fixtures: a small guild roster, a command catalog and in-memory stores."""

import pytest

from src.sweetiebot.catalog import Catalog, CommandInfo
from src.sweetiebot.directory import Channel, Member, MemoryDirectory, Role
from src.sweetiebot.gateway.commands import register_config_module

GUILD_ID = "1000"


def make_directory() -> MemoryDirectory:
    return MemoryDirectory(
        GUILD_ID,
        roles=[Role("100", "Mods"), Role("101", "Members")],
        channels=[Channel("200", "mod-chat"), Channel("201", "logs"), Channel("202", "general")],
        members=[Member("300", "applejack", nick="AJ"), Member("301", "rarity")],
    )


def make_catalog() -> Catalog:
    catalog = Catalog()
    register_config_module(catalog)
    catalog.register_module("spam", [CommandInfo("getpressure", sensitive=True), "banraid"])
    catalog.register_module("bucket", ["give", "drop"])
    catalog.register_module("markov", ["markov"])
    catalog.register_module("poll", ["poll"])
    catalog.register_module("misc", ["roll"])
    catalog.register_module("scheduler", ["addevent"])
    catalog.register_module("information", ["rules"])
    return catalog


class MemoryPersistence:
    """ConfigPersistence keeping blobs in a dict and recording every save."""

    def __init__(self, blobs=None):
        self.blobs = dict(blobs or {})
        self.saves = []

    async def load(self, guild_id):
        return self.blobs.get(guild_id)

    async def save(self, guild_id, data):
        self.blobs[guild_id] = data
        self.saves.append(guild_id)

    async def delete(self, guild_id):
        return self.blobs.pop(guild_id, None) is not None


class FakeSecondaryStore:
    """SecondaryStore with schedule rows and imported tags held in memory."""

    def __init__(self, rows=None):
        self.rows = dict(rows or {})
        self.imported = {}

    async def get_schedule_rows(self, guild_id, event_type):
        return sorted(self.rows.items())

    async def update_schedule_data(self, row_id, data):
        self.rows[row_id] = data

    async def import_tag(self, guild_id, tag, items):
        self.imported[tag] = sorted(items)
        return len(self.imported[tag])


@pytest.fixture
def directory():
    return make_directory()


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest.fixture
def secondary():
    return FakeSecondaryStore()
