"""Unit tests for the configuration migration pipeline."""

from unittest.mock import AsyncMock, patch

import pytest

from src.sweetiebot.config.migrations import (
    EMOTE_RESPONSE,
    EMOTE_TEMPLATE,
    SPOILER_RESPONSE,
    STEPS,
    MigrationPipeline,
    MigrationStep,
)
from src.sweetiebot.errors import DecodeError, MigrationError


@pytest.fixture
def pipeline():
    return MigrationPipeline()


class TestVersionGating:
    """Test which blobs are migrated at all."""

    @pytest.mark.asyncio
    async def test_current_blob_is_left_alone(self, pipeline):
        result = await pipeline.migrate('{"version": 21, "spam": {"maxpressure": 75}}')
        assert result.needs_save is False
        assert result.applied == []
        assert result.store.value("Spam", "MaxPressure") == 75.0

    @pytest.mark.asyncio
    async def test_newer_blob_is_left_alone(self, pipeline):
        result = await pipeline.migrate({"version": 99})
        assert result.needs_save is False
        assert result.store.version == 99

    @pytest.mark.asyncio
    async def test_undecodable_blob_fails(self, pipeline):
        with pytest.raises(DecodeError):
            await pipeline.migrate("[]")

    @pytest.mark.asyncio
    async def test_only_later_steps_run(self, pipeline):
        result = await pipeline.migrate({"version": 18})
        assert result.applied == [
            "restrict_raid_commands",
            "split_legacy_collections",
            "import_collections_as_tags",
            "move_renamed_settings",
            "normalize_references",
        ]
        assert result.store.version == 21
        assert result.needs_save is True


class TestFailurePolicy:
    """Test skipping and strict mode."""

    @staticmethod
    def _steps(calls):
        async def broken(ctx):
            calls.append("broken")
            raise DecodeError("spam.maximagespam: expected integer")

        async def working(ctx):
            calls.append("working")
            ctx.put("Spam.RaidSize", 9)

        return [MigrationStep(21, "broken", broken), MigrationStep(21, "working", working)]

    @pytest.mark.asyncio
    async def test_failed_step_is_skipped(self):
        calls = []
        result = await MigrationPipeline(steps=self._steps(calls)).migrate({"version": 20})
        assert calls == ["broken", "working"]
        assert result.skipped == ["broken"]
        assert result.applied == ["working"]
        assert result.store.value("Spam", "RaidSize") == 9
        assert result.store.version == 21

    @pytest.mark.asyncio
    async def test_strict_pipeline_raises(self):
        pipeline = MigrationPipeline(steps=self._steps([]), strict=True)
        with pytest.raises(MigrationError) as exc_info:
            await pipeline.migrate({"version": 20})
        assert exc_info.value.step == "broken"
        assert isinstance(exc_info.value.cause, DecodeError)

    @pytest.mark.asyncio
    async def test_role_creation_needs_directory(self, pipeline):
        result = await pipeline.migrate({"version": 9, "alertrole": "100"})
        assert "create_silence_role" in result.skipped
        assert result.store.value("Basic", "ModRole") == "100"


class TestFlatLayout:
    """Test upgrading the flat pre-10 layout."""

    @pytest.mark.asyncio
    async def test_flat_blob(self, pipeline, directory):
        blob = {
            "version": 5,
            "alertrole": "100",
            "modchannel": "200",
            "silentrole": "0",
            "maxbucket": 20,
            "freechannels": {"<#202>": True},
            "command_roles": {"Roll": {"<@&101>": True}},
            "aliases": {"k": "pick k"},
            "timezone": -5,
            "spoilchannels": ["202"],
        }
        result = await pipeline.migrate(blob, guild_id="1000", directory=directory)
        store = result.store

        assert result.skipped == []
        assert len(result.applied) == len(STEPS)
        assert store.version == 21
        assert store.setup_done is True
        assert store.value("Basic", "ModRole") == "100"
        assert store.value("Basic", "ModChannel") == "200"
        assert store.value("Basic", "FreeChannels") == {"202": True}
        assert store.value("Basic", "Aliases") == {"k": "pick k"}
        assert store.value("Basic", "CommandPrefix") == "!"
        assert store.value("Bucket", "MaxItems") == 20
        assert store.value("Users", "TimezoneLocation") == "Etc/GMT+5"
        assert store.value("Filter", "Channels") == {"spoiler": {"202": True}}
        assert store.value("Spam", "LockdownDuration") == 120
        assert store.value("Spam", "ImagePressure") == pytest.approx(50.0 / 6)
        assert store.value("Spam", "LinePressure") == pytest.approx(50.0 / 70)

        command_roles = store.value("Modules", "CommandRoles")
        assert command_roles["roll"] == {"101": True}
        for command in ("addevent", "getaudit", "addrole", "banraid", "addset"):
            assert command_roles[command] == {"100": True}

        silence = store.value("Basic", "SilenceRole")
        assert directory.find_role_by_name("Silence") == silence
        assert directory.roles[silence].read_only is True

    @pytest.mark.asyncio
    async def test_very_old_blob_gets_cute_alias(self, pipeline, directory):
        result = await pipeline.migrate({"version": 1, "silentrole": "101"}, directory=directory)
        assert result.store.value("Basic", "Aliases") == {"cute": "pick cute"}
        assert result.store.value("Basic", "SilenceRole") == "101"
        assert directory.find_role_by_name("Silence") is None

    @pytest.mark.asyncio
    async def test_legacy_pressure_limits(self, pipeline):
        blob = {"version": 12, "spam": {"maximagespam": 4, "maxpingspam": 0}}
        result = await pipeline.migrate(blob)
        assert result.store.value("Spam", "ImagePressure") == pytest.approx(10.0)
        assert result.store.value("Spam", "PingPressure") == 0.0


class TestGroupConversion:
    """Test turning legacy groups into roles."""

    @pytest.mark.asyncio
    async def test_groups_become_roles(self, pipeline, directory, secondary):
        secondary.rows = {1: "artists+mods|Draw day!", 2: "malformed"}
        blob = {
            "version": 13,
            "basic": {
                "alertrole": "100",
                "groups": {"artists": {"300": True, "301": True}, "Mods": {"300": True}},
            },
        }
        result = await pipeline.migrate(blob, guild_id="1000", directory=directory,
                                        secondary=secondary)
        store = result.store

        artists = directory.find_role_by_name("artists")
        renamed = directory.find_role_by_name("sb-Mods")
        assert artists is not None and renamed is not None
        assert store.value("Users", "Roles") == {artists: True, renamed: True}
        assert directory.members["300"].roles == {artists, renamed}
        assert directory.members["301"].roles == {artists}

        assert secondary.rows[1] == f"<@&{artists}> <@&{renamed}>|Draw day!"
        assert secondary.rows[2] == "malformed"

        assert store.value("Basic", "ModRole") == "100"
        assert store.value("Modules", "CommandRoles")["addrole"] == {"100": True}

    @pytest.mark.asyncio
    async def test_flat_blob_groups_become_roles(self, pipeline, directory):
        blob = {"version": 9, "alertrole": "100", "groups": {"artists": {"301": True}}}
        result = await pipeline.migrate(blob, guild_id="1000", directory=directory)
        store = result.store

        artists = directory.find_role_by_name("artists")
        assert artists is not None
        assert store.value("Users", "Roles") == {artists: True}
        assert directory.members["301"].roles == {artists}
        command_roles = store.value("Modules", "CommandRoles")
        for command in ("getaudit", "addrole", "bannewcomers", "getpressure"):
            assert command_roles[command] == {"100": True}
        assert store.version == 21
        assert result.needs_save is True

    @pytest.mark.asyncio
    async def test_groups_without_secondary_store(self, pipeline, directory):
        blob = {"version": 13, "groups": {"artists": {"300": True}}}
        result = await pipeline.migrate(blob, directory=directory)
        assert "convert_groups_to_roles" in result.applied
        assert directory.find_role_by_name("artists") is not None


class TestCollections:
    """Test splitting legacy collections."""

    BLOB = {
        "version": 19,
        "basic": {
            "collections": {
                "bucket": {"apple": True},
                "status": {"playing": True},
                "emote": {"bad": True},
                "spoiler": {"s1": True},
                "cute": {"pic2": True, "pic1": True},
                "empty": {},
            },
        },
    }

    @pytest.mark.asyncio
    async def test_collections_split_and_imported(self, pipeline, secondary):
        result = await pipeline.migrate(self.BLOB, secondary=secondary)
        store = result.store

        assert result.skipped == []
        assert store.value("Bucket", "Items") == {"apple": True}
        assert store.value("Status", "Lines") == {"playing": True}
        assert store.value("Filter", "Filters") == {"spoiler": {"s1": True}, "emote": {"bad": True}}
        assert store.value("Filter", "Channels") == {"spoiler": {}, "emote": {}}
        assert store.value("Filter", "Responses") == {
            "spoiler": SPOILER_RESPONSE,
            "emote": EMOTE_RESPONSE,
        }
        assert store.value("Filter", "Templates") == {"emote": EMOTE_TEMPLATE}
        assert secondary.imported == {"cute": ["pic1", "pic2"]}

    @pytest.mark.asyncio
    async def test_import_skipped_without_secondary_store(self, pipeline):
        result = await pipeline.migrate(self.BLOB)
        assert result.skipped == ["import_collections_as_tags"]
        assert result.store.value("Bucket", "Items") == {"apple": True}


class TestRenamedSettings:
    @pytest.mark.asyncio
    async def test_renames_and_cleanup(self, pipeline):
        blob = {
            "version": 20,
            "basic": {"modchannel": "0"},
            "spam": {"autosilence": -2},
            "log": {"logchannel": "201"},
            "search": {"maxsearchresults": 25},
            "modules": {
                "modulechannels": {"schedule": {"200": True}},
                "moduledisabled": {"anti-spam": True, "bucket": True},
            },
        }
        result = await pipeline.migrate(blob)
        store = result.store

        assert store.value("Users", "NotifyChannel") == "201"
        assert store.value("Spam", "AutoSilence") == 0
        assert store.value("Basic", "ModChannel") == ""
        assert store.value("Miscellaneous", "MaxSearchResults") == 25
        assert store.value("Modules", "Channels") == {"scheduler": {"200": True}}
        assert store.value("Modules", "Disabled") == {"spam": True, "bucket": True}

    @pytest.mark.asyncio
    async def test_autosilence_notifies_mod_channel(self, pipeline):
        blob = {"version": 20, "basic": {"modchannel": "200"}, "spam": {"autosilence": 1}}
        result = await pipeline.migrate(blob)
        assert result.store.value("Users", "NotifyChannel") == "200"
        assert result.store.value("Spam", "AutoSilence") == 1


    @pytest.mark.asyncio
    async def test_malformed_legacy_field_skips_whole_move(self, pipeline):
        blob = {
            "version": 20,
            "basic": {"modchannel": "0", "alertrole": "100", "collections": {"bucket": {"apple": True}}},
            "spam": {"autosilence": -2},
            "spoiler": {"spoilchannels": "notalist"},
            "modules": {"modulechannels": {"schedule": {"200": True}}},
        }
        result = await pipeline.migrate(blob)
        store = result.store

        assert result.skipped == ["move_renamed_settings"]
        assert "normalize_references" in result.applied
        assert store.value("Basic", "ModRole") == ""
        assert store.value("Bucket", "Items") == {}
        assert store.value("Basic", "ModChannel") == ""
        assert store.value("Spam", "AutoSilence") == 0
        assert store.value("Modules", "Channels") == {"scheduler": {"200": True}}
        assert store.version == 21

    @pytest.mark.asyncio
    async def test_strict_pipeline_rejects_malformed_legacy_field(self):
        blob = {"version": 20, "spoiler": {"spoilchannels": "notalist"}, "basic": {"collections": {}}}
        with pytest.raises(MigrationError) as exc_info:
            await MigrationPipeline(strict=True).migrate(blob)
        assert exc_info.value.step == "move_renamed_settings"


class TestSideEffectFailures:
    """Test that failing directory calls do not abort the upgrade."""

    @pytest.mark.asyncio
    async def test_group_role_creation_failure_is_logged(self, pipeline, directory):
        blob = {"version": 13, "groups": {"artists": {"300": True}}}
        with patch.object(directory, "create_role", AsyncMock(side_effect=RuntimeError("rate limited"))):
            result = await pipeline.migrate(blob, directory=directory)

        assert "convert_groups_to_roles" in result.applied
        assert result.store.value("Users", "Roles") == {}
        assert result.store.version == 21

    @pytest.mark.asyncio
    async def test_member_assignment_failure_keeps_role(self, pipeline, directory):
        blob = {"version": 13, "groups": {"artists": {"300": True, "999": True}}}
        with patch.object(directory, "add_member_role", AsyncMock(side_effect=[None, RuntimeError("gone")])) as add:
            result = await pipeline.migrate(blob, directory=directory)

        artists = directory.find_role_by_name("artists")
        assert result.store.value("Users", "Roles") == {artists: True}
        assert add.await_count == 2

    @pytest.mark.asyncio
    async def test_silence_role_failure_is_skipped(self, pipeline, directory):
        with patch.object(directory, "create_role", AsyncMock(side_effect=RuntimeError("no perms"))):
            result = await pipeline.migrate({"version": 9}, directory=directory)

        assert result.skipped == ["create_silence_role"]
        assert result.store.value("Basic", "SilenceRole") == ""
