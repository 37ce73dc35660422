"""Unit tests for value parsing and display formatting."""

import pytest

from src.sweetiebot.config.codec import ValueCodec, format_float
from src.sweetiebot.config.kinds import (
    BOOLEAN,
    CHANNEL,
    COMMAND,
    FLOAT,
    INTEGER,
    MODULE,
    ROLE,
    STRING,
    USER,
)
from src.sweetiebot.errors import ParseError, ReferenceUnresolved


@pytest.fixture
def codec(directory, catalog):
    return ValueCodec(directory, catalog)


def test_format_float_drops_integral_fraction():
    assert format_float(75.0) == "75"
    assert format_float(0.5) == "0.5"


class TestScalars:
    def test_string_is_kept_verbatim(self, codec):
        assert codec.parse(STRING, " pick cute ") == " pick cute "

    def test_boolean(self, codec):
        assert codec.parse(BOOLEAN, "TRUE") is True
        assert codec.parse(BOOLEAN, "false") is False
        with pytest.raises(ParseError):
            codec.parse(BOOLEAN, "yes")

    def test_integer(self, codec):
        assert codec.parse(INTEGER, " 12 ") == 12
        with pytest.raises(ParseError, match="abc is not an integer!"):
            codec.parse(INTEGER, "abc")
        with pytest.raises(ParseError):
            codec.parse(INTEGER, "1.5")

    def test_float(self, codec):
        assert codec.parse(FLOAT, "2.5") == 2.5
        with pytest.raises(ParseError, match="high is not a number!"):
            codec.parse(FLOAT, "high")

    def test_format_scalars(self, codec):
        assert codec.format(BOOLEAN, True) == "true"
        assert codec.format(FLOAT, 60.0) == "60"
        assert codec.format(INTEGER, 4) == "4"


class TestReferences:
    def test_role_by_mention_id_or_name(self, codec):
        assert codec.parse(ROLE, "<@&100>") == "100"
        assert codec.parse(ROLE, "100") == "100"
        assert codec.parse(ROLE, "@Mods") == "100"
        assert codec.parse(ROLE, "mods") == "100"

    def test_channel_by_mention_or_name(self, codec):
        assert codec.parse(CHANNEL, "<#201>") == "201"
        assert codec.parse(CHANNEL, "#general") == "202"

    def test_user_by_name_or_nick(self, codec):
        assert codec.parse(USER, "aj") == "300"
        assert codec.parse(USER, "<@!301>") == "301"

    def test_empty_text_clears(self, codec):
        assert codec.parse(ROLE, "") == ""

    def test_unknown_reference(self, codec):
        with pytest.raises(ReferenceUnresolved, match="Could not find any role named Admins!"):
            codec.parse(ROLE, "Admins")
        with pytest.raises(ReferenceUnresolved):
            codec.parse(CHANNEL, "<#999>")

    def test_no_directory(self, catalog):
        with pytest.raises(ReferenceUnresolved):
            ValueCodec(None, catalog).parse(ROLE, "100")

    def test_module_and_command_names(self, codec):
        assert codec.parse(MODULE, "Bucket") == "bucket"
        assert codec.parse(COMMAND, "GetPressure") == "getpressure"
        with pytest.raises(ParseError, match="nope is not a module name!"):
            codec.parse(MODULE, "nope")
        with pytest.raises(ParseError, match="fly is not a command name!"):
            codec.parse(COMMAND, "fly")

    def test_format_references(self, codec):
        assert codec.format(ROLE, "100") == "@Mods"
        assert codec.format(CHANNEL, "202") == "#general"
        assert codec.format(USER, "300") == "AJ"
        assert codec.format(ROLE, "999") == "999"
        assert codec.format(ROLE, "") == ""

    def test_format_without_directory_shows_ids(self):
        assert ValueCodec(None, None).format(CHANNEL, "202") == "202"
