"""Unit tests for chat message formatting."""

from src.sweetiebot.config.help import HELP_PLACEHOLDER
from src.sweetiebot.gateway.formatters import (
    code_block,
    render_category,
    render_option,
    render_summary,
    sanitize_code_block,
    split_message,
)


def test_short_message_not_split():
    assert split_message("Short message") == ["Short message"]


def test_long_message_split_on_lines():
    long_msg = "\n".join("Line " + str(i) for i in range(500))
    chunks = split_message(long_msg)
    assert len(chunks) > 1
    assert all(len(chunk) <= 2000 for chunk in chunks)
    assert "\n".join(chunks) == long_msg


def test_overlong_line_is_cut():
    chunks = split_message("a" * 4500, max_length=2000)
    assert [len(c) for c in chunks] == [2000, 2000, 500]


def test_code_block_escapes_fences():
    assert sanitize_code_block("```rm```") == "\\`\\`\\`rm\\`\\`\\`"
    assert code_block("x") == "```\nx```"


def test_render_summary():
    text = render_summary({"Spam": {"MaxPressure": "", "MaxChannelPressure": "[map]"}}, "Sweetie Bot")
    assert text == "**Sweetie Bot Config Options**\n\n**Spam**\nMaxPressure\nMaxChannelPressure [map]"


def test_render_category_skips_missing_help():
    text = render_category("Log", [("Cooldown", "Seconds between errors.", "4"), ("Channel", HELP_PLACEHOLDER, "[empty]")])
    assert text.startswith("**Log Config Category**\n```\nCooldown: 4\nChannel: [empty]```")
    assert "**Cooldown**: Seconds between errors." in text
    assert "**Channel**" not in text


def test_render_option():
    assert render_option("Basic.Aliases", []) == "```\nBasic.Aliases: [empty]```"
    assert render_option("Spam.RaidSize", ["4"]) == "```\nSpam.RaidSize: 4```"
    assert render_option("Status.Lines", ["a", "b"]) == "```\n--- Status.Lines ---\na\nb```"
