"""
Chat message formatting utilities.

Handles code blocks, configuration renderings and splitting long responses
for the 2000-character message limit.
"""

from collections.abc import Sequence

from ..config.help import HELP_PLACEHOLDER

MAX_MESSAGE_LENGTH = 2000


def sanitize_code_block(text: str) -> str:
    """Escape backtick fences so text cannot close the surrounding code block."""
    return text.replace("```", "\\`\\`\\`")


def code_block(text: str) -> str:
    return "```\n" + sanitize_code_block(text) + "```"


def split_message(response: str, max_length: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """
    Split long responses for the chat message length limit.

    Args:
        response: The response text to format
        max_length: Maximum length per message (default: 2000)

    Returns:
        List of message chunks, each at most max_length characters

    Examples:
        >>> split_message("Short message")
        ['Short message']

        >>> long_msg = "\\n".join(["Line " + str(i) for i in range(500)])
        >>> chunks = split_message(long_msg)
        >>> all(len(chunk) <= 2000 for chunk in chunks)
        True
    """
    if len(response) <= max_length:
        return [response]

    messages = []
    current = ""

    # Split on newlines to preserve formatting
    for line in response.split("\n"):
        # A single line over the limit is cut into pieces
        while len(line) > max_length:
            if current:
                messages.append(current)
                current = ""
            messages.append(line[:max_length])
            line = line[max_length:]

        if len(current) + len(line) + 1 > max_length:
            if current:
                messages.append(current)
            current = line
        else:
            current += "\n" + line if current else line

    if current:
        messages.append(current)

    return messages


def render_summary(summary: dict[str, dict[str, str]], app_name: str) -> str:
    """Render the discovery listing: every category with its options and shape tags."""
    blocks = [f"**{app_name} Config Options**"]
    for category, options in summary.items():
        names = [f"{name} {tag}" if tag else name for name, tag in options.items()]
        blocks.append(f"**{category}**\n" + "\n".join(names))
    return "\n\n".join(blocks)


def render_category(category: str, described: Sequence[tuple[str, str, str]]) -> str:
    """Render value previews and help text for one category."""
    dump = "\n".join(f"{name}: {preview}" for name, _, preview in described)
    parts = [f"**{category} Config Category**", code_block(dump)]
    for name, help_text, _ in described:
        if help_text != HELP_PLACEHOLDER:
            parts.append(f"**{name}**: {help_text}")
    return "\n".join(parts)


def render_option(path: str, lines: Sequence[str]) -> str:
    if not lines:
        return code_block(f"{path}: [empty]")
    if len(lines) == 1:
        return code_block(f"{path}: {lines[0]}")
    return code_block(f"--- {path} ---\n" + "\n".join(lines))
