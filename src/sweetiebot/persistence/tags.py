"""Persistence helpers for tagged items."""

from __future__ import annotations

from collections.abc import Iterable

from .db import get_db


async def create_tag(guild_id: str, name: str) -> int:
    """Create a tag if it does not exist and return its id."""
    db = await get_db()
    await db.execute(
        "INSERT INTO tags (guild_id, name) VALUES (?, ?) ON CONFLICT(guild_id, name) DO NOTHING",
        (guild_id, name),
    )
    cursor = await db.execute(
        "SELECT id FROM tags WHERE guild_id = ? AND name = ?",
        (guild_id, name),
    )
    row = await cursor.fetchone()
    await cursor.close()
    await db.commit()
    return row[0]


async def add_item(content: str) -> int:
    """Store an item (or find the existing copy) and return its id."""
    db = await get_db()
    await db.execute(
        "INSERT INTO items (content) VALUES (?) ON CONFLICT(content) DO NOTHING",
        (content,),
    )
    cursor = await db.execute("SELECT id FROM items WHERE content = ?", (content,))
    row = await cursor.fetchone()
    await cursor.close()
    await db.commit()
    return row[0]


async def tag_item(item_id: int, tag_id: int) -> None:
    db = await get_db()
    await db.execute(
        "INSERT INTO item_tags (item_id, tag_id) VALUES (?, ?) ON CONFLICT DO NOTHING",
        (item_id, tag_id),
    )
    await db.commit()


async def get_tagged_items(guild_id: str, name: str) -> list[str]:
    db = await get_db()
    cursor = await db.execute(
        """
        SELECT items.content
        FROM items
        JOIN item_tags ON item_tags.item_id = items.id
        JOIN tags ON tags.id = item_tags.tag_id
        WHERE tags.guild_id = ? AND tags.name = ?
        ORDER BY items.content
        """,
        (guild_id, name),
    )
    rows = await cursor.fetchall()
    await cursor.close()
    return [row[0] for row in rows]


async def import_tag(guild_id: str, name: str, items: Iterable[str]) -> int:
    """Tag every item with ``name`` in a guild, returning how many were tagged."""
    tag_id = await create_tag(guild_id, name)
    count = 0
    for content in items:
        item_id = await add_item(content)
        await tag_item(item_id, tag_id)
        count += 1
    return count
