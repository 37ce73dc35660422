"""Persistence of per-guild configuration blobs."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Optional

from .db import get_db


def _now_ts() -> int:
    return int(datetime.now().timestamp())


def _blob_version(data: str) -> int:
    try:
        version = json.loads(data).get("version", 0)
    except (ValueError, AttributeError):
        return 0
    return version if isinstance(version, int) else 0


async def load_guild_config(guild_id: str) -> Optional[str]:
    """Return the stored blob for a guild, or None if it has none."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT data FROM guild_config WHERE guild_id = ?",
        (guild_id,),
    )
    row = await cursor.fetchone()
    await cursor.close()
    return row[0] if row else None


async def save_guild_config(guild_id: str, data: str) -> None:
    db = await get_db()
    await db.execute(
        """
        INSERT INTO guild_config (guild_id, data, version, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(guild_id) DO UPDATE SET
            data = excluded.data,
            version = excluded.version,
            updated_at = excluded.updated_at
        """,
        (guild_id, data, _blob_version(data), _now_ts()),
    )
    await db.commit()


async def delete_guild_config(guild_id: str) -> bool:
    db = await get_db()
    cursor = await db.execute("DELETE FROM guild_config WHERE guild_id = ?", (guild_id,))
    deleted = cursor.rowcount > 0
    await cursor.close()
    await db.commit()
    return deleted


async def list_guild_ids() -> list[str]:
    db = await get_db()
    cursor = await db.execute("SELECT guild_id FROM guild_config ORDER BY guild_id")
    rows = await cursor.fetchall()
    await cursor.close()
    return [row[0] for row in rows]


class SqliteConfigPersistence:
    """ConfigPersistence backed by the guild_config table."""

    async def load(self, guild_id: str) -> Optional[str]:
        return await load_guild_config(guild_id)

    async def save(self, guild_id: str, data: str) -> None:
        await save_guild_config(guild_id, data)

    async def delete(self, guild_id: str) -> bool:
        return await delete_guild_config(guild_id)
