"""Persistence helpers for scheduled events."""

from __future__ import annotations

from typing import Any

from .db import get_db


async def add_schedule_event(guild_id: str, date: int, event_type: int, data: str) -> int:
    db = await get_db()
    cursor = await db.execute(
        "INSERT INTO schedule (guild_id, date, type, data) VALUES (?, ?, ?, ?)",
        (guild_id, date, event_type, data),
    )
    row_id = cursor.lastrowid
    await cursor.close()
    await db.commit()
    return row_id


async def get_schedule_rows(guild_id: str, event_type: int) -> list[tuple[int, str]]:
    """Return (id, data) of every event of one type for a guild."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT id, data FROM schedule WHERE guild_id = ? AND type = ? ORDER BY id",
        (guild_id, event_type),
    )
    rows = await cursor.fetchall()
    await cursor.close()
    return [(row[0], row[1]) for row in rows]


async def get_schedule_event(row_id: int) -> dict[str, Any] | None:
    db = await get_db()
    cursor = await db.execute(
        "SELECT id, guild_id, date, type, data FROM schedule WHERE id = ?",
        (row_id,),
    )
    row = await cursor.fetchone()
    await cursor.close()
    if row is None:
        return None
    return {"id": row[0], "guild_id": row[1], "date": row[2], "type": row[3], "data": row[4]}


async def update_schedule_data(row_id: int, data: str) -> None:
    db = await get_db()
    await db.execute("UPDATE schedule SET data = ? WHERE id = ?", (data, row_id))
    await db.commit()
