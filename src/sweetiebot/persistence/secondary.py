"""SQLite-backed secondary store used by configuration migrations."""

from __future__ import annotations

from collections.abc import Iterable

from . import schedule, tags


class SqliteSecondaryStore:
    """Schedule rows and tagged items, as seen by the migration pipeline."""

    async def get_schedule_rows(self, guild_id: str, event_type: int) -> list[tuple[int, str]]:
        return await schedule.get_schedule_rows(guild_id, event_type)

    async def update_schedule_data(self, row_id: int, data: str) -> None:
        await schedule.update_schedule_data(row_id, data)

    async def import_tag(self, guild_id: str, tag: str, items: Iterable[str]) -> int:
        return await tags.import_tag(guild_id, tag, items)
