"""SQLite connection handling for guild configuration storage.

One aiosqlite connection is opened lazily and shared by every persistence
helper through the module-level manager (set_db_manager/get_db).
"""

import hashlib
from datetime import datetime
from pathlib import Path
from typing import Optional

import aiosqlite
import structlog

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

# Applied to every new connection, in order
_PRAGMAS = (
    "foreign_keys=ON",
    "synchronous=NORMAL",
    "busy_timeout=5000",
    "temp_store=MEMORY",
    "cache_size=-64000",
)

_SCHEMA_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        migration_name TEXT PRIMARY KEY,
        checksum TEXT NOT NULL,
        applied_at INTEGER NOT NULL
    ) STRICT
"""


class DatabaseManager:
    """Owns the SQLite connection used for guild configuration and side tables.

    Attributes:
        db_path: Database file (parent directories are created on connect)
        wal_mode: Whether the connection must run in write-ahead logging mode
    """

    def __init__(self, db_path: str | Path, wal_mode: bool = True):
        self.db_path = Path(db_path)
        self.wal_mode = wal_mode
        self._connection: Optional[aiosqlite.Connection] = None

    async def get_connection(self) -> aiosqlite.Connection:
        """Return the shared connection, opening and configuring it on first use.

        Raises:
            RuntimeError: If WAL mode was requested but SQLite refused it
        """
        if self._connection is None:
            self._connection = await self._open()
        return self._connection

    async def _open(self) -> aiosqlite.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(str(self.db_path))
        try:
            if self.wal_mode:
                await conn.execute("PRAGMA journal_mode=WAL")
            for pragma in _PRAGMAS:
                await conn.execute(f"PRAGMA {pragma}")
            journal_mode = await self._journal_mode(conn)
            if self.wal_mode and journal_mode != "wal":
                raise RuntimeError(
                    f"Failed to enable WAL mode for {self.db_path}: journal mode is '{journal_mode}'"
                )
        except Exception:
            await conn.close()
            raise

        logger.info("database_connection_established",
                    db_path=str(self.db_path),
                    journal_mode=journal_mode)
        return conn

    @staticmethod
    async def _journal_mode(conn: aiosqlite.Connection) -> str:
        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        await cursor.close()
        return row[0].lower()

    async def init_db(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        """Apply pending schema files in lexical order.

        Uses the same schema_migrations bookkeeping as scripts/migrate.py, so
        either may create the database.

        Returns:
            Names of the files applied by this call

        Raises:
            RuntimeError: If an applied schema file was modified afterwards
        """
        conn = await self.get_connection()
        await conn.execute(_SCHEMA_TABLE)
        await conn.commit()

        cursor = await conn.execute("SELECT migration_name, checksum FROM schema_migrations")
        recorded = {name: checksum for name, checksum in await cursor.fetchall()}
        await cursor.close()

        applied = []
        for path in sorted(migrations_dir.glob("*.sql")):
            checksum = hashlib.sha256(path.read_bytes()).hexdigest()
            if path.name in recorded:
                if recorded[path.name] != checksum:
                    raise RuntimeError(f"Migration {path.name} has been tampered with!")
                continue
            await conn.executescript(path.read_text())
            await conn.execute(
                "INSERT INTO schema_migrations (migration_name, checksum, applied_at) VALUES (?, ?, ?)",
                (path.name, checksum, int(datetime.now().timestamp())),
            )
            await conn.commit()
            applied.append(path.name)

        logger.info("database_schema_ready", db_path=str(self.db_path), applied=applied)
        return applied

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("database_connection_closed", db_path=str(self.db_path))


# Process-wide manager, set once at startup
_db_manager: Optional[DatabaseManager] = None


def set_db_manager(manager: Optional[DatabaseManager]) -> None:
    """Install (or with None, clear) the process-wide database manager."""
    global _db_manager
    _db_manager = manager


def get_db_manager() -> DatabaseManager:
    """Return the process-wide database manager.

    Raises:
        RuntimeError: If no manager has been installed
    """
    if _db_manager is None:
        raise RuntimeError("Database manager not initialized. Call set_db_manager() first.")
    return _db_manager


async def get_db() -> aiosqlite.Connection:
    return await get_db_manager().get_connection()
