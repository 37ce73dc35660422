#!/usr/bin/env python3
"""
Schema migration runner for the SweetieBot database.

Applies the SQL schema files (guild configuration, schedule, tags) in
lexical order. Each applied file is recorded in schema_migrations with its
SHA-256 checksum; a recorded file whose contents changed aborts the run.

Guild configuration blobs are NOT migrated here. Their layout version is
upgraded in-process when a guild is loaded.
"""

import argparse
import hashlib
import sqlite3
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "sweetiebot.db"
DEFAULT_MIGRATIONS_DIR = PROJECT_ROOT / "src" / "sweetiebot" / "persistence" / "migrations"


@dataclass
class MigrationSummary:
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.applied) + len(self.skipped)


def calculate_checksum(file_path: Path) -> str:
    """Return the hex SHA-256 of a schema file."""
    return hashlib.sha256(file_path.read_bytes()).hexdigest()


def discover_migrations(migrations_dir: Path) -> List[Tuple[str, Path]]:
    """
    List schema files in lexical order.

    Args:
        migrations_dir: Directory containing NNNN_name.sql files

    Returns:
        List of (file name, path) tuples
    """
    return [(f.name, f) for f in sorted(migrations_dir.glob("*.sql"))]


def apply_migrations(db_path: Path, migrations_dir: Path) -> MigrationSummary:
    """
    Apply pending schema files with checksum verification.

    Args:
        db_path: Path to SQLite database file (created if missing)
        migrations_dir: Directory containing schema files

    Returns:
        Names of the files applied and skipped by this run

    Raises:
        RuntimeError: If an already applied file was modified
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    summary = MigrationSummary()

    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                migration_name TEXT PRIMARY KEY,
                checksum TEXT NOT NULL,
                applied_at INTEGER NOT NULL
            ) STRICT
        """)
        conn.commit()

        recorded = dict(conn.execute("SELECT migration_name, checksum FROM schema_migrations"))

        for name, path in discover_migrations(migrations_dir):
            checksum = calculate_checksum(path)
            if name in recorded:
                if checksum != recorded[name]:
                    raise RuntimeError(
                        f"Migration {name} has been tampered with!\n"
                        f"Expected checksum: {recorded[name]}\n"
                        f"Got checksum: {checksum}"
                    )
                summary.skipped.append(name)
                continue

            print(f"→ Applying {name}")
            with conn:
                conn.executescript(path.read_text())
                conn.execute(
                    "INSERT INTO schema_migrations (migration_name, checksum, applied_at) VALUES (?, ?, ?)",
                    (name, checksum, int(datetime.now().timestamp()))
                )
            summary.applied.append(name)
    finally:
        conn.close()

    return summary


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(description="Apply SweetieBot database schema files")
    parser.add_argument("--db", type=Path, default=DEFAULT_DB_PATH,
                        help="SQLite database path (default: data/sweetiebot.db)")
    parser.add_argument("--migrations-dir", type=Path, default=DEFAULT_MIGRATIONS_DIR,
                        help="Directory of schema files")
    args = parser.parse_args(argv)

    if not args.migrations_dir.exists():
        print(f"Error: Migrations directory not found: {args.migrations_dir}", file=sys.stderr)
        return 1

    print(f"Database: {args.db}")
    try:
        summary = apply_migrations(args.db, args.migrations_dir)
    except (RuntimeError, sqlite3.Error) as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        return 1

    print(f"✓ Applied {len(summary.applied)}, skipped {len(summary.skipped)} of {summary.total}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
