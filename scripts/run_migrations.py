#!/usr/bin/env python3
"""
PHC Health Club Migration Runner
================================
Applies pending SQL files from migrations/ in filename order and records
each one in the _migrations table.

Usage:
    python scripts/run_migrations.py
    python scripts/run_migrations.py --dry-run

Or import and call:
    from scripts.run_migrations import run_pending_migrations
    run_pending_migrations()
"""

import os
import re
import sys
import hashlib
import logging
from pathlib import Path
from typing import List, Optional, Set

import psycopg2
from psycopg2.extras import RealDictCursor

logger = logging.getLogger("migrations")

DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"
MIGRATION_NAME = re.compile(r"^\d+_.+\.sql$")


def get_db_connection():
    """Connection from DATABASE_URL, falling back to the PG* variables."""
    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        return psycopg2.connect(database_url)

    return psycopg2.connect(
        host=os.environ.get("PGHOST", "localhost"),
        port=os.environ.get("PGPORT", "5432"),
        database=os.environ.get("PGDATABASE", "phc"),
        user=os.environ.get("PGUSER", "postgres"),
        password=os.environ.get("PGPASSWORD", ""),
    )


def ensure_migrations_table(conn) -> None:
    with conn.cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id SERIAL PRIMARY KEY,
                filename VARCHAR(255) UNIQUE NOT NULL,
                executed_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
                checksum VARCHAR(64),
                success BOOLEAN DEFAULT true,
                error_message TEXT
            )
        """)
    conn.commit()


def get_executed_migrations(conn) -> Set[str]:
    with conn.cursor(cursor_factory=RealDictCursor) as cur:
        cur.execute("SELECT filename FROM _migrations WHERE success = true")
        return {row["filename"] for row in cur.fetchall()}


def get_pending_migrations(migrations_dir: Path, executed: Set[str]) -> List[Path]:
    """Numbered .sql files not yet applied, oldest first."""
    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return []

    return sorted(
        (f for f in migrations_dir.glob("*.sql") if MIGRATION_NAME.match(f.name) and f.name not in executed),
        key=lambda f: f.name,
    )


def calculate_checksum(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()


def record_migration(conn, filename: str, checksum: str, error: Optional[str] = None) -> None:
    with conn.cursor() as cur:
        cur.execute("""
            INSERT INTO _migrations (filename, checksum, success, error_message)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (filename) DO UPDATE SET
                executed_at = NOW(),
                checksum = EXCLUDED.checksum,
                success = EXCLUDED.success,
                error_message = EXCLUDED.error_message
        """, (filename, checksum, error is None, error))


def run_migration(conn, migration_file: Path) -> bool:
    """Apply one file in its own transaction. Failures are recorded, not raised."""
    logger.info(f"Running migration: {migration_file.name}")

    content = migration_file.read_text()
    checksum = calculate_checksum(content)

    try:
        with conn.cursor() as cur:
            cur.execute(content)
        record_migration(conn, migration_file.name, checksum)
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        logger.error(f"Migration {migration_file.name} failed: {e}")
        record_migration(conn, migration_file.name, checksum, error=str(e))
        conn.commit()
        return False

    logger.info(f"Migration {migration_file.name} completed")
    return True


def run_pending_migrations(migrations_dir: Optional[str] = None) -> dict:
    """
    Apply every pending migration, stopping at the first failure.

    Returns counts of executed, failed and skipped files plus error messages.
    """
    mig_path = Path(migrations_dir) if migrations_dir else DEFAULT_MIGRATIONS_DIR
    logger.info(f"Migrations directory: {mig_path}")

    result = {
        "success": True,
        "executed": 0,
        "failed": 0,
        "skipped": 0,
        "errors": [],
    }

    try:
        conn = get_db_connection()
    except psycopg2.Error as e:
        logger.error(f"Failed to connect to database: {e}")
        result["success"] = False
        result["errors"].append(str(e))
        return result

    try:
        ensure_migrations_table(conn)
        pending = get_pending_migrations(mig_path, get_executed_migrations(conn))
        logger.info(f"Pending migrations: {len(pending)}")

        for migration_file in pending:
            if run_migration(conn, migration_file):
                result["executed"] += 1
            else:
                result["failed"] += 1
                result["success"] = False
                result["errors"].append(f"Failed: {migration_file.name}")
                break

        result["skipped"] = len(pending) - result["executed"] - result["failed"]
    finally:
        conn.close()

    logger.info(
        f"Migration summary: {result['executed']} executed, "
        f"{result['failed']} failed, {result['skipped']} skipped"
    )
    return result


def main():
    import argparse

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    parser = argparse.ArgumentParser(description="Run database migrations")
    parser.add_argument("--dir", "-d", help="Migrations directory path")
    parser.add_argument("--dry-run", action="store_true", help="Show pending migrations without running")
    args = parser.parse_args()

    if not args.dry_run:
        result = run_pending_migrations(args.dir)
        sys.exit(0 if result["success"] else 1)

    mig_path = Path(args.dir) if args.dir else DEFAULT_MIGRATIONS_DIR
    conn = get_db_connection()
    try:
        ensure_migrations_table(conn)
        pending = get_pending_migrations(mig_path, get_executed_migrations(conn))
    finally:
        conn.close()

    print(f"Pending migrations: {len(pending)}")
    for m in pending:
        print(f"  {m.name}")


if __name__ == "__main__":
    main()
