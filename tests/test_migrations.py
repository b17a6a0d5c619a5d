"""
Migration Runner Tests
"""

from unittest.mock import patch

import psycopg2

from scripts.run_migrations import (
    DEFAULT_MIGRATIONS_DIR,
    calculate_checksum,
    get_pending_migrations,
    run_pending_migrations,
)


def test_pending_in_filename_order(tmp_path):
    for name in ["002_add_notes.sql", "001_initial.sql", "010_indexes.sql", "README.md", "backfill.sql"]:
        (tmp_path / name).write_text("SELECT 1;")

    pending = get_pending_migrations(tmp_path, {"002_add_notes.sql"})

    assert [f.name for f in pending] == ["001_initial.sql", "010_indexes.sql"]


def test_missing_directory(tmp_path):
    assert get_pending_migrations(tmp_path / "nope", set()) == []


def test_checksum_is_stable():
    assert calculate_checksum("SELECT 1;") == calculate_checksum("SELECT 1;")
    assert calculate_checksum("SELECT 1;") != calculate_checksum("SELECT 2;")
    assert len(calculate_checksum("")) == 64


def test_bundled_schema_is_pending_on_fresh_database():
    names = [f.name for f in get_pending_migrations(DEFAULT_MIGRATIONS_DIR, set())]
    assert names[0] == "001_initial_schema.sql"


def test_connection_failure_reported():
    with patch("scripts.run_migrations.get_db_connection", side_effect=psycopg2.OperationalError("no route")):
        result = run_pending_migrations()
    assert result["success"] is False
    assert result["executed"] == 0
    assert "no route" in result["errors"][0]
