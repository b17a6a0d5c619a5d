"""
PHC Health Club Database Access
===============================
Single connection helper for every feature router.

Each request opens one psycopg2 connection (RealDictCursor), runs its
reads/writes in one transaction and closes it. Store failures are rolled
back, logged and surfaced as a 500 with a "Failed to <action>" message.
"""

import os
import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from fastapi import HTTPException

logger = logging.getLogger("db")

DATABASE_URL = os.getenv("DATABASE_URL")


def get_db():
    """Get database connection."""
    try:
        conn = psycopg2.connect(DATABASE_URL, cursor_factory=RealDictCursor)
        return conn
    except Exception as e:
        logger.error(f"Database connection error: {e}")
        return None


def now_utc() -> datetime:
    """Current timestamp (UTC, timezone-aware)."""
    return datetime.now(timezone.utc)


@contextmanager
def db_transaction(action: str) -> Iterator[Any]:
    """
    Open a connection for one request and commit on success.

    HTTPExceptions raised inside the block roll back and propagate unchanged.
    Database errors roll back and become a 500 "Failed to <action>".
    """
    conn = get_db()
    if not conn:
        raise HTTPException(status_code=500, detail="Database connection failed")

    try:
        yield conn
        conn.commit()
    except HTTPException:
        conn.rollback()
        raise
    except psycopg2.Error as e:
        conn.rollback()
        logger.error(f"{action} failed: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to {action}")
    finally:
        conn.close()


def write_audit(
    cur,
    user_id: str,
    action: str,
    resource_type: str,
    resource_id: str,
    old_data: Optional[Dict[str, Any]] = None,
    new_data: Optional[Dict[str, Any]] = None,
) -> None:
    """Append a row to audit_log inside the caller's transaction."""
    cur.execute("""
        INSERT INTO audit_log (user_id, action, resource_type, resource_id, old_data, new_data, created_at)
        VALUES (%s, %s, %s, %s, %s, %s, NOW())
    """, (
        user_id,
        action,
        resource_type,
        resource_id,
        json.dumps(old_data, default=str) if old_data is not None else None,
        json.dumps(new_data, default=str) if new_data is not None else None,
    ))
