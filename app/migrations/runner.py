# =============================================================================
# PHC Health Club Migration Endpoints
# Apply pending SQL migrations via API (admin key required)
# =============================================================================

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.shared.auth import verify_admin_key
from app.shared.db import db_transaction
from app.shared.results import ok
from scripts.run_migrations import run_pending_migrations

logger = logging.getLogger("migrations")

router = APIRouter(prefix="/api/v1/migrations", tags=["Migrations"])


@router.post("/run")
def run_migrations(admin_key: str = Depends(verify_admin_key)) -> Dict[str, Any]:
    """Apply pending migrations from migrations/. Safe to call repeatedly."""
    result = run_pending_migrations()
    logger.info(f"Migrations run via API: {result['executed']} executed, {result['failed']} failed")
    return ok(result)


@router.get("/status")
def migration_status(admin_key: str = Depends(verify_admin_key)) -> Dict[str, Any]:
    with db_transaction("fetch migration status") as conn:
        cur = conn.cursor()
        cur.execute("""
            SELECT filename, executed_at, success, error_message
            FROM _migrations
            ORDER BY filename
        """)
        rows = [dict(row) for row in cur.fetchall()]
        cur.close()

    return ok(rows)
