"""
Deployment Health Check Endpoint
================================
Reports database, migration and file-store status of the deployed API.
"""

from fastapi import APIRouter
from datetime import datetime, timezone
import os

import psycopg2

from app.shared import db
from app.shared import storage

API_VERSION = "1.0.0"

router = APIRouter(prefix="/api/v1/health", tags=["Health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/deployment")
def deployment_health():
    """
    Component-level health check.
    Any component that is not healthy marks the deployment degraded.
    """
    status = {
        "timestamp": _timestamp(),
        "api_version": API_VERSION,
        "environment": os.environ.get("RAILWAY_ENVIRONMENT", "unknown"),
        "components": {},
    }

    conn = db.get_db()
    if conn:
        try:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            status["components"]["database"] = {"status": "healthy"}

            cur.execute("""
                SELECT EXISTS (
                    SELECT FROM information_schema.tables WHERE table_name = '_migrations'
                ) AS present
            """)
            if cur.fetchone()["present"]:
                cur.execute("""
                    SELECT filename, executed_at, success
                    FROM _migrations
                    ORDER BY filename DESC
                    LIMIT 5
                """)
                status["components"]["migrations"] = {
                    "status": "healthy",
                    "recent_migrations": [
                        {"filename": r["filename"], "executed_at": str(r["executed_at"]), "success": r["success"]}
                        for r in cur.fetchall()
                    ],
                }
            else:
                status["components"]["migrations"] = {"status": "error", "error": "No migrations applied"}
            cur.close()
        except psycopg2.Error as e:
            status["components"]["database"] = {"status": "error", "error": str(e)}
        finally:
            conn.close()
    else:
        status["components"]["database"] = {"status": "error", "error": "Connection failed"}

    configured = bool(storage.SUPABASE_URL and storage.SUPABASE_SERVICE_KEY)
    status["components"]["file_store"] = {
        "status": "available" if configured else "unavailable",
        "bucket": storage.BLOODWORK_BUCKET,
    }

    all_healthy = all(
        c.get("status") in ["healthy", "available"]
        for c in status["components"].values()
    )
    status["overall_status"] = "healthy" if all_healthy else "degraded"

    return status


@router.get("/quick")
def quick_health():
    """Quick health check for load balancers."""
    return {"status": "ok", "timestamp": _timestamp()}
