"""
Admin Dashboard Endpoint
========================
Aggregate counts for the admin home screen.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends

from app.shared.auth import Caller, Role, get_caller, require_roles
from app.shared.db import db_transaction, now_utc
from app.shared.results import ok

logger = logging.getLogger("admin")

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])

RECENT_PATIENT_LIMIT = 5
NEW_PATIENT_WINDOW_DAYS = 7


def _count(cur, sql: str, params=()) -> int:
    cur.execute(sql, params)
    return int(cur.fetchone()["count"])


@router.get("/dashboard")
def admin_dashboard(caller: Caller = Depends(get_caller)):
    require_roles(caller, Role.ADMIN, message="Only admins can view the dashboard")

    now = now_utc()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)

    with db_transaction("fetch dashboard") as conn:
        cur = conn.cursor()
        stats = {
            "total_patients": _count(cur, "SELECT COUNT(*) AS count FROM patients"),
            "total_providers": _count(cur, "SELECT COUNT(*) AS count FROM providers"),
            "active_products": _count(cur, "SELECT COUNT(*) AS count FROM products WHERE active = true"),
            "appointments_this_month": _count(
                cur,
                "SELECT COUNT(*) AS count FROM appointments WHERE datetime >= %s",
                (month_start,),
            ),
            "new_patients_this_week": _count(
                cur,
                "SELECT COUNT(*) AS count FROM patients WHERE created_at >= %s",
                (now - timedelta(days=NEW_PATIENT_WINDOW_DAYS),),
            ),
        }

        cur.execute("""
            SELECT a.id, a.datetime, a.type, a.status,
                   pu.first_name AS patient_first_name, pu.last_name AS patient_last_name
            FROM appointments a
            LEFT JOIN patients pt ON pt.id = a.patient_id
            LEFT JOIN users pu ON pu.id = pt.user_id
            WHERE a.datetime >= %s AND a.datetime < %s
            ORDER BY a.datetime ASC
        """, (day_start, day_end))
        todays_appointments = [dict(row) for row in cur.fetchall()]

        cur.execute("""
            SELECT pt.id, u.first_name, u.last_name, u.email, pt.created_at
            FROM patients pt
            JOIN users u ON u.id = pt.user_id
            ORDER BY pt.created_at DESC
            LIMIT %s
        """, (RECENT_PATIENT_LIMIT,))
        recent_patients = [dict(row) for row in cur.fetchall()]
        cur.close()

    return ok({
        "stats": stats,
        "todays_appointments": todays_appointments,
        "recent_patients": recent_patients,
    })
