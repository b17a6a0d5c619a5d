"""
Body Metric Endpoints

- POST /api/v1/body-metrics                 - record measurements
- GET  /api/v1/body-metrics                 - up to 50, newest first
- GET  /api/v1/body-metrics/latest          - most recent or null
- GET  /api/v1/body-metrics/series/{metric} - chart series, oldest first
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.shared.auth import Caller, get_caller, require_patient, resolve_patient_scope
from app.shared.db import db_transaction
from app.shared.results import ok
from app.trends import BODY_METRIC_FIELDS, body_metric_series

from .models import BodyMetric, BodyMetricCreate

logger = logging.getLogger("body_metrics")

router = APIRouter(
    prefix="/api/v1/body-metrics",
    tags=["body_metrics"],
)

METRIC_LIST_LIMIT = 50

METRIC_COLUMNS = """
    id, patient_id, measured_at, weight_lbs, chest_inches, waist_inches,
    hip_inches, arm_inches, thigh_inches, notes, created_at
"""


@router.post("")
def create_body_metric(
    request: BodyMetricCreate,
    caller: Caller = Depends(get_caller),
):
    patient_id = require_patient(caller, message="Only patients can create body metrics")

    with db_transaction("create body metric") as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO body_metrics (
                patient_id, measured_at, weight_lbs, chest_inches, waist_inches,
                hip_inches, arm_inches, thigh_inches, notes, created_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, NOW())
            RETURNING id
        """, (
            patient_id,
            request.measured_at,
            request.weight_lbs,
            request.chest_inches,
            request.waist_inches,
            request.hip_inches,
            request.arm_inches,
            request.thigh_inches,
            (request.notes or "").strip() or None,
        ))
        metric_id = str(cur.fetchone()["id"])
        cur.close()

    logger.info(f"Body metric {metric_id} recorded for patient {patient_id}")
    return ok({"id": metric_id})


@router.get("")
def list_body_metrics(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch body metrics") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        cur.execute(f"""
            SELECT {METRIC_COLUMNS}
            FROM body_metrics
            WHERE patient_id = %s
            ORDER BY measured_at DESC
            LIMIT %s
        """, (scope, METRIC_LIST_LIMIT))
        metrics = [BodyMetric.model_validate(dict(row)) for row in cur.fetchall()]
        cur.close()

    return ok(metrics)


@router.get("/latest")
def get_latest_body_metric(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    """Most recent measurement set; data is null when none exist."""
    with db_transaction("fetch body metrics") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        cur.execute(f"""
            SELECT {METRIC_COLUMNS}
            FROM body_metrics
            WHERE patient_id = %s
            ORDER BY measured_at DESC
            LIMIT 1
        """, (scope,))
        row = cur.fetchone()
        cur.close()

    return ok(BodyMetric.model_validate(dict(row)) if row else None)


@router.get("/series/{metric}")
def get_body_metric_series(
    metric: str,
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    if metric not in BODY_METRIC_FIELDS:
        raise HTTPException(status_code=400, detail=f"Unknown body metric: {metric}")

    with db_transaction("fetch body metrics") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        cur.execute(f"""
            SELECT {METRIC_COLUMNS}
            FROM body_metrics
            WHERE patient_id = %s
            ORDER BY measured_at DESC
            LIMIT %s
        """, (scope, METRIC_LIST_LIMIT))
        metrics = [BodyMetric.model_validate(dict(row)) for row in cur.fetchall()]
        cur.close()

    return ok(body_metric_series(metrics, metric))
