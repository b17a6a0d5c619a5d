"""
Blood Work Endpoints

Patients:
- POST /api/v1/bloodwork/manual        - manual entry, flags computed here
- POST /api/v1/bloodwork/upload-url    - signed PDF upload URL
- POST /api/v1/bloodwork/uploaded      - link uploaded PDF to history
- GET  /api/v1/bloodwork               - history (newest first)
- GET  /api/v1/bloodwork/requests      - blood-draw requests
- POST /api/v1/bloodwork/requests      - request a blood draw
- GET  /api/v1/bloodwork/calendar      - completed labs + requests

Providers read the same history with ?patient_id= and review requests.
"""

import json
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.shared.auth import (
    Caller,
    Role,
    get_caller,
    require_patient,
    require_staff,
    ensure_patient_access,
    resolve_patient_scope,
)
from app.shared.db import db_transaction, now_utc
from app.shared.results import ok
from app.shared.storage import StorageClient, get_storage
from app.trends import biomarker_trend, bloodwork_events

from .models import (
    BloodWorkRecord,
    BloodWorkRequestCreate,
    BloodWorkRequestRecord,
    BloodWorkRequestReview,
    BloodWorkRequestStatus,
    ManualEntryRequest,
    SaveUploadedRequest,
    UploadUrlRequest,
    UploadUrlResponse,
)
from .flags import build_biomarker_map, flag_summary, trend_change, unique_biomarkers
from .requests import RequestTransitionError, check_review_transition

logger = logging.getLogger("bloodwork")

router = APIRouter(
    prefix="/api/v1/bloodwork",
    tags=["bloodwork"],
)


# =============================================
# Helpers
# =============================================

def fetch_records(cur, patient_id: str) -> List[BloodWorkRecord]:
    cur.execute("""
        SELECT id, patient_id, date, lab_source, pdf_url, biomarkers, notes, created_at
        FROM blood_work
        WHERE patient_id = %s
        ORDER BY date DESC
    """, (patient_id,))
    return [BloodWorkRecord.model_validate(dict(row)) for row in cur.fetchall()]


def fetch_requests(cur, patient_id: str) -> List[BloodWorkRequestRecord]:
    cur.execute("""
        SELECT id, patient_id, requested_date, reason, status, provider_notes,
               reviewed_by, reviewed_at, created_at
        FROM blood_work_requests
        WHERE patient_id = %s
        ORDER BY requested_date ASC
    """, (patient_id,))
    return [BloodWorkRequestRecord.model_validate(dict(row)) for row in cur.fetchall()]


# =============================================
# Lab results
# =============================================

@router.post("/manual")
def save_manual_bloodwork(
    request: ManualEntryRequest,
    caller: Caller = Depends(get_caller),
):
    """Save manually entered results; each biomarker is flagged against its range."""
    patient_id = require_patient(caller, message="Only patients can enter blood work")
    biomarkers = build_biomarker_map(request.biomarkers)

    with db_transaction("save blood work") as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO blood_work (patient_id, date, lab_source, pdf_url, biomarkers, notes, created_at, updated_at)
            VALUES (%s, %s, %s, NULL, %s, %s, NOW(), NOW())
            RETURNING id
        """, (
            patient_id,
            request.date,
            request.lab_source.value,
            json.dumps({name: v.model_dump(mode="json") for name, v in biomarkers.items()}),
            (request.notes or "").strip() or None,
        ))
        record_id = str(cur.fetchone()["id"])
        cur.close()

    logger.info(f"Saved manual blood work {record_id} ({len(biomarkers)} biomarkers) for patient {patient_id}")
    return ok({
        "id": record_id,
        "biomarkers": biomarkers,
        "summary": flag_summary(biomarkers),
    })


@router.post("/upload-url")
def get_upload_url(
    request: UploadUrlRequest,
    caller: Caller = Depends(get_caller),
    storage: StorageClient = Depends(get_storage),
):
    """Signed upload URL; object path is {patient_id}/{uuid}.{ext}."""
    patient_id = require_patient(caller, message="Only patients can upload blood work")

    ext = request.file_name.rsplit(".", 1)[-1].lower() if "." in request.file_name else "pdf"
    path = f"{patient_id}/{uuid.uuid4()}.{ext or 'pdf'}"

    return ok(UploadUrlResponse(**storage.create_signed_upload_url(path)))


@router.post("/uploaded")
def save_uploaded_bloodwork(
    request: SaveUploadedRequest,
    caller: Caller = Depends(get_caller),
    storage: StorageClient = Depends(get_storage),
):
    """Record an uploaded PDF. Biomarkers stay empty until entered."""
    patient_id = require_patient(caller, message="Only patients can upload blood work")

    if not request.pdf_path.startswith(f"{patient_id}/"):
        raise HTTPException(status_code=403, detail="Unauthorized file access")

    with db_transaction("save blood work record") as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO blood_work (patient_id, date, lab_source, pdf_url, biomarkers, notes, created_at, updated_at)
            VALUES (%s, %s, %s, %s, NULL, NULL, NOW(), NOW())
            RETURNING id
        """, (
            patient_id,
            request.date,
            request.lab_source.value,
            storage.public_url(request.pdf_path),
        ))
        record_id = str(cur.fetchone()["id"])
        cur.close()

    logger.info(f"Linked uploaded PDF to blood work {record_id}")
    return ok({"id": record_id})


@router.get("")
def list_bloodwork(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch blood work") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        records = fetch_records(cur, scope)
        cur.close()

    return ok(records)


@router.get("/biomarkers")
def list_biomarkers(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch blood work") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        records = fetch_records(cur, scope)
        cur.close()

    return ok(unique_biomarkers(records))


@router.get("/trend/{biomarker}")
def get_biomarker_trend(
    biomarker: str,
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    """Chart series for one biomarker, oldest first, plus the change between the last two readings."""
    with db_transaction("fetch blood work") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        records = fetch_records(cur, scope)
        cur.close()

    points = biomarker_trend(records, biomarker)
    change = trend_change(points[-1].value, points[-2].value) if len(points) >= 2 else None
    return ok({"points": points, "change": change})


# =============================================
# Blood-draw requests
# =============================================

@router.post("/requests")
def create_bloodwork_request(
    request: BloodWorkRequestCreate,
    caller: Caller = Depends(get_caller),
):
    patient_id = require_patient(caller, message="Unauthorized")

    with db_transaction("create blood work request") as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO blood_work_requests (patient_id, requested_date, reason, status, created_at, updated_at)
            VALUES (%s, %s, %s, %s, NOW(), NOW())
            RETURNING id
        """, (
            patient_id,
            request.requested_date,
            (request.reason or "").strip() or None,
            BloodWorkRequestStatus.PENDING.value,
        ))
        request_id = str(cur.fetchone()["id"])
        cur.close()

    logger.info(f"Blood work request {request_id} created for {request.requested_date}")
    return ok({"id": request_id})


@router.get("/requests")
def list_bloodwork_requests(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch blood work requests") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        requests = fetch_requests(cur, scope)
        cur.close()

    return ok(requests)


@router.post("/requests/{request_id}/review")
def review_bloodwork_request(
    request_id: str,
    review: BloodWorkRequestReview,
    caller: Caller = Depends(get_caller),
):
    """Provider approves/denies a pending request or completes an approved one."""
    require_staff(caller)

    with db_transaction("review blood work request") as conn:
        cur = conn.cursor()
        cur.execute("""
            SELECT id, patient_id, status FROM blood_work_requests WHERE id = %s
        """, (request_id,))
        existing = cur.fetchone()
        if not existing:
            raise HTTPException(status_code=404, detail="Blood work request not found")

        ensure_patient_access(cur, caller, str(existing["patient_id"]))

        try:
            check_review_transition(existing["status"], review.status)
        except RequestTransitionError as e:
            raise HTTPException(status_code=400, detail=e.message)

        reviewed_at = now_utc()
        cur.execute("""
            UPDATE blood_work_requests
            SET status = %s, provider_notes = %s, reviewed_by = %s, reviewed_at = %s, updated_at = NOW()
            WHERE id = %s
        """, (
            review.status.value,
            review.provider_notes,
            caller.user_id,
            reviewed_at,
            request_id,
        ))
        cur.close()

    logger.info(f"Blood work request {request_id}: {existing['status']} -> {review.status.value}")
    return ok({"id": request_id, "status": review.status, "reviewed_at": reviewed_at})


@router.get("/calendar")
def get_bloodwork_calendar(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch blood work schedule") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        records = fetch_records(cur, scope)
        requests = fetch_requests(cur, scope)
        cur.close()

    return ok(bloodwork_events(records, requests))


# Registered last so the fixed paths above win.
@router.get("/{record_id}")
def get_bloodwork_record(
    record_id: str,
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch blood work") as conn:
        cur = conn.cursor()
        cur.execute("""
            SELECT id, patient_id, date, lab_source, pdf_url, biomarkers, notes, created_at
            FROM blood_work
            WHERE id = %s
        """, (record_id,))
        row = cur.fetchone()
        if not row:
            raise HTTPException(status_code=404, detail="Blood work record not found")

        record = BloodWorkRecord.model_validate(dict(row))
        if caller.role == Role.PATIENT:
            if record.patient_id != caller.patient_id:
                raise HTTPException(status_code=403, detail="You do not have access to this record")
        else:
            ensure_patient_access(cur, caller, record.patient_id)
        cur.close()

    return ok({"record": record, "summary": flag_summary(record.biomarkers)})
