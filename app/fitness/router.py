"""
Fitness Endpoints

- POST /api/v1/fitness/personal-records               - log a lift
- GET  /api/v1/fitness/personal-records               - up to 100, newest first
- GET  /api/v1/fitness/personal-records/current       - best lift per type
- GET  /api/v1/fitness/personal-records/history/{lift} - chart series
- POST /api/v1/fitness/notes                          - training note
- GET  /api/v1/fitness/notes                          - up to 50, newest first
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.shared.auth import Caller, get_caller, require_patient, resolve_patient_scope
from app.shared.db import db_transaction
from app.shared.results import ok

from .models import (
    FitnessNote,
    FitnessNoteCreate,
    LiftType,
    PersonalRecord,
    PersonalRecordCreate,
)
from .records import current_prs, lift_history

logger = logging.getLogger("fitness")

router = APIRouter(
    prefix="/api/v1/fitness",
    tags=["fitness"],
)

PR_LIST_LIMIT = 100
NOTE_LIST_LIMIT = 50


def fetch_personal_records(
    cur,
    patient_id: str,
    lift_type: Optional[LiftType] = None,
    limit: Optional[int] = None,
) -> List[PersonalRecord]:
    sql = """
        SELECT id, patient_id, lift_type, weight_lbs, reps, recorded_at, notes, created_at
        FROM personal_records
        WHERE patient_id = %s
    """
    params = [patient_id]
    if lift_type is not None:
        sql += " AND lift_type = %s"
        params.append(lift_type.value)
    sql += " ORDER BY recorded_at DESC, created_at DESC"
    if limit is not None:
        sql += " LIMIT %s"
        params.append(limit)

    cur.execute(sql, tuple(params))
    return [PersonalRecord.model_validate(dict(row)) for row in cur.fetchall()]


# =============================================
# Personal records
# =============================================

@router.post("/personal-records")
def create_personal_record(
    request: PersonalRecordCreate,
    caller: Caller = Depends(get_caller),
):
    patient_id = require_patient(caller, message="Only patients can create personal records")

    with db_transaction("create personal record") as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO personal_records (patient_id, lift_type, weight_lbs, reps, recorded_at, notes, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, NOW(), NOW())
            RETURNING id
        """, (
            patient_id,
            request.lift_type.value,
            request.weight_lbs,
            request.reps,
            request.recorded_at,
            (request.notes or "").strip() or None,
        ))
        record_id = str(cur.fetchone()["id"])
        cur.close()

    logger.info(f"PR logged: {request.lift_type.value} {request.weight_lbs}x{request.reps} for patient {patient_id}")
    return ok({"id": record_id})


@router.get("/personal-records")
def list_personal_records(
    lift_type: Optional[LiftType] = Query(None),
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch personal records") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        records = fetch_personal_records(cur, scope, lift_type=lift_type, limit=PR_LIST_LIMIT)
        cur.close()

    return ok(records)


@router.get("/personal-records/current")
def get_current_prs(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    """Heaviest lift per type across the full history."""
    with db_transaction("fetch personal records") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        records = fetch_personal_records(cur, scope)
        cur.close()

    return ok(current_prs(records))


@router.get("/personal-records/history/{lift_type}")
def get_lift_history(
    lift_type: LiftType,
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch personal records") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        records = fetch_personal_records(cur, scope, lift_type=lift_type, limit=PR_LIST_LIMIT)
        cur.close()

    return ok(lift_history(records, lift_type))


# =============================================
# Fitness notes
# =============================================

@router.post("/notes")
def create_fitness_note(
    request: FitnessNoteCreate,
    caller: Caller = Depends(get_caller),
):
    patient_id = require_patient(caller, message="Only patients can create fitness notes")

    with db_transaction("create fitness note") as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO fitness_notes (patient_id, content, note_date, created_at, updated_at)
            VALUES (%s, %s, %s, NOW(), NOW())
            RETURNING id
        """, (patient_id, request.content, request.note_date))
        note_id = str(cur.fetchone()["id"])
        cur.close()

    return ok({"id": note_id})


@router.get("/notes")
def list_fitness_notes(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch fitness notes") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        cur.execute("""
            SELECT id, patient_id, content, note_date, created_at
            FROM fitness_notes
            WHERE patient_id = %s
            ORDER BY note_date DESC, created_at DESC
            LIMIT %s
        """, (scope, NOTE_LIST_LIMIT))
        notes = [FitnessNote.model_validate(dict(row)) for row in cur.fetchall()]
        cur.close()

    return ok(notes)
