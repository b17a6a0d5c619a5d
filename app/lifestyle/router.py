"""
Lifestyle Endpoints

- POST /api/v1/lifestyle/notes          - patient journal entry
- GET  /api/v1/lifestyle/notes          - newest note_date first
- GET  /api/v1/lifestyle/meeting-notes  - notes from completed appointments
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.shared.auth import Caller, get_caller, require_patient, resolve_patient_scope
from app.shared.db import db_transaction
from app.shared.results import ok

from .models import (
    LifestyleNote,
    LifestyleNoteCreate,
    ProviderMeetingNote,
    provider_display_name,
)

logger = logging.getLogger("lifestyle")

router = APIRouter(
    prefix="/api/v1/lifestyle",
    tags=["lifestyle"],
)


@router.post("/notes")
def create_lifestyle_note(
    request: LifestyleNoteCreate,
    caller: Caller = Depends(get_caller),
):
    patient_id = require_patient(caller, message="Only patients can create lifestyle notes")

    with db_transaction("create lifestyle note") as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO lifestyle_notes (patient_id, content, note_date, created_at, updated_at)
            VALUES (%s, %s, %s, NOW(), NOW())
            RETURNING id
        """, (patient_id, request.content, request.note_date))
        note_id = str(cur.fetchone()["id"])
        cur.close()

    return ok({"id": note_id})


@router.get("/notes")
def list_lifestyle_notes(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch lifestyle notes") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        cur.execute("""
            SELECT id, patient_id, content, note_date, created_at
            FROM lifestyle_notes
            WHERE patient_id = %s
            ORDER BY note_date DESC, created_at DESC
        """, (scope,))
        notes = [LifestyleNote.model_validate(dict(row)) for row in cur.fetchall()]
        cur.close()

    return ok(notes)


@router.get("/meeting-notes")
def list_provider_meeting_notes(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    """Completed appointments that carry provider notes, newest first."""
    with db_transaction("fetch meeting notes") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        cur.execute("""
            SELECT a.datetime, a.notes, u.first_name, u.last_name
            FROM appointments a
            LEFT JOIN providers pr ON pr.id = a.provider_id
            LEFT JOIN users u ON u.id = pr.user_id
            WHERE a.patient_id = %s
              AND a.status = 'completed'
              AND a.notes IS NOT NULL
            ORDER BY a.datetime DESC
        """, (scope,))
        rows = cur.fetchall()
        cur.close()

    return ok([
        ProviderMeetingNote(
            date=row["datetime"],
            notes=row["notes"] or "",
            provider_name=provider_display_name(row.get("first_name"), row.get("last_name")),
        )
        for row in rows
    ])
