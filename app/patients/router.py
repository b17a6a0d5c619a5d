"""
Patient Endpoints

Provider / admin:
- GET /api/v1/patients                      - patient list
- GET /api/v1/patients/{patient_id}         - patient detail
- PUT /api/v1/patients/{patient_id}         - update demographics / addresses

Patient (providers pass ?patient_id=):
- GET /api/v1/patients/prescriptions            - active prescriptions by refill date
- GET /api/v1/patients/prescriptions/calendar   - refill calendar events
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.shared.auth import (
    Caller,
    LicenseType,
    Role,
    get_caller,
    require_staff,
    ensure_patient_access,
    resolve_patient_scope,
)
from app.shared.db import db_transaction, write_audit
from app.shared.results import ok
from app.trends import days_until, refill_events

from .models import PatientSummary, PatientUpdate, PrescriptionRecord, PrescriptionStatus

logger = logging.getLogger("patients")

router = APIRouter(
    prefix="/api/v1/patients",
    tags=["patients"],
)


def fetch_active_prescriptions(cur, patient_id: str) -> List[PrescriptionRecord]:
    cur.execute("""
        SELECT rx.id, rx.product_id, p.name AS product_name, rx.dosage, rx.quantity,
               rx.instructions, rx.pharmacy, rx.refill_date, rx.auto_refill, rx.status
        FROM prescriptions rx
        LEFT JOIN products p ON p.id = rx.product_id
        WHERE rx.patient_id = %s AND rx.status = %s
        ORDER BY rx.refill_date ASC NULLS LAST
    """, (patient_id, PrescriptionStatus.ACTIVE.value))

    prescriptions = []
    for row in cur.fetchall():
        record = PrescriptionRecord.model_validate(dict(row))
        if record.refill_date is not None:
            record.days_until_refill = days_until(record.refill_date)
        prescriptions.append(record)
    return prescriptions


# =============================================
# Prescriptions (registered before /{patient_id})
# =============================================

@router.get("/prescriptions")
def list_prescriptions(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch prescriptions") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        prescriptions = fetch_active_prescriptions(cur, scope)
        cur.close()

    return ok(prescriptions)


@router.get("/prescriptions/calendar")
def get_refill_calendar(
    patient_id: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch prescriptions") as conn:
        cur = conn.cursor()
        scope = resolve_patient_scope(cur, caller, patient_id)
        prescriptions = fetch_active_prescriptions(cur, scope)
        cur.close()

    return ok(refill_events(prescriptions))


# =============================================
# Provider views
# =============================================

@router.get("")
def list_patients(caller: Caller = Depends(get_caller)):
    """
    MDs and admins see every patient; PA/NP see patients they hold a plan for.
    Most recently touched plans first.
    """
    require_staff(caller)

    sees_all = caller.role == Role.ADMIN or caller.license_type == LicenseType.MD

    with db_transaction("fetch patients") as conn:
        cur = conn.cursor()
        sql = """
            SELECT pt.id, pt.user_id, u.first_name, u.last_name, u.email, u.phone,
                   pt.date_of_birth, tp.status AS plan_status, pt.created_at
            FROM patients pt
            JOIN users u ON u.id = pt.user_id
            LEFT JOIN treatment_plans tp ON tp.patient_id = pt.id
        """
        params = ()
        if not sees_all:
            sql += " WHERE tp.provider_id = %s"
            params = (caller.provider_id,)
        sql += " ORDER BY tp.updated_at DESC NULLS LAST, pt.created_at DESC"

        cur.execute(sql, params)
        patients = [PatientSummary.model_validate(dict(row)) for row in cur.fetchall()]
        cur.close()

    return ok(patients)


@router.get("/{patient_id}")
def get_patient(
    patient_id: str,
    caller: Caller = Depends(get_caller),
):
    with db_transaction("fetch patient") as conn:
        cur = conn.cursor()
        ensure_patient_access(cur, caller, patient_id)
        cur.execute("""
            SELECT pt.id, pt.user_id, u.first_name, u.last_name, u.email, u.phone,
                   pt.date_of_birth, pt.shipping_address, pt.billing_address,
                   pt.insurance_info, pt.intake_form_data, pt.intake_completed, pt.created_at
            FROM patients pt
            JOIN users u ON u.id = pt.user_id
            WHERE pt.id = %s
        """, (patient_id,))
        row = cur.fetchone()
        cur.close()

    if not row:
        raise HTTPException(status_code=404, detail="Patient not found")

    patient = dict(row)
    patient["id"] = str(patient["id"])
    patient["user_id"] = str(patient["user_id"])
    return ok(patient)


@router.put("/{patient_id}")
def update_patient(
    patient_id: str,
    update: PatientUpdate,
    caller: Caller = Depends(get_caller),
):
    """Update name/phone on the user row and the rest on the patient row."""
    require_staff(caller)

    billing_address = update.resolved_billing_address()

    with db_transaction("update patient information") as conn:
        cur = conn.cursor()
        cur.execute("SELECT id, user_id FROM patients WHERE id = %s", (patient_id,))
        patient = cur.fetchone()
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")

        ensure_patient_access(cur, caller, patient_id)

        cur.execute("""
            UPDATE users
            SET first_name = %s, last_name = %s, phone = %s, updated_at = NOW()
            WHERE id = %s
        """, (update.first_name, update.last_name, update.phone, patient["user_id"]))

        cur.execute("""
            UPDATE patients
            SET date_of_birth = %s, shipping_address = %s, billing_address = %s,
                insurance_info = %s, updated_at = NOW()
            WHERE id = %s
        """, (
            update.date_of_birth,
            json.dumps(update.shipping_address.model_dump()) if update.shipping_address else None,
            json.dumps(billing_address.model_dump()) if billing_address else None,
            json.dumps(update.insurance_info.model_dump()) if update.insurance_info else None,
            patient_id,
        ))

        write_audit(
            cur, caller.user_id, "update", "patient", patient_id,
            new_data=update.model_dump(mode="json", exclude={"same_billing_as_shipping"}),
        )
        cur.close()

    logger.info(f"Patient {patient_id} updated by {caller.role.value} {caller.user_id}")
    return ok({"id": patient_id})
