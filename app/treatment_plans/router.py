"""
Treatment Plan Endpoints

Provider / admin:
- POST   /api/v1/treatment-plans                      - create draft (one per patient)
- GET    /api/v1/treatment-plans/patient/{patient_id} - plan for the editor
- PATCH  /api/v1/treatment-plans/{plan_id}            - update sections
- POST   /api/v1/treatment-plans/{plan_id}/publish    - draft -> active
- POST   /api/v1/treatment-plans/{plan_id}/send       - send for patient review
- POST   /api/v1/treatment-plans/{plan_id}/complete   - active -> completed
- DELETE /api/v1/treatment-plans/{plan_id}            - delete a draft

Patient:
- GET  /api/v1/treatment-plans/me                    - own published plan
- GET  /api/v1/treatment-plans/me/pending-signoff    - plan awaiting sign-off
- POST /api/v1/treatment-plans/{plan_id}/sign-off

Every write is recorded in audit_log.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.shared.auth import (
    Caller,
    Role,
    get_caller,
    require_patient,
    require_roles,
    require_staff,
    can_access_plan,
    ensure_patient_access,
)
from app.shared.db import db_transaction, now_utc, write_audit
from app.shared.results import ok
from app.lifestyle.models import provider_display_name

from .models import (
    PlanStatus,
    ReviewState,
    SECTION_FIELDS,
    TreatmentPlan,
    TreatmentPlanCreate,
    TreatmentPlanUpdate,
)
from . import lifecycle
from .lifecycle import PlanTransitionError

logger = logging.getLogger("treatment_plans")

router = APIRouter(
    prefix="/api/v1/treatment-plans",
    tags=["treatment_plans"],
)

PLAN_COLUMNS = """
    id, patient_id, provider_id, status,
    lifestyle_behaviors, nutrition, training,
    prescriptions_data, peptides_data, supplements_data, notes,
    sent_to_patient_at, patient_signed_off_at, revised_at,
    created_at, updated_at
"""

JSON_COLUMNS = set(SECTION_FIELDS)

# Columns written back after a lifecycle step
WRITABLE_COLUMNS = SECTION_FIELDS + (
    "status",
    "notes",
    "sent_to_patient_at",
    "patient_signed_off_at",
    "revised_at",
    "updated_at",
)


# =============================================
# Store helpers
# =============================================

def section_json(value: Any) -> Optional[str]:
    """Serialize a typed section for a JSONB column."""
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return json.dumps(value.model_dump(mode="json", by_alias=True))
    return json.dumps([item.model_dump(mode="json", by_alias=True) for item in value])


def column_value(name: str, value: Any) -> Any:
    if name in JSON_COLUMNS:
        return section_json(value)
    if name == "status" and value is not None:
        return PlanStatus(value).value
    return value


def load_plan(cur, plan_id: str) -> TreatmentPlan:
    cur.execute(f"SELECT {PLAN_COLUMNS} FROM treatment_plans WHERE id = %s", (plan_id,))
    row = cur.fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Treatment plan not found")
    return TreatmentPlan.model_validate(dict(row))


def save_plan(cur, before: TreatmentPlan, after: TreatmentPlan) -> Dict[str, Any]:
    """Write the columns that differ between two versions; returns the diff."""
    changed = {
        name: getattr(after, name)
        for name in WRITABLE_COLUMNS
        if getattr(after, name) != getattr(before, name)
    }
    if not changed:
        return changed

    assignments = ", ".join(f"{name} = %s" for name in changed)
    params = [column_value(name, value) for name, value in changed.items()]
    params.append(before.id)
    cur.execute(f"UPDATE treatment_plans SET {assignments} WHERE id = %s", tuple(params))
    return changed


def audit_payload(plan: TreatmentPlan, fields) -> Dict[str, Any]:
    return {name: plan.model_dump(mode="json", include={name}).get(name) for name in fields}


def plan_view(plan: TreatmentPlan) -> Dict[str, Any]:
    view = plan.model_dump(mode="json")
    view["review_state"] = lifecycle.review_state(plan).value
    return view


def require_plan_access(caller: Caller, plan: TreatmentPlan) -> None:
    require_staff(caller)
    if not can_access_plan(caller, plan.provider_id):
        raise HTTPException(status_code=403, detail="You do not have access to this treatment plan")


def run_transition(
    plan_id: str,
    caller: Caller,
    action: str,
    step: Callable[[TreatmentPlan], TreatmentPlan],
) -> TreatmentPlan:
    """Load, check access, apply one lifecycle step, persist and audit."""
    with db_transaction(f"{action.replace('_', ' ')} treatment plan") as conn:
        cur = conn.cursor()
        before = load_plan(cur, plan_id)

        if caller.role == Role.PATIENT:
            if before.patient_id != caller.patient_id:
                raise HTTPException(status_code=403, detail="You do not have access to this treatment plan")
        else:
            require_plan_access(caller, before)

        try:
            after = step(before)
        except PlanTransitionError as e:
            logger.info(f"Plan {plan_id} {action} rejected: {e.code}")
            raise HTTPException(status_code=400, detail=e.message)

        changed = save_plan(cur, before, after)
        write_audit(
            cur, caller.user_id, action, "treatment_plan", plan_id,
            old_data=audit_payload(before, changed),
            new_data=audit_payload(after, changed),
        )
        cur.close()

    logger.info(f"Plan {plan_id} {action}: status={after.status.value} review={lifecycle.review_state(after).value}")
    return after


# =============================================
# Provider endpoints
# =============================================

@router.post("")
def create_treatment_plan(
    request: TreatmentPlanCreate,
    caller: Caller = Depends(get_caller),
):
    """New empty draft. A patient has at most one plan."""
    require_roles(caller, Role.PROVIDER, Role.ADMIN, message="Only providers can create treatment plans")
    require_staff(caller)

    with db_transaction("create treatment plan") as conn:
        cur = conn.cursor()
        cur.execute("SELECT id FROM patients WHERE id = %s", (request.patient_id,))
        if not cur.fetchone():
            raise HTTPException(status_code=404, detail="Patient not found")

        cur.execute("SELECT id FROM treatment_plans WHERE patient_id = %s LIMIT 1", (request.patient_id,))
        if cur.fetchone():
            raise HTTPException(status_code=409, detail="A treatment plan already exists for this patient")

        cur.execute("""
            INSERT INTO treatment_plans (patient_id, provider_id, status, created_at, updated_at)
            VALUES (%s, %s, %s, NOW(), NOW())
            RETURNING id
        """, (request.patient_id, caller.provider_id, PlanStatus.DRAFT.value))
        plan_id = str(cur.fetchone()["id"])

        write_audit(
            cur, caller.user_id, "create", "treatment_plan", plan_id,
            new_data={"patient_id": request.patient_id, "status": PlanStatus.DRAFT.value},
        )
        cur.close()

    logger.info(f"Draft plan {plan_id} created for patient {request.patient_id}")
    return ok({"id": plan_id})


@router.get("/patient/{patient_id}")
def get_treatment_plan_for_patient(
    patient_id: str,
    caller: Caller = Depends(get_caller),
):
    """Plan for the editor; data is null when the patient has none."""
    with db_transaction("fetch treatment plan") as conn:
        cur = conn.cursor()
        ensure_patient_access(cur, caller, patient_id)
        cur.execute(f"SELECT {PLAN_COLUMNS} FROM treatment_plans WHERE patient_id = %s LIMIT 1", (patient_id,))
        row = cur.fetchone()
        cur.close()

    if not row:
        return ok(None)
    return ok(plan_view(TreatmentPlan.model_validate(dict(row))))


@router.patch("/{plan_id}")
def update_treatment_plan(
    plan_id: str,
    update: TreatmentPlanUpdate,
    caller: Caller = Depends(get_caller),
):
    require_staff(caller)
    plan = run_transition(
        plan_id, caller, "update",
        lambda p: lifecycle.apply_update(p, update, now_utc()),
    )
    return ok(plan_view(plan))


@router.post("/{plan_id}/publish")
def publish_treatment_plan(
    plan_id: str,
    caller: Caller = Depends(get_caller),
):
    require_staff(caller)
    plan = run_transition(plan_id, caller, "publish", lambda p: lifecycle.publish(p, now_utc()))
    return ok(plan_view(plan))


@router.post("/{plan_id}/send")
def send_treatment_plan(
    plan_id: str,
    caller: Caller = Depends(get_caller),
):
    require_staff(caller)
    plan = run_transition(plan_id, caller, "send_to_patient", lambda p: lifecycle.send_to_patient(p, now_utc()))
    return ok(plan_view(plan))


@router.post("/{plan_id}/complete")
def complete_treatment_plan(
    plan_id: str,
    caller: Caller = Depends(get_caller),
):
    require_staff(caller)
    plan = run_transition(plan_id, caller, "complete", lambda p: lifecycle.complete(p, now_utc()))
    return ok(plan_view(plan))


@router.delete("/{plan_id}")
def delete_treatment_plan(
    plan_id: str,
    caller: Caller = Depends(get_caller),
):
    require_staff(caller)

    with db_transaction("delete treatment plan") as conn:
        cur = conn.cursor()
        plan = load_plan(cur, plan_id)
        require_plan_access(caller, plan)

        try:
            lifecycle.ensure_deletable(plan)
        except PlanTransitionError as e:
            raise HTTPException(status_code=400, detail=e.message)

        cur.execute("DELETE FROM treatment_plans WHERE id = %s", (plan_id,))
        write_audit(
            cur, caller.user_id, "delete", "treatment_plan", plan_id,
            old_data=plan.model_dump(mode="json"),
        )
        cur.close()

    logger.info(f"Draft plan {plan_id} deleted")
    return ok({"id": plan_id})


# =============================================
# Patient endpoints
# =============================================

@router.get("/me")
def get_my_treatment_plan(caller: Caller = Depends(get_caller)):
    """Published plan (active or completed). Drafts stay hidden."""
    patient_id = require_patient(caller, message="Only patients can view their treatment plan")

    with db_transaction("fetch treatment plan") as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT {PLAN_COLUMNS} FROM treatment_plans
            WHERE patient_id = %s AND status IN (%s, %s)
            LIMIT 1
        """, (patient_id, PlanStatus.ACTIVE.value, PlanStatus.COMPLETED.value))
        row = cur.fetchone()
        cur.close()

    if not row:
        return ok(None)
    return ok(plan_view(TreatmentPlan.model_validate(dict(row))))


@router.get("/me/pending-signoff")
def get_pending_signoff(caller: Caller = Depends(get_caller)):
    """Plan sent for review and not yet signed off, with the provider's name."""
    patient_id = require_patient(caller, message="Only patients can access pending sign-offs")

    with db_transaction("fetch pending sign-off") as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT {PLAN_COLUMNS} FROM treatment_plans
            WHERE patient_id = %s AND sent_to_patient_at IS NOT NULL
            LIMIT 1
        """, (patient_id,))
        row = cur.fetchone()
        if not row:
            cur.close()
            return ok(None)

        plan = TreatmentPlan.model_validate(dict(row))
        if lifecycle.review_state(plan) != ReviewState.AWAITING_SIGNOFF:
            cur.close()
            return ok(None)

        provider_name = None
        if plan.provider_id:
            cur.execute("""
                SELECT u.first_name, u.last_name
                FROM providers pr JOIN users u ON u.id = pr.user_id
                WHERE pr.id = %s
            """, (plan.provider_id,))
            provider = cur.fetchone()
            if provider:
                provider_name = provider_display_name(provider["first_name"], provider["last_name"])
        cur.close()

    view = plan_view(plan)
    view["provider_name"] = provider_name
    return ok(view)


@router.post("/{plan_id}/sign-off")
def sign_off_treatment_plan(
    plan_id: str,
    caller: Caller = Depends(get_caller),
):
    require_patient(caller, message="Only patients can sign off on treatment plans")
    plan = run_transition(plan_id, caller, "sign_off", lambda p: lifecycle.sign_off(p, now_utc()))
    return ok(plan_view(plan))
