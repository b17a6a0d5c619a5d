"""
Treatment Plan Lifecycle

    draft --publish--> active --complete--> completed
                         |
                         +-- send_to_patient --> awaiting sign-off --sign_off--> signed off

Rules:
- publish needs at least one section with content
- send is only allowed while active; re-sending clears any prior sign-off
- section edits after a send mark the plan revised; the patient cannot sign
  off again until the provider re-sends
- completed plans are read-only
- only drafts can be deleted

Every function takes the current plan and returns a new one. A violated
precondition raises PlanTransitionError and nothing is applied.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from .models import (
    PlanStatus,
    ReviewState,
    SECTION_FIELDS,
    TreatmentPlan,
    TreatmentPlanUpdate,
)


class PlanTransitionError(Exception):
    """Raised when a lifecycle precondition is not met."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def _has_content(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, BaseModel):
        return any(_has_content(v) for v in value.__dict__.values())
    if isinstance(value, (list, tuple, dict, str)):
        return len(value) > 0
    return True


def plan_has_content(plan: TreatmentPlan) -> bool:
    """At least one section is filled in."""
    return any(_has_content(getattr(plan, name)) for name in SECTION_FIELDS)


def review_state(plan: TreatmentPlan) -> ReviewState:
    if plan.sent_to_patient_at is None:
        return ReviewState.UNSENT
    if plan.revised_at is not None:
        return ReviewState.REVISED_SINCE_SEND
    if plan.patient_signed_off_at is not None:
        return ReviewState.SIGNED_OFF
    return ReviewState.AWAITING_SIGNOFF


def publish(plan: TreatmentPlan, now: datetime) -> TreatmentPlan:
    if plan.status != PlanStatus.DRAFT:
        raise PlanTransitionError("invalid_status", "Only draft treatment plans can be published")
    if not plan_has_content(plan):
        raise PlanTransitionError(
            "empty_plan",
            "Treatment plan must have at least one section filled before publishing",
        )
    return plan.model_copy(update={"status": PlanStatus.ACTIVE, "updated_at": now})


def send_to_patient(plan: TreatmentPlan, now: datetime) -> TreatmentPlan:
    if plan.status != PlanStatus.ACTIVE:
        raise PlanTransitionError("invalid_status", "Plan must be published before sending to patient")
    return plan.model_copy(update={
        "sent_to_patient_at": now,
        "patient_signed_off_at": None,
        "revised_at": None,
        "updated_at": now,
    })


def sign_off(plan: TreatmentPlan, now: datetime) -> TreatmentPlan:
    if plan.sent_to_patient_at is None:
        raise PlanTransitionError("not_sent", "Treatment plan has not been sent for review")
    if plan.revised_at is not None:
        raise PlanTransitionError(
            "revised_since_send",
            "Treatment plan has changed since it was sent; wait for your provider to re-send it",
        )
    if plan.patient_signed_off_at is not None:
        raise PlanTransitionError("already_signed_off", "Treatment plan has already been signed off")
    return plan.model_copy(update={"patient_signed_off_at": now, "updated_at": now})


def complete(plan: TreatmentPlan, now: datetime) -> TreatmentPlan:
    if plan.status != PlanStatus.ACTIVE:
        raise PlanTransitionError("invalid_status", "Only active treatment plans can be completed")
    return plan.model_copy(update={"status": PlanStatus.COMPLETED, "updated_at": now})


def apply_update(plan: TreatmentPlan, update: TreatmentPlanUpdate, now: datetime) -> TreatmentPlan:
    """Replace only the sections present in the update."""
    if plan.status == PlanStatus.COMPLETED:
        raise PlanTransitionError("plan_completed", "Completed treatment plans cannot be edited")

    changes = update.provided_fields()
    if not changes:
        return plan

    changes["updated_at"] = now
    if plan.sent_to_patient_at is not None:
        changes["revised_at"] = now
    return plan.model_copy(update=changes)


def ensure_deletable(plan: TreatmentPlan) -> None:
    if plan.status != PlanStatus.DRAFT:
        raise PlanTransitionError("not_draft", "Only draft treatment plans can be deleted")
