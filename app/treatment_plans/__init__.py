"""
Treatment Plans Module

Provider-authored plans (lifestyle, nutrition, training, prescriptions,
peptides, supplements) with a draft -> active -> sent -> signed-off
lifecycle. The lifecycle functions are pure; the router loads, applies
and persists one step per request.
"""

from .models import (
    PlanStatus,
    ReviewState,
    MedicationTiming,
    LifestyleData,
    NutritionData,
    TrainingData,
    PrescriptionItem,
    PeptideItem,
    SupplementItem,
    TreatmentPlan,
    TreatmentPlanUpdate,
)
from .lifecycle import (
    PlanTransitionError,
    publish,
    send_to_patient,
    sign_off,
    complete,
    apply_update,
    ensure_deletable,
    review_state,
    plan_has_content,
)
from .router import router

__all__ = [
    # Models
    "PlanStatus",
    "ReviewState",
    "MedicationTiming",
    "LifestyleData",
    "NutritionData",
    "TrainingData",
    "PrescriptionItem",
    "PeptideItem",
    "SupplementItem",
    "TreatmentPlan",
    "TreatmentPlanUpdate",
    # Lifecycle
    "PlanTransitionError",
    "publish",
    "send_to_patient",
    "sign_off",
    "complete",
    "apply_update",
    "ensure_deletable",
    "review_state",
    "plan_has_content",
    # Router
    "router",
]
