"""
Treatment Plan Models

Pydantic models for the plan lifecycle:
- PlanStatus: stored status (draft / active / completed)
- ReviewState: derived patient-review view of a plan
- Section models: typed content for each editor tab
- TreatmentPlan: full plan row, validated when read back from the store
- TreatmentPlanUpdate: partial section update
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PlanStatus(str, Enum):
    """Stored plan status."""
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


class ReviewState(str, Enum):
    """Where a plan stands with the patient."""
    UNSENT = "unsent"
    AWAITING_SIGNOFF = "awaiting_signoff"
    REVISED_SINCE_SEND = "revised_since_send"
    SIGNED_OFF = "signed_off"


class MedicationTiming(str, Enum):
    MORNING = "morning"
    EVENING = "evening"
    WITH_FOOD = "with_food"
    BEFORE_BED = "before_bed"
    AS_DIRECTED = "as_directed"


# =============================================
# Sections
# =============================================

class SectionModel(BaseModel):
    """
    Section content is stored as JSONB with camelCase keys
    (generalNotes, startDate, injectionSite). Both spellings are accepted.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LifestyleRecommendation(SectionModel):
    recommendation: str
    notes: Optional[str] = None


class LifestyleData(SectionModel):
    sleep: Optional[LifestyleRecommendation] = None
    stress: Optional[LifestyleRecommendation] = None
    habits: List[LifestyleRecommendation] = Field(default_factory=list)
    general_notes: Optional[str] = None


class NutritionData(SectionModel):
    """Daily targets in kcal / grams."""
    calories: Optional[float] = Field(None, ge=0)
    protein: Optional[float] = Field(None, ge=0)
    carbs: Optional[float] = Field(None, ge=0)
    fat: Optional[float] = Field(None, ge=0)
    guidelines: List[str] = Field(default_factory=list)
    restrictions: List[str] = Field(default_factory=list)
    general_notes: Optional[str] = None


class ExerciseItem(SectionModel):
    name: str
    sets: Optional[int] = Field(None, ge=0)
    reps: Optional[str] = None
    notes: Optional[str] = None


class TrainingData(SectionModel):
    frequency: Optional[str] = None
    focus: List[str] = Field(default_factory=list)
    exercises: List[ExerciseItem] = Field(default_factory=list)
    general_notes: Optional[str] = None


class MedicationItem(SectionModel):
    """Shared shape of prescriptions, peptides and supplements."""
    name: str
    dosage: str
    frequency: str
    timing: MedicationTiming = MedicationTiming.AS_DIRECTED
    instructions: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class PrescriptionItem(MedicationItem):
    start_date: Optional[date] = None


class PeptideItem(MedicationItem):
    injection_site: Optional[str] = None


class SupplementItem(MedicationItem):
    brand: Optional[str] = None


SECTION_FIELDS = (
    "lifestyle_behaviors",
    "nutrition",
    "training",
    "prescriptions_data",
    "peptides_data",
    "supplements_data",
)


# =============================================
# Plan
# =============================================

class TreatmentPlan(BaseModel):
    """
    One patient's treatment plan.

    Review progress lives in the timestamps: sent_to_patient_at,
    patient_signed_off_at and revised_at (section edits after the last send).
    Lifecycle functions return updated copies; instances are never mutated.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    patient_id: str
    provider_id: Optional[str] = None
    status: PlanStatus = PlanStatus.DRAFT

    lifestyle_behaviors: Optional[LifestyleData] = None
    nutrition: Optional[NutritionData] = None
    training: Optional[TrainingData] = None
    prescriptions_data: Optional[List[PrescriptionItem]] = None
    peptides_data: Optional[List[PeptideItem]] = None
    supplements_data: Optional[List[SupplementItem]] = None
    notes: Optional[str] = None

    sent_to_patient_at: Optional[datetime] = None
    patient_signed_off_at: Optional[datetime] = None
    revised_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "patient_id", "provider_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v


class TreatmentPlanCreate(BaseModel):
    patient_id: str = Field(..., min_length=1)


class TreatmentPlanUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are applied;
    an explicit null clears that section.
    """
    lifestyle_behaviors: Optional[LifestyleData] = None
    nutrition: Optional[NutritionData] = None
    training: Optional[TrainingData] = None
    prescriptions_data: Optional[List[PrescriptionItem]] = None
    peptides_data: Optional[List[PeptideItem]] = None
    supplements_data: Optional[List[SupplementItem]] = None
    notes: Optional[str] = None

    def provided_fields(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}
