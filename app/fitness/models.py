"""
Fitness Models

- LiftType: tracked lift categories
- PersonalRecord / PersonalRecordCreate: logged lifts
- LiftHistoryPoint: one point on a lift's progress chart
- FitnessNote / FitnessNoteCreate: free-text training notes
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class LiftType(str, Enum):
    SQUAT = "squat"
    BENCH_PRESS = "bench_press"
    DEADLIFT = "deadlift"
    OVERHEAD_PRESS = "overhead_press"
    BARBELL_ROW = "barbell_row"
    PULL_UP = "pull_up"
    OTHER = "other"


class PersonalRecord(BaseModel):
    """A single logged lift. The current PR is derived, never stored."""
    id: Optional[str] = None
    patient_id: Optional[str] = None
    lift_type: LiftType
    weight_lbs: float
    reps: int
    recorded_at: date
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "patient_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v


class PersonalRecordCreate(BaseModel):
    lift_type: LiftType
    weight_lbs: float = Field(..., gt=0, description="Weight must be greater than 0")
    reps: int = Field(..., gt=0, description="Reps must be greater than 0")
    recorded_at: date
    notes: Optional[str] = None


class LiftHistoryPoint(BaseModel):
    date: date
    weight_lbs: float
    reps: int


class FitnessNote(BaseModel):
    id: Optional[str] = None
    patient_id: Optional[str] = None
    content: str
    note_date: date
    created_at: Optional[datetime] = None

    @field_validator("id", "patient_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v


class FitnessNoteCreate(BaseModel):
    content: str
    note_date: date

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Note content is required")
        return v
