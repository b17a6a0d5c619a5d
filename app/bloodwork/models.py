"""
Blood Work Models

- BiomarkerValue: stored measurement with derived flag (immutable)
- ManualEntryRequest: patient-entered lab results
- BloodWorkRecord: one lab draw (manual entry or uploaded PDF)
- BloodWorkRequest*: patient requests for a blood draw and provider review
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LabSource(str, Enum):
    QUEST = "quest"
    LABCORP = "labcorp"
    OTHER = "other"


class BiomarkerFlag(str, Enum):
    """Classification of a value against its reference range."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class BloodWorkRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    COMPLETED = "completed"


class BiomarkerValue(BaseModel):
    """
    Stored biomarker measurement.

    flag is None iff both reference bounds are None. Recomputed on every new
    entry, never mutated in place.
    """
    model_config = ConfigDict(frozen=True)

    value: float
    unit: str
    reference_low: Optional[float] = None
    reference_high: Optional[float] = None
    flag: Optional[BiomarkerFlag] = None


class BiomarkerInput(BaseModel):
    """Single biomarker as typed in by the patient."""
    name: str = Field(..., description="Biomarker name (e.g., 'Testosterone')")
    value: float = Field(..., gt=0, description="Measured value, must be positive")
    unit: str = Field(..., description="Unit of measurement (e.g., 'ng/dL')")
    reference_low: Optional[float] = None
    reference_high: Optional[float] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Biomarker name is required")
        return v

    @field_validator("unit")
    @classmethod
    def validate_unit(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Unit is required")
        return v


class ManualEntryRequest(BaseModel):
    """Manually entered blood work results."""
    date: date
    lab_source: LabSource
    notes: Optional[str] = None
    biomarkers: List[BiomarkerInput] = Field(..., min_length=1)


class UploadUrlRequest(BaseModel):
    file_name: str = Field(..., min_length=1)


class UploadUrlResponse(BaseModel):
    signed_url: str
    token: str
    path: str


class SaveUploadedRequest(BaseModel):
    """Link an uploaded PDF to the patient's history."""
    pdf_path: str = Field(..., min_length=1)
    date: date
    lab_source: LabSource


class BloodWorkRecord(BaseModel):
    id: Optional[str] = None
    patient_id: str
    date: date
    lab_source: LabSource
    pdf_url: Optional[str] = None
    biomarkers: Optional[Dict[str, BiomarkerValue]] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "patient_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v


class FlagSummary(BaseModel):
    low: int = 0
    normal: int = 0
    high: int = 0
    unflagged: int = 0


class TrendChange(BaseModel):
    direction: Literal["up", "down", "stable"]
    percent: float


class BloodWorkRequestCreate(BaseModel):
    requested_date: date
    reason: Optional[str] = None


class BloodWorkRequestReview(BaseModel):
    """Provider decision on a request."""
    status: BloodWorkRequestStatus
    provider_notes: Optional[str] = None


class BloodWorkRequestRecord(BaseModel):
    id: Optional[str] = None
    patient_id: str
    requested_date: date
    reason: Optional[str] = None
    status: BloodWorkRequestStatus = BloodWorkRequestStatus.PENDING
    provider_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "patient_id", "reviewed_by", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v
