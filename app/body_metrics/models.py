"""Body measurement models."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from app.trends import BODY_METRIC_FIELDS


class BodyMetric(BaseModel):
    id: Optional[str] = None
    patient_id: Optional[str] = None
    measured_at: date
    weight_lbs: Optional[float] = None
    chest_inches: Optional[float] = None
    waist_inches: Optional[float] = None
    hip_inches: Optional[float] = None
    arm_inches: Optional[float] = None
    thigh_inches: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "patient_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v


class BodyMetricCreate(BaseModel):
    """New measurement set. At least one measurement must be present."""
    measured_at: date
    weight_lbs: Optional[float] = Field(None, gt=0)
    chest_inches: Optional[float] = Field(None, gt=0)
    waist_inches: Optional[float] = Field(None, gt=0)
    hip_inches: Optional[float] = Field(None, gt=0)
    arm_inches: Optional[float] = Field(None, gt=0)
    thigh_inches: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def require_measurement(self):
        if all(getattr(self, name) is None for name in BODY_METRIC_FIELDS):
            raise ValueError("At least one measurement is required")
        return self
