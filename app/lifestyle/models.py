"""Lifestyle note models."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, field_validator


class LifestyleNote(BaseModel):
    id: Optional[str] = None
    patient_id: Optional[str] = None
    content: str
    note_date: date
    created_at: Optional[datetime] = None

    @field_validator("id", "patient_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v


class LifestyleNoteCreate(BaseModel):
    content: str
    note_date: date

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Note content is required")
        return v


class ProviderMeetingNote(BaseModel):
    """Notes left on a completed appointment."""
    date: datetime
    notes: str
    provider_name: str


def provider_display_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return " ".join(part for part in (first_name, last_name) if part) or "Provider"
