"""
Patient Models

- Address / InsuranceInfo: structured patient details
- PatientUpdate: provider edit of demographics and addresses
- PatientSummary: row in the provider patient list
- PrescriptionRecord: prescription with product name and refill countdown
"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator

STATE_PATTERN = re.compile(r"^[A-Z]{2}$")
ZIP_PATTERN = re.compile(r"^\d{5}$")


class PrescriptionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Address(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str
    zip: str
    country: str = "US"

    @field_validator("state")
    @classmethod
    def validate_state(cls, v: str) -> str:
        if not STATE_PATTERN.match(v):
            raise ValueError("State must be 2 uppercase letters")
        return v

    @field_validator("zip")
    @classmethod
    def validate_zip(cls, v: str) -> str:
        if not ZIP_PATTERN.match(v):
            raise ValueError("ZIP code must be 5 digits")
        return v


class InsuranceInfo(BaseModel):
    provider_name: Optional[str] = None
    policy_number: Optional[str] = None
    group_number: Optional[str] = None


class PatientUpdate(BaseModel):
    first_name: str
    last_name: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    insurance_info: Optional[InsuranceInfo] = None
    same_billing_as_shipping: bool = False

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            label = "First name" if info.field_name == "first_name" else "Last name"
            raise ValueError(f"{label} is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if len(re.sub(r"\D", "", v)) < 10:
            raise ValueError("Phone must have at least 10 digits")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_dob(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v >= date.today():
            raise ValueError("Date of birth must be a valid date in the past")
        return v

    def resolved_billing_address(self) -> Optional[Address]:
        if self.same_billing_as_shipping and self.shipping_address is not None:
            return self.shipping_address
        return self.billing_address


class PatientSummary(BaseModel):
    id: str
    user_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    plan_status: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v


class PrescriptionRecord(BaseModel):
    id: str
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    dosage: str
    quantity: int
    instructions: Optional[str] = None
    pharmacy: Optional[str] = None
    refill_date: Optional[date] = None
    auto_refill: bool = False
    status: PrescriptionStatus
    days_until_refill: Optional[int] = None

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        return str(v) if v is not None else v
