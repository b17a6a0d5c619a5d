"""Patients Module - provider patient management and prescriptions."""

from .models import Address, InsuranceInfo, PatientUpdate, PatientSummary, PrescriptionRecord
from .router import router

__all__ = [
    "Address",
    "InsuranceInfo",
    "PatientUpdate",
    "PatientSummary",
    "PrescriptionRecord",
    "router",
]
