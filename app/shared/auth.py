"""
Caller identity and access rules.

The upstream auth gateway forwards the authenticated user id in the
X-User-Id header. It is resolved once per request into an explicit Caller
that is passed to every operation; nothing reads identity from globals.

Provider access (MD / PA / NP):
- MD can access any patient
- PA/NP must own a treatment plan for the patient
- admin bypasses provider checks
"""

import os
import logging
from enum import Enum
from typing import Optional

from fastapi import Header, HTTPException
from pydantic import BaseModel

from app.shared import db

logger = logging.getLogger("auth")


class Role(str, Enum):
    PATIENT = "patient"
    PROVIDER = "provider"
    ADMIN = "admin"


class LicenseType(str, Enum):
    MD = "MD"
    PA = "PA"
    NP = "NP"


class Caller(BaseModel):
    """Resolved identity of the requester."""
    user_id: str
    role: Role
    patient_id: Optional[str] = None
    provider_id: Optional[str] = None
    license_type: Optional[LicenseType] = None

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.PROVIDER, Role.ADMIN)


def resolve_caller(cur, user_id: str) -> Optional[Caller]:
    """Look up role and patient/provider record for a user id."""
    cur.execute("SELECT id, role FROM users WHERE id = %s", (user_id,))
    user = cur.fetchone()
    if not user:
        return None

    caller = Caller(user_id=str(user["id"]), role=user["role"])

    if caller.role == Role.PATIENT:
        cur.execute("SELECT id FROM patients WHERE user_id = %s", (user_id,))
        patient = cur.fetchone()
        if patient:
            caller.patient_id = str(patient["id"])
    elif caller.role == Role.PROVIDER:
        cur.execute("SELECT id, license_type FROM providers WHERE user_id = %s", (user_id,))
        provider = cur.fetchone()
        if provider:
            caller.provider_id = str(provider["id"])
            caller.license_type = provider["license_type"]

    return caller


def get_caller(x_user_id: str = Header(None, alias="X-User-Id")) -> Caller:
    """FastAPI dependency: resolve the X-User-Id header into a Caller."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    with db.db_transaction("resolve caller") as conn:
        cur = conn.cursor()
        caller = resolve_caller(cur, x_user_id)
        cur.close()

    if not caller:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return caller


def require_roles(caller: Caller, *roles: Role, message: str = "Unauthorized") -> None:
    if caller.role not in roles:
        raise HTTPException(status_code=403, detail=message)


def require_patient(caller: Caller, message: str = "Only patients can perform this action") -> str:
    """Return the caller's patient id or fail."""
    require_roles(caller, Role.PATIENT, message=message)
    if not caller.patient_id:
        raise HTTPException(status_code=404, detail="Patient not found")
    return caller.patient_id


def require_staff(caller: Caller) -> None:
    """Providers must have a provider record; admins always pass."""
    require_roles(caller, Role.PROVIDER, Role.ADMIN)
    if caller.role == Role.PROVIDER and not caller.provider_id:
        raise HTTPException(status_code=404, detail="Provider record not found")


def can_access_plan(caller: Caller, plan_provider_id: Optional[str]) -> bool:
    """Plan owner, any MD, or an admin."""
    if caller.role == Role.ADMIN:
        return True
    if caller.role != Role.PROVIDER:
        return False
    if caller.license_type == LicenseType.MD:
        return True
    return plan_provider_id is not None and str(plan_provider_id) == caller.provider_id


def can_access_patient(cur, caller: Caller, patient_id: str) -> bool:
    """MD/admin see every patient; PA/NP need a treatment plan they own."""
    if caller.role == Role.ADMIN:
        return True
    if caller.role != Role.PROVIDER or not caller.provider_id:
        return False
    if caller.license_type == LicenseType.MD:
        return True

    cur.execute("""
        SELECT id FROM treatment_plans
        WHERE patient_id = %s AND provider_id = %s
        LIMIT 1
    """, (patient_id, caller.provider_id))
    return cur.fetchone() is not None


def ensure_patient_access(cur, caller: Caller, patient_id: str) -> None:
    require_staff(caller)
    if not can_access_patient(cur, caller, patient_id):
        raise HTTPException(status_code=403, detail="You do not have access to this patient")


def verify_admin_key(x_admin_api_key: str = Header(None, alias="X-Admin-API-Key")) -> str:
    """
    Verify admin API key from header.

    Raises 401 if missing or invalid.
    """
    expected_key = os.environ.get("ADMIN_API_KEY")

    if not expected_key:
        # Fail open in dev if ADMIN_API_KEY not set
        return "dev_mode"

    if not x_admin_api_key:
        raise HTTPException(status_code=401, detail="Missing X-Admin-API-Key header")

    if x_admin_api_key != expected_key:
        raise HTTPException(status_code=401, detail="Invalid admin API key")

    return x_admin_api_key


def resolve_patient_scope(cur, caller: Caller, patient_id: Optional[str] = None) -> str:
    """Patients read their own data; staff must name an accessible patient."""
    if caller.role == Role.PATIENT:
        return require_patient(caller, message="Only patients can view their own records")

    if not patient_id:
        raise HTTPException(status_code=400, detail="patient_id is required")
    ensure_patient_access(cur, caller, patient_id)
    return patient_id
