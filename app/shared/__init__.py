"""PHC Health Club Shared Utilities"""

from .results import ok, fail, error_message
from .auth import (
    Caller,
    Role,
    LicenseType,
    get_caller,
    verify_admin_key,
)

__all__ = [
    "ok",
    "fail",
    "error_message",
    "Caller",
    "Role",
    "LicenseType",
    "get_caller",
    "verify_admin_key",
]
