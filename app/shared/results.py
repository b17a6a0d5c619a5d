"""
Uniform result envelope.

Every endpoint answers with one of two shapes:
    {"success": true,  "data": <payload or null>}
    {"success": false, "error": "<human readable message>"}
"""

from typing import Any


def ok(data: Any = None) -> dict:
    return {"success": True, "data": data}


def fail(error: str) -> dict:
    return {"success": False, "error": error}


def error_message(detail: Any) -> str:
    """Flatten an HTTPException detail (str, dict or validation list) to one message."""
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict):
        return str(detail.get("message") or detail.get("error") or detail)
    if isinstance(detail, list) and detail:
        first = detail[0]
        if isinstance(first, dict):
            loc = ".".join(str(p) for p in first.get("loc", []) if p != "body")
            msg = first.get("msg", "Invalid input")
            return f"{loc}: {msg}" if loc else msg
        return str(first)
    return "An unexpected error occurred"
