"""
Utility functions for APK Tracker
Shared helper functions for error handling and formatting
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException


def error_payload(code: str, message: str, details: Optional[dict] = None) -> dict:
    """Create a standardized error response payload"""
    return {
        "code": code,
        "message": message,
        "details": details
    }


def friendly_backend_error(error_msg: str) -> str:
    """Convert MongoDB driver error messages to user-facing messages"""
    lowered = error_msg.lower()
    if "duplicate key" in lowered or "e11000" in lowered:
        if "app_key" in lowered:
            return "Generated app key already exists. Please try again."
        return "A record with this key already exists."
    if "not authorized" in lowered or "unauthorized" in lowered:
        return "Backend rejected the request: not authorized."
    if "serverselectiontimeout" in lowered.replace(" ", "") or "timed out" in lowered:
        return "Backend is not reachable. Please try again later."
    return error_msg


def isoformat_or_none(value: Any) -> Optional[str]:
    """Render a datetime as ISO-8601; pass strings through; None stays None"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


# Service error code -> HTTP status
ERROR_STATUS_MAP = {
    "NOT_FOUND": 404,
    "VALIDATION_FAILED": 400,
    "INVALID_REQUEST": 400,
    "BACKEND_ERROR": 502,
}


def handle_service_error(e) -> HTTPException:
    """Convert service exceptions to HTTP exceptions."""
    status_code = ERROR_STATUS_MAP.get(e.code, 500)
    return HTTPException(
        status_code=status_code,
        detail=error_payload(e.code, e.message, e.details if e.details else None)
    )
