"""Response envelope shared by every endpoint.

    {"success": true, "data": ...}
    {"success": false, "error": {"code": ..., "message": ...}}
"""

from typing import Any


def ok(data: Any) -> dict:
    return {"success": True, "data": data}


def failure(code: str, message: str, details: list | None = None) -> dict:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}
