from typing import Any, Optional


def ok(data: Optional[Any] = None) -> dict:
    if data is None:
        return {"success": True}
    return {"success": True, "data": data}


def fail(error: str) -> dict:
    return {"success": False, "error": error}
