"""
Response envelope helpers shared by all tool modules.
"""

import time
from typing import Any, Dict, Optional


def _now_ms() -> int:
    return int(time.time() * 1000)


def create_success_response(data: Any) -> Dict[str, Any]:
    """
    Wrap an exchange response in the success envelope.

    Args:
        data: Parsed JSON returned by the exchange, passed through unchanged

    Returns:
        Dict with success flag, data and timestamp
    """
    return {
        "success": True,
        "data": data,
        "timestamp": _now_ms(),
    }


def create_error_response(
    error_type: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build the error envelope returned to MCP clients.

    Args:
        error_type: Machine-readable error category (e.g. validation_error)
        message: Human-readable error message
        details: Optional extra fields such as HTTP status code

    Returns:
        Dict with success flag, error object and timestamp
    """
    error: Dict[str, Any] = {"type": error_type, "message": message}
    if details:
        error.update(details)
    return {
        "success": False,
        "error": error,
        "timestamp": _now_ms(),
    }
