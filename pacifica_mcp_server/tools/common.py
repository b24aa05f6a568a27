"""
Shared helpers for Pacifica tool modules: input checks and the decorator
that wraps tool results in the response envelope.
"""

import functools
import logging
from typing import Any, Callable, Dict, Iterable, Optional

from pacifica_mcp_server.errors import PacificaError, TransportError, ValidationError
from pacifica_mcp_server.utils import create_error_response, create_success_response

logger = logging.getLogger(__name__)


ORDER_SIDES = ("bid", "ask")
TIME_IN_FORCE = ("GTC", "IOC", "ALO")


def require_symbol(symbol: Any) -> str:
    if not symbol or not isinstance(symbol, str) or not symbol.strip():
        raise ValidationError("Symbol must be a non-empty string")
    return symbol.strip()


def require_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string")
    return value.strip()


def require_choice(name: str, value: Any, allowed: Iterable[str]) -> str:
    allowed = tuple(allowed)
    if value not in allowed:
        raise ValidationError(f"{name} must be one of {', '.join(allowed)}, got: {value}")
    return value


def require_non_negative_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer, got: {value}")
    return value


def optional_non_negative_int(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    return require_non_negative_int(name, value)


def require_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean, got: {value!r}")
    return value


def require_positive_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValidationError(f"{name} must be a positive number, got: {value}")
    return value


def require_amount_string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a decimal string, got: {value!r}")
    try:
        parsed = float(value)
    except ValueError:
        raise ValidationError(f"{name} must be a decimal string, got: {value!r}") from None
    if parsed <= 0:
        raise ValidationError(f"{name} must be positive, got: {value}")
    return value


def exchange_tool(func: Callable[..., Any]) -> Callable[..., Dict[str, Any]]:
    """
    Wrap a tool implementation in the response envelope.

    The wrapped function returns the exchange's parsed JSON; the wrapper turns
    it into a success envelope, and any raised error into an error envelope
    whose type comes from the PacificaError subclass.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Dict[str, Any]:
        name = func.__name__
        try:
            return create_success_response(func(*args, **kwargs))

        except TransportError as e:
            logger.error(f"{name} transport error: {e}")
            return create_error_response(e.error_type, str(e), e.details())

        except PacificaError as e:
            logger.warning(f"{name} failed ({e.error_type}): {e}")
            return create_error_response(e.error_type, str(e))

        except Exception as e:
            logger.error(f"Unexpected error in {name}: {e}")
            return create_error_response("tool_error", f"Tool execution failed: {str(e)}")

    return wrapper

