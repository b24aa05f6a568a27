"""
Order tools for Pacifica.

Corresponds to the /api/v1/orders and /api/v1/order/stop endpoints.
"""

import logging
from typing import Any, Dict, List, Optional

from pacifica_mcp_server.dispatch import execute_operation
from pacifica_mcp_server.errors import ValidationError
from pacifica_mcp_server.tools.common import (
    ORDER_SIDES,
    TIME_IN_FORCE,
    exchange_tool,
    optional_non_negative_int,
    require_amount_string,
    require_bool,
    require_choice,
    require_non_negative_int,
    require_symbol,
)

logger = logging.getLogger(__name__)


@exchange_tool
def get_open_orders(account: Optional[str] = None) -> Any:
    """
    Get all unfilled orders for the account.

    Corresponds to: GET /api/v1/orders

    Example Response:
        [{"orderId": 13753364, "symbol": "BTC", "side": "bid", "tickLevel": 86500,
          "initialAmount": "0.0053", "remainingAmount": "0.0053", "reduceOnly": false}]
    """
    logger.info("Fetching open orders")
    return execute_operation("get_open_orders", sender=account)


@exchange_tool
def open_order(
    symbol: str,
    tick_level: int,
    amount: str,
    side: str,
    tif: str,
    reduce_only: bool,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Place a limit order.

    Corresponds to: POST /api/v1/orders/create
    (signed over "SYMBOL,tick_level,amount,side,tif,reduce_only")

    Args:
        symbol: Trading pair symbol (e.g. BTC)
        tick_level: Price tick level of the order
        amount: Base-asset quantity as a decimal string
        side: 'bid' (buy) or 'ask' (sell)
        tif: GTC, IOC or ALO
        reduce_only: Only reduce an existing position
        user: Sender address (presigned mode; defaults to the configured address)
        signature: Caller-supplied signature (presigned mode only)
    """
    logger.info(f"Placing {side} {tif} order: {symbol} {amount} @ tick {tick_level}")

    params = {
        "symbol": require_symbol(symbol),
        "tick_level": require_non_negative_int("tick_level", tick_level),
        "amount": require_amount_string("amount", amount),
        "side": require_choice("side", side, ORDER_SIDES),
        "tif": require_choice("tif", tif, TIME_IN_FORCE),
        "reduce_only": require_bool("reduce_only", reduce_only),
    }

    return execute_operation("open_order", params, sender=user, signature=signature)


@exchange_tool
def cancel_order(
    symbol: str,
    order_id: int,
    tick_level: int,
    side: str,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Cancel a single unfilled order.

    Corresponds to: POST /api/v1/orders/cancel
    (signed over "SYMBOL,order_id,tick_level,side")
    """
    logger.info(f"Cancelling order {order_id} on {symbol}")

    params = {
        "symbol": require_symbol(symbol),
        "order_id": require_non_negative_int("order_id", order_id),
        "tick_level": require_non_negative_int("tick_level", tick_level),
        "side": require_choice("side", side, ORDER_SIDES),
    }

    return execute_operation("cancel_order", params, sender=user, signature=signature)


@exchange_tool
def cancel_all_orders(
    symbol: str,
    all_symbols: bool,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Cancel all unfilled orders for a symbol, or for every symbol.

    Corresponds to: POST /api/v1/orders/cancel_all (signed over "SYMBOL,all_symbols")
    """
    logger.info(f"Cancelling all orders: symbol={symbol} all_symbols={all_symbols}")

    params = {
        "symbol": require_symbol(symbol),
        "all_symbols": require_bool("all_symbols", all_symbols),
    }

    return execute_operation("cancel_all_orders", params, sender=user, signature=signature)


@exchange_tool
def create_stop_order(
    symbol: str,
    stop_order: Dict[str, Any],
    side: str,
    reduce_only: bool,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Create a stop loss / take profit order.

    Corresponds to: POST /api/v1/order/stop/create
    (signed over "SYMBOL,side,reduce_only,<stop_order JSON>")

    The stop_order object is signed as compact JSON with keys in the order
    stop_tick_level, limit_tick_level, amount; absent optional keys are left
    out, e.g. {"stop_tick_level":85000,"amount":"0.01"}.

    Args:
        symbol: Trading pair symbol
        stop_order: stop_tick_level (required), limit_tick_level and amount (optional)
        side: 'bid' or 'ask'
        reduce_only: Only reduce an existing position
    """
    logger.info(f"Creating stop order on {symbol}: side={side} reduce_only={reduce_only}")

    if not isinstance(stop_order, dict):
        raise ValidationError("stop_order must be an object")

    unknown = set(stop_order) - {"stop_tick_level", "limit_tick_level", "amount"}
    if unknown:
        raise ValidationError(f"Unknown stop_order fields: {', '.join(sorted(unknown))}")

    normalized_stop = {
        "stop_tick_level": require_non_negative_int(
            "stop_order.stop_tick_level", stop_order.get("stop_tick_level")
        ),
        "limit_tick_level": optional_non_negative_int(
            "stop_order.limit_tick_level", stop_order.get("limit_tick_level")
        ),
    }
    if stop_order.get("amount") is not None:
        normalized_stop["amount"] = require_amount_string("stop_order.amount", stop_order["amount"])
    normalized_stop = {k: v for k, v in normalized_stop.items() if v is not None}

    params = {
        "symbol": require_symbol(symbol),
        "side": require_choice("side", side, ORDER_SIDES),
        "reduce_only": require_bool("reduce_only", reduce_only),
        "stop_order": normalized_stop,
    }

    return execute_operation("create_stop_order", params, sender=user, signature=signature)


@exchange_tool
def cancel_stop_order(
    symbol: str,
    order_id: int,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Cancel a stop loss / take profit order.

    Corresponds to: POST /api/v1/orders/stop/cancel (signed over "SYMBOL,order_id")
    """
    logger.info(f"Cancelling stop order {order_id} on {symbol}")

    params = {
        "symbol": require_symbol(symbol),
        "order_id": require_non_negative_int("order_id", order_id),
    }

    return execute_operation("cancel_stop_order", params, sender=user, signature=signature)


@exchange_tool
def get_order_history_by_id(
    order_id: int,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Any:
    """
    Get the event history of one order.

    Corresponds to: GET /api/v1/orders/history
    """
    logger.info(f"Fetching history for order {order_id}")
    return execute_operation(
        "get_order_history_by_id",
        {
            "order_id": require_non_negative_int("order_id", order_id),
            "limit": optional_non_negative_int("limit", limit),
            "offset": optional_non_negative_int("offset", offset),
        },
    )


@exchange_tool
def process_batch_orders(actions: List[Dict[str, Any]]) -> Any:
    """
    Submit a batch of already-signed order actions.

    Corresponds to: POST /api/v1/orders/batch

    Each action must carry its own user and signature; the batch itself is
    forwarded as-is and not signed by this server.
    """
    logger.info(f"Submitting batch of {len(actions) if isinstance(actions, list) else '?'} actions")

    if not isinstance(actions, list) or not actions:
        raise ValidationError("actions must be a non-empty list")
    if not all(isinstance(action, dict) for action in actions):
        raise ValidationError("Every batch action must be an object")

    return execute_operation("process_batch_orders", {"actions": actions})

