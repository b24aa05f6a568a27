"""
Market data tools for Pacifica.

Public endpoints; none of these use the account address or the signer.
"""

import logging
import time
from typing import Any, Optional

from pacifica_mcp_server.dispatch import execute_operation
from pacifica_mcp_server.errors import ValidationError
from pacifica_mcp_server.tools.common import (
    exchange_tool,
    require_non_negative_int,
    require_symbol,
    require_text,
)

logger = logging.getLogger(__name__)


@exchange_tool
def get_info() -> Any:
    """
    Get exchange information for all tradable pairs.

    Corresponds to: GET /api/v1/info

    Example Response:
        [{"symbol": "BTC", "tickSize": "0.1", "maxLeverage": 50, "minOrderSize": "10",
          "maxOrderSize": "1000000", "fundingRate": "0.0000125", "isolatedOnly": false}]
    """
    logger.info("Fetching exchange info")
    return execute_operation("get_info")


@exchange_tool
def get_kline(
    symbol: str,
    interval: str,
    start_time: int,
    end_time: Optional[int] = None,
) -> Any:
    """
    Get candlestick data for a symbol.

    Corresponds to: GET /api/v1/kline

    Args:
        symbol: Trading pair symbol
        interval: Candle interval as the exchange names it, e.g. 1m, 1h, 1d
        start_time: Start time in milliseconds
        end_time: End time in milliseconds (defaults to now on the exchange side)
    """
    logger.info(f"Fetching {interval} klines for {symbol} from {start_time}")

    start_time = require_non_negative_int("start_time", start_time)
    if end_time is not None:
        end_time = require_non_negative_int("end_time", end_time)
        if end_time < start_time:
            raise ValidationError("end_time must not be before start_time")

    return execute_operation(
        "get_kline",
        {
            "symbol": require_symbol(symbol),
            "interval": require_text("interval", interval),
            "startTime": start_time,
            "endTime": end_time,
        },
    )


@exchange_tool
def get_recent_trades(symbol: str) -> Any:
    """
    Get recent trades for a symbol.

    Corresponds to: GET /api/v1/trades
    """
    logger.info(f"Fetching recent trades for {symbol}")
    return execute_operation("get_recent_trades", {"symbol": require_symbol(symbol)})


@exchange_tool
def get_current_time() -> Any:
    """Local wall-clock time in milliseconds since the Unix epoch; no HTTP call."""
    return {"currentTime": int(time.time() * 1000)}
