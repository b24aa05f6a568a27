"""
Pacifica MCP Server implementation using FastMCP.

This module provides a Model Context Protocol (MCP) server for the Pacifica
perpetuals exchange API. It exposes account, market and order functionality as
tools that can be called by LLM clients.

Signed operations run in one of two modes:
- local: the server signs with PACIFICA_PRIVATE_KEY
- presigned: the caller supplies user and signature with each call
"""

import sys
import logging
import argparse
from typing import Annotated, Dict, Any, List, Literal, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import BaseModel, Field

from pacifica_mcp_server.config import (
    SIGNING_MODES,
    ExchangeConfig,
    configure,
)
from pacifica_mcp_server.errors import ConfigurationError
from pacifica_mcp_server.utils import create_error_response


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr
)


logger = logging.getLogger(__name__)


mcp = FastMCP(
    name="pacifica-mcp-server",
    version="0.1.0",
    instructions="""
    This server provides access to the Pacifica perpetuals exchange.

    AVAILABLE TOOLS:

    Account:
    - get_account_info: Balance and fee level
    - get_account_settings: Per-symbol leverage and margin mode
    - update_leverage: Set leverage for a symbol (signed)
    - update_margin_mode: Switch isolated/cross margin (signed)
    - withdraw: Withdraw funds (signed)
    - bind_agent_wallet: Bind an agent wallet (signed)
    - get_funding_history: Funding payments
    - get_portfolio_history: Account equity over time
    - get_current_positions: Open positions
    - get_position_history: Position change history

    Market Data:
    - get_info: Trading pair specifications
    - get_kline: Candlesticks
    - get_recent_trades: Recent trades
    - get_current_time: Current time in milliseconds

    Orders:
    - get_open_orders: Unfilled orders
    - open_order: Place a limit order (signed)
    - cancel_order: Cancel an order (signed)
    - cancel_all_orders: Cancel all orders for a symbol or all symbols (signed)
    - create_stop_order: Stop loss / take profit (signed)
    - cancel_stop_order: Cancel a stop order (signed)
    - get_order_history_by_id: Events for one order
    - process_batch_orders: Forward a batch of presigned actions

    Prices are expressed as integer tick levels and amounts as decimal strings.
    Account tools default to the configured address; pass `account` to query another.
    In presigned mode, signed tools need `signature` (and `user` if no address is configured).

    All tools return {"success": true, "data": ...} or {"success": false, "error": {...}}.
    """
)


class StopOrder(BaseModel):
    """Trigger and execution parameters of a stop order."""

    stop_tick_level: int = Field(ge=0, description="Price level at which the stop order triggers")
    limit_tick_level: Optional[int] = Field(
        default=None,
        ge=0,
        description="Limit price level after triggering; omit for a market order",
    )
    amount: Optional[str] = Field(
        default=None,
        description="Amount to trade; omit to use the entire position",
    )


def _log_result(tool_name: str, result: Dict[str, Any]) -> Dict[str, Any]:
    if result.get("success"):
        logger.info(f"{tool_name} completed successfully")
    else:
        logger.warning(f"{tool_name} failed: {result.get('error', {}).get('message')}")
    return result


def _tool_error(tool_name: str, e: Exception) -> Dict[str, Any]:
    logger.error(f"Unexpected error in {tool_name} tool: {str(e)}")
    return create_error_response("tool_error", f"Tool execution failed: {str(e)}")


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@mcp.tool()
def get_account_info(account: Optional[str] = None) -> Dict[str, Any]:
    """
    Get account balance and current fee tier.

    Args:
        account: Account address (defaults to the configured address)

    Returns:
        Dictionary with the exchange response, e.g. {"balance": "2000.000000", "feeLevel": 0}
    """
    logger.info("Tool called: get_account_info")

    try:
        from pacifica_mcp_server.tools.account import get_account_info as _get_account_info
        return _log_result("get_account_info", _get_account_info(account))
    except Exception as e:
        return _tool_error("get_account_info", e)


@mcp.tool()
def get_account_settings(account: Optional[str] = None) -> Dict[str, Any]:
    """
    Get leverage and margin mode settings for each trading pair.

    Args:
        account: Account address (defaults to the configured address)
    """
    logger.info("Tool called: get_account_settings")

    try:
        from pacifica_mcp_server.tools.account import get_account_settings as _get_account_settings
        return _log_result("get_account_settings", _get_account_settings(account))
    except Exception as e:
        return _tool_error("get_account_settings", e)


@mcp.tool()
def update_leverage(
    symbol: str,
    leverage: Annotated[int, Field(ge=1, description="Leverage multiplier, within the pair's maximum")],
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Update the leverage multiplier for a trading pair.

    Example: {"symbol": "BTC", "leverage": 10} sets BTC leverage to 10x.

    Args:
        symbol: Trading pair symbol, e.g. BTC, ETH
        leverage: Leverage multiplier
        user: Sender address (presigned mode only)
        signature: Signature over "SYMBOL,leverage" (presigned mode only)
    """
    logger.info(f"Tool called: update_leverage with symbol={symbol}, leverage={leverage}")

    try:
        from pacifica_mcp_server.tools.account import update_leverage as _update_leverage
        return _log_result("update_leverage", _update_leverage(symbol, leverage, user, signature))
    except Exception as e:
        return _tool_error("update_leverage", e)


@mcp.tool()
def update_margin_mode(
    symbol: str,
    is_isolated: bool,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Switch a trading pair between isolated and cross margin.

    Example: {"symbol": "ETH", "is_isolated": true}

    Args:
        symbol: Trading pair symbol
        is_isolated: true for isolated margin, false for cross margin
        user: Sender address (presigned mode only)
        signature: Signature over "SYMBOL,is_isolated" (presigned mode only)
    """
    logger.info(f"Tool called: update_margin_mode with symbol={symbol}, is_isolated={is_isolated}")

    try:
        from pacifica_mcp_server.tools.account import update_margin_mode as _update_margin_mode
        return _log_result("update_margin_mode", _update_margin_mode(symbol, is_isolated, user, signature))
    except Exception as e:
        return _tool_error("update_margin_mode", e)


@mcp.tool()
def withdraw(
    amount: Annotated[float, Field(gt=0, description="Amount of funds to withdraw")],
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Withdraw funds from the exchange account.

    Args:
        amount: Amount to withdraw
        user: Sender address (presigned mode only)
        signature: Signature over "amount" (presigned mode only)
    """
    logger.info(f"Tool called: withdraw with amount={amount}")

    try:
        from pacifica_mcp_server.tools.account import withdraw as _withdraw
        return _log_result("withdraw", _withdraw(amount, user, signature))
    except Exception as e:
        return _tool_error("withdraw", e)


@mcp.tool()
def bind_agent_wallet(
    agent_wallet: str,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Bind an agent wallet address allowed to trade on behalf of the account.

    Args:
        agent_wallet: Agent wallet address
        user: Sender address (presigned mode only)
        signature: Signature over "agent_wallet" (presigned mode only)
    """
    logger.info(f"Tool called: bind_agent_wallet with agent_wallet={agent_wallet}")

    try:
        from pacifica_mcp_server.tools.account import bind_agent_wallet as _bind_agent_wallet
        return _log_result("bind_agent_wallet", _bind_agent_wallet(agent_wallet, user, signature))
    except Exception as e:
        return _tool_error("bind_agent_wallet", e)


@mcp.tool()
def get_funding_history(
    account: Optional[str] = None,
    limit: Annotated[Optional[int], Field(ge=0)] = None,
    offset: Annotated[Optional[int], Field(ge=0)] = None,
) -> Dict[str, Any]:
    """
    Get funding rate payment history.

    Example: {"limit": 10, "offset": 0} returns the first 10 funding records.
    """
    logger.info(f"Tool called: get_funding_history with limit={limit}, offset={offset}")

    try:
        from pacifica_mcp_server.tools.account import get_funding_history as _get_funding_history
        return _log_result("get_funding_history", _get_funding_history(account, limit, offset))
    except Exception as e:
        return _tool_error("get_funding_history", e)


@mcp.tool()
def get_portfolio_history(
    account: Optional[str] = None,
    limit: Annotated[Optional[int], Field(ge=0)] = None,
    offset: Annotated[Optional[int], Field(ge=0)] = None,
    start_time: Optional[int] = None,
    end_time: Optional[int] = None,
    granularity_in_minutes: Annotated[Optional[int], Field(ge=0)] = None,
) -> Dict[str, Any]:
    """
    Get account equity history.

    Example: {"limit": 10, "granularity_in_minutes": 60} returns the last 10 hourly points.

    Args:
        start_time: Start time in milliseconds
        end_time: End time in milliseconds
    """
    logger.info(f"Tool called: get_portfolio_history with limit={limit}, granularity={granularity_in_minutes}")

    try:
        from pacifica_mcp_server.tools.account import get_portfolio_history as _get_portfolio_history
        result = _get_portfolio_history(
            account,
            limit=limit,
            offset=offset,
            start_time=start_time,
            end_time=end_time,
            granularity_in_minutes=granularity_in_minutes,
        )
        return _log_result("get_portfolio_history", result)
    except Exception as e:
        return _tool_error("get_portfolio_history", e)


@mcp.tool()
def get_current_positions(account: Optional[str] = None) -> Dict[str, Any]:
    """Get all currently held positions."""
    logger.info("Tool called: get_current_positions")

    try:
        from pacifica_mcp_server.tools.account import get_current_positions as _get_current_positions
        return _log_result("get_current_positions", _get_current_positions(account))
    except Exception as e:
        return _tool_error("get_current_positions", e)


@mcp.tool()
def get_position_history(
    account: Optional[str] = None,
    symbol: Optional[str] = None,
    limit: Annotated[Optional[int], Field(ge=0)] = None,
    offset: Annotated[Optional[int], Field(ge=0)] = None,
    start_time: Optional[int] = None,
    end_time: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Get historical position changes.

    Example: {"symbol": "BTC", "limit": 10} returns the last 10 BTC position events.
    """
    logger.info(f"Tool called: get_position_history with symbol={symbol}, limit={limit}")

    try:
        from pacifica_mcp_server.tools.account import get_position_history as _get_position_history
        result = _get_position_history(
            account,
            symbol=symbol,
            limit=limit,
            offset=offset,
            start_time=start_time,
            end_time=end_time,
        )
        return _log_result("get_position_history", result)
    except Exception as e:
        return _tool_error("get_position_history", e)


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


@mcp.tool()
def get_info() -> Dict[str, Any]:
    """
    Get exchange information for all tradable pairs: tick size, order size
    limits, maximum leverage and funding rate.
    """
    logger.info("Tool called: get_info")

    try:
        from pacifica_mcp_server.tools.market import get_info as _get_info
        return _log_result("get_info", _get_info())
    except Exception as e:
        return _tool_error("get_info", e)


@mcp.tool()
def get_kline(
    symbol: str,
    interval: Annotated[str, Field(min_length=1, description="Candle interval, e.g. 1m, 3m, 1h, 2h, 8h, 1d")],
    start_time: Annotated[int, Field(ge=0, description="Start time in milliseconds")],
    end_time: Annotated[Optional[int], Field(ge=0, description="End time in milliseconds")] = None,
) -> Dict[str, Any]:
    """
    Get candlestick data for a trading pair.

    Example: {"symbol": "BTC", "interval": "1h", "start_time": 1625097600000}
    """
    logger.info(f"Tool called: get_kline with symbol={symbol}, interval={interval}")

    try:
        from pacifica_mcp_server.tools.market import get_kline as _get_kline
        return _log_result("get_kline", _get_kline(symbol, interval, start_time, end_time))
    except Exception as e:
        return _tool_error("get_kline", e)


@mcp.tool()
def get_recent_trades(symbol: str) -> Dict[str, Any]:
    """Get recent trades for a trading pair."""
    logger.info(f"Tool called: get_recent_trades with symbol={symbol}")

    try:
        from pacifica_mcp_server.tools.market import get_recent_trades as _get_recent_trades
        return _log_result("get_recent_trades", _get_recent_trades(symbol))
    except Exception as e:
        return _tool_error("get_recent_trades", e)


@mcp.tool()
def get_current_time() -> Dict[str, Any]:
    """Get the current time in milliseconds since the Unix epoch."""
    from pacifica_mcp_server.tools.market import get_current_time as _get_current_time
    return _get_current_time()


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@mcp.tool()
def get_open_orders(account: Optional[str] = None) -> Dict[str, Any]:
    """Get all unfilled orders for the account."""
    logger.info("Tool called: get_open_orders")

    try:
        from pacifica_mcp_server.tools.orders import get_open_orders as _get_open_orders
        return _log_result("get_open_orders", _get_open_orders(account))
    except Exception as e:
        return _tool_error("get_open_orders", e)


@mcp.tool()
def open_order(
    symbol: str,
    tick_level: Annotated[int, Field(ge=0, description="Price tick level of the order")],
    amount: Annotated[str, Field(description="Base-asset quantity as a decimal string, e.g. '0.01'")],
    side: Annotated[Literal["bid", "ask"], Field(description="'bid' (buy) or 'ask' (sell)")],
    tif: Annotated[
        Literal["GTC", "IOC", "ALO"],
        Field(
            description="Time in force: GTC (Good Till Cancel), IOC (Immediate or Cancel), ALO (Add Limit Only)"
        ),
    ],
    reduce_only: Annotated[bool, Field(description="Only reduce an existing position")],
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Place a limit order.

    Example: {"symbol": "BTC", "tick_level": 87000, "amount": "0.01", "side": "bid",
    "tif": "GTC", "reduce_only": false} buys 0.01 BTC at price level 87000.

    To trade a USD amount, convert it to base-asset quantity using the current price.
    In presigned mode, sign "SYMBOL,tick_level,amount,side,tif,reduce_only".
    """
    logger.info(f"Tool called: open_order with symbol={symbol}, side={side}, tick_level={tick_level}, amount={amount}")

    try:
        from pacifica_mcp_server.tools.orders import open_order as _open_order
        result = _open_order(symbol, tick_level, amount, side, tif, reduce_only, user, signature)
        return _log_result("open_order", result)
    except Exception as e:
        return _tool_error("open_order", e)


@mcp.tool()
def cancel_order(
    symbol: str,
    order_id: Annotated[int, Field(ge=0)],
    tick_level: Annotated[int, Field(ge=0)],
    side: Annotated[Literal["bid", "ask"], Field(description="'bid' (buy) or 'ask' (sell)")],
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Cancel an unfilled order.

    Example: {"symbol": "BTC", "order_id": 13753364, "tick_level": 86500, "side": "bid"}
    In presigned mode, sign "SYMBOL,order_id,tick_level,side".
    """
    logger.info(f"Tool called: cancel_order with symbol={symbol}, order_id={order_id}")

    try:
        from pacifica_mcp_server.tools.orders import cancel_order as _cancel_order
        result = _cancel_order(symbol, order_id, tick_level, side, user, signature)
        return _log_result("cancel_order", result)
    except Exception as e:
        return _tool_error("cancel_order", e)


@mcp.tool()
def cancel_all_orders(
    symbol: str,
    all_symbols: bool,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Cancel all unfilled orders for a symbol, or for every symbol when all_symbols is true.

    In presigned mode, sign "SYMBOL,all_symbols".
    """
    logger.info(f"Tool called: cancel_all_orders with symbol={symbol}, all_symbols={all_symbols}")

    try:
        from pacifica_mcp_server.tools.orders import cancel_all_orders as _cancel_all_orders
        return _log_result("cancel_all_orders", _cancel_all_orders(symbol, all_symbols, user, signature))
    except Exception as e:
        return _tool_error("cancel_all_orders", e)


@mcp.tool()
def create_stop_order(
    symbol: str,
    stop_order: StopOrder,
    side: Literal["bid", "ask"],
    reduce_only: bool,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a stop loss / take profit order.

    Example: {"symbol": "BTC", "stop_order": {"stop_tick_level": 85000, "limit_tick_level": 84800,
    "amount": "0.01"}, "side": "bid", "reduce_only": true}

    In presigned mode, sign "SYMBOL,side,reduce_only,<stop_order>" where <stop_order> is
    compact JSON with keys in the order stop_tick_level, limit_tick_level, amount and
    absent keys omitted.
    """
    logger.info(f"Tool called: create_stop_order with symbol={symbol}, side={side}")

    try:
        from pacifica_mcp_server.tools.orders import create_stop_order as _create_stop_order
        result = _create_stop_order(
            symbol,
            stop_order.model_dump(exclude_none=True),
            side,
            reduce_only,
            user,
            signature,
        )
        return _log_result("create_stop_order", result)
    except Exception as e:
        return _tool_error("create_stop_order", e)


@mcp.tool()
def cancel_stop_order(
    symbol: str,
    order_id: Annotated[int, Field(ge=0)],
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Cancel a stop loss / take profit order.

    In presigned mode, sign "SYMBOL,order_id".
    """
    logger.info(f"Tool called: cancel_stop_order with symbol={symbol}, order_id={order_id}")

    try:
        from pacifica_mcp_server.tools.orders import cancel_stop_order as _cancel_stop_order
        return _log_result("cancel_stop_order", _cancel_stop_order(symbol, order_id, user, signature))
    except Exception as e:
        return _tool_error("cancel_stop_order", e)


@mcp.tool()
def get_order_history_by_id(
    order_id: Annotated[int, Field(ge=0)],
    limit: Annotated[Optional[int], Field(ge=0)] = None,
    offset: Annotated[Optional[int], Field(ge=0)] = None,
) -> Dict[str, Any]:
    """Get the event history of a specific order."""
    logger.info(f"Tool called: get_order_history_by_id with order_id={order_id}")

    try:
        from pacifica_mcp_server.tools.orders import get_order_history_by_id as _get_order_history_by_id
        return _log_result("get_order_history_by_id", _get_order_history_by_id(order_id, limit, offset))
    except Exception as e:
        return _tool_error("get_order_history_by_id", e)


@mcp.tool()
def process_batch_orders(actions: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Forward a batch of order actions. Each action must already carry its own
    user and signature; the batch is not signed by this server.
    """
    logger.info(f"Tool called: process_batch_orders with {len(actions)} actions")

    try:
        from pacifica_mcp_server.tools.orders import process_batch_orders as _process_batch_orders
        return _log_result("process_batch_orders", _process_batch_orders(actions))
    except Exception as e:
        return _tool_error("process_batch_orders", e)


def validate_configuration(config: ExchangeConfig) -> bool:
    """
    Log configuration warnings. Missing credentials are not fatal; read-only
    tools keep working and signed tools report no_identity_configured.

    Returns:
        bool: True if the server can start
    """
    for warning in config.get_validation_warnings():
        logger.warning(f"  • {warning}")

    logger.info(
        f"Configuration validated (testnet: {config.testnet}, signing mode: {config.signing_mode})"
    )
    return True


def main() -> None:
    """
    Main entry point for the Pacifica MCP Server.

    Exit Codes:
        0: Successful execution or user interruption
        1: Configuration error
        84: Server startup or runtime error
    """
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Pacifica MCP Server - Model Context Protocol server for the Pacifica API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
            %(prog)s                                   # Start with STDIO transport (default)
            %(prog)s --signing-mode presigned          # Callers supply signatures
            %(prog)s --transport sse --port 8080 --host 0.0.0.0
        """
    )

    parser.add_argument(
        "--transport",
        choices=["stdio", "streamable-http", "sse"],
        default="stdio",
        help="Transport method to use (stdio for MCP clients, streamable-http/sse for testing)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for HTTP transport (default: 8000)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="localhost",
        help="Host for HTTP transport (default: localhost)"
    )
    parser.add_argument(
        "--signing-mode",
        choices=list(SIGNING_MODES),
        default=None,
        help="Override PACIFICA_SIGNING_MODE (local: server signs, presigned: caller signs)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level (default: INFO)"
    )

    args = parser.parse_args()

    logging.getLogger().setLevel(getattr(logging, args.log_level))

    logger.info(f"Starting Pacifica MCP Server with {args.transport} transport")

    try:
        config = ExchangeConfig.from_env()
        if args.signing_mode:
            config = config.with_signing_mode(args.signing_mode)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    if not validate_configuration(config):
        sys.exit(1)

    configure(config)

    try:
        if args.transport == "stdio":
            logger.info("STDIO mode: Ready for MCP client connections")
            mcp.run(transport="stdio")
        else:
            logger.info(f"Initializing {args.transport} transport on {args.host}:{args.port}")
            mcp.run(transport=args.transport, port=args.port, host=args.host)

    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user (Ctrl+C)")
        sys.exit(0)

    except OSError as e:
        if "Address already in use" in str(e):
            logger.error(f"Port {args.port} is already in use. Please choose a different port.")
        else:
            logger.error(f"Network error during server startup: {str(e)}")
        sys.exit(84)

    except Exception as e:
        logger.error(f"Server startup failed with unexpected error: {str(e)}")
        sys.exit(84)


if __name__ == "__main__":
    main()
