"""
Account tools for Pacifica.

Corresponds to the /api/v1/account, /api/v1/agent, /api/v1/funding,
/api/v1/portfolio and /api/v1/positions endpoints.
"""

import logging
from typing import Any, Optional

from pacifica_mcp_server.dispatch import execute_operation
from pacifica_mcp_server.errors import ValidationError
from pacifica_mcp_server.tools.common import (
    exchange_tool,
    optional_non_negative_int,
    require_bool,
    require_non_negative_int,
    require_positive_number,
    require_symbol,
)

logger = logging.getLogger(__name__)


@exchange_tool
def get_account_info(account: Optional[str] = None) -> Any:
    """
    Get account balance and fee level.

    Corresponds to: GET /api/v1/account

    Example Response:
        {"balance": "2000.000000", "feeLevel": 0}
    """
    logger.info("Fetching account info")
    return execute_operation("get_account_info", sender=account)


@exchange_tool
def get_account_settings(account: Optional[str] = None) -> Any:
    """
    Get per-symbol leverage and margin mode settings.

    Corresponds to: GET /api/v1/account/settings
    """
    logger.info("Fetching account settings")
    return execute_operation("get_account_settings", sender=account)


@exchange_tool
def update_leverage(
    symbol: str,
    leverage: int,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Set the leverage multiplier for a symbol.

    Corresponds to: POST /api/v1/account/leverage (signed over "SYMBOL,leverage")

    Args:
        symbol: Trading pair symbol (e.g. BTC, ETH)
        leverage: Target leverage, at least 1
        user: Sender address (presigned mode; defaults to the configured address)
        signature: Caller-supplied signature (presigned mode only)
    """
    logger.info(f"Updating leverage for {symbol} to {leverage}x")

    symbol = require_symbol(symbol)
    if isinstance(leverage, bool) or not isinstance(leverage, int) or leverage < 1:
        raise ValidationError(f"Leverage must be a positive integer, got: {leverage}")

    return execute_operation(
        "update_leverage",
        {"symbol": symbol, "leverage": leverage},
        sender=user,
        signature=signature,
    )


@exchange_tool
def update_margin_mode(
    symbol: str,
    is_isolated: bool,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Switch a symbol between isolated and cross margin.

    Corresponds to: POST /api/v1/account/margin (signed over "SYMBOL,is_isolated")
    """
    logger.info(f"Updating margin mode for {symbol}: isolated={is_isolated}")

    symbol = require_symbol(symbol)
    return execute_operation(
        "update_margin_mode",
        {"symbol": symbol, "is_isolated": require_bool("is_isolated", is_isolated)},
        sender=user,
        signature=signature,
    )


@exchange_tool
def withdraw(
    amount: float,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Withdraw funds from the exchange account.

    Corresponds to: POST /api/v1/account/withdraw (signed over "amount")
    """
    logger.info(f"Withdrawing {amount}")

    amount = require_positive_number("amount", amount)

    return execute_operation(
        "withdraw",
        {"amount": amount},
        sender=user,
        signature=signature,
    )


@exchange_tool
def bind_agent_wallet(
    agent_wallet: str,
    user: Optional[str] = None,
    signature: Optional[str] = None,
) -> Any:
    """
    Bind an agent wallet that may trade on behalf of the account.

    Corresponds to: POST /api/v1/agent/bind (signed over "agent_wallet")
    """
    logger.info(f"Binding agent wallet {agent_wallet}")

    if not agent_wallet or not isinstance(agent_wallet, str):
        raise ValidationError("agent_wallet must be a non-empty string")

    return execute_operation(
        "bind_agent_wallet",
        {"agent_wallet": agent_wallet},
        sender=user,
        signature=signature,
    )


@exchange_tool
def get_funding_history(
    account: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Any:
    """
    Get funding payments received and paid.

    Corresponds to: GET /api/v1/funding/history
    """
    logger.info(f"Fetching funding history limit={limit} offset={offset}")
    return execute_operation(
        "get_funding_history",
        {
            "limit": optional_non_negative_int("limit", limit),
            "offset": optional_non_negative_int("offset", offset),
        },
        sender=account,
    )


@exchange_tool
def get_portfolio_history(
    account: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    start_time: Optional[int] = None,
    end_time: Optional[int] = None,
    granularity_in_minutes: Optional[int] = None,
) -> Any:
    """
    Get account equity history.

    Corresponds to: GET /api/v1/portfolio

    Example Response:
        [{"account_equity": "997.88760080", "timestamp": "2025-03-26T16:42:00Z"}]
    """
    logger.info(f"Fetching portfolio history limit={limit} granularity={granularity_in_minutes}")

    if start_time is not None and end_time is not None and start_time > end_time:
        raise ValidationError("start_time must not be after end_time")
    if granularity_in_minutes is not None:
        require_non_negative_int("granularity_in_minutes", granularity_in_minutes)

    return execute_operation(
        "get_portfolio_history",
        {
            "limit": optional_non_negative_int("limit", limit),
            "offset": optional_non_negative_int("offset", offset),
            "start_time": start_time,
            "end_time": end_time,
            "granularity_in_minutes": granularity_in_minutes,
        },
        sender=account,
    )


@exchange_tool
def get_current_positions(account: Optional[str] = None) -> Any:
    """
    Get all open positions.

    Corresponds to: GET /api/v1/positions
    """
    logger.info("Fetching current positions")
    return execute_operation("get_current_positions", sender=account)


@exchange_tool
def get_position_history(
    account: Optional[str] = None,
    symbol: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    start_time: Optional[int] = None,
    end_time: Optional[int] = None,
) -> Any:
    """
    Get historical position changes, optionally filtered by symbol.

    Corresponds to: GET /api/v1/positions/history
    """
    logger.info(f"Fetching position history symbol={symbol} limit={limit}")

    if start_time is not None and end_time is not None and start_time > end_time:
        raise ValidationError("start_time must not be after end_time")

    return execute_operation(
        "get_position_history",
        {
            "symbol": require_symbol(symbol) if symbol is not None else None,
            "limit": optional_non_negative_int("limit", limit),
            "offset": optional_non_negative_int("offset", offset),
            "start_time": start_time,
            "end_time": end_time,
        },
        sender=account,
    )
