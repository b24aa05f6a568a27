"""
Pacifica MCP Tools.

This package provides the tool implementations behind the MCP server. Each
returns the standard success/error envelope.
"""

from pacifica_mcp_server.tools.account import (
    get_account_info,
    get_account_settings,
    update_leverage,
    update_margin_mode,
    withdraw,
    bind_agent_wallet,
    get_funding_history,
    get_portfolio_history,
    get_current_positions,
    get_position_history,
)
from pacifica_mcp_server.tools.market import (
    get_info,
    get_kline,
    get_recent_trades,
    get_current_time,
)
from pacifica_mcp_server.tools.orders import (
    get_open_orders,
    open_order,
    cancel_order,
    cancel_all_orders,
    create_stop_order,
    cancel_stop_order,
    get_order_history_by_id,
    process_batch_orders,
)

__all__ = [
    # Account
    "get_account_info",
    "get_account_settings",
    "update_leverage",
    "update_margin_mode",
    "withdraw",
    "bind_agent_wallet",
    "get_funding_history",
    "get_portfolio_history",
    "get_current_positions",
    "get_position_history",
    # Market
    "get_info",
    "get_kline",
    "get_recent_trades",
    "get_current_time",
    # Orders
    "get_open_orders",
    "open_order",
    "cancel_order",
    "cancel_all_orders",
    "create_stop_order",
    "cancel_stop_order",
    "get_order_history_by_id",
    "process_batch_orders",
]
