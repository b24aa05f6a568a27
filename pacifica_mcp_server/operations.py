"""
Operation table for the Pacifica REST API.

Each MCP tool maps to exactly one OperationSpec. For operations that require a
signature, ``signable_fields`` lists, in order, the fields that make up the
canonical message the signature is computed over.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from pacifica_mcp_server.errors import ConfigurationError


class FieldKind(str, Enum):
    """How a signable field is rendered into the canonical message."""

    SYMBOL = "symbol"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"


@dataclass(frozen=True)
class SignableField:
    name: str
    kind: FieldKind = FieldKind.TEXT
    # Only used for OBJECT fields, rendered in this order
    subfields: Tuple["SignableField", ...] = ()
    # Only consulted for subfields; top-level signable fields are always required
    required: bool = True


@dataclass(frozen=True)
class OperationSpec:
    name: str
    method: str
    path: str
    signable_fields: Tuple[SignableField, ...] = ()
    requires_signature: bool = False
    # "user" for signed POSTs, "account" for account-scoped reads, None for public reads
    sender_field: Optional[str] = None


SYMBOL = SignableField("symbol", FieldKind.SYMBOL)
SIDE = SignableField("side", FieldKind.TEXT)
TICK_LEVEL = SignableField("tick_level", FieldKind.NUMBER)
ORDER_ID = SignableField("order_id", FieldKind.NUMBER)
REDUCE_ONLY = SignableField("reduce_only", FieldKind.BOOLEAN)

STOP_ORDER = SignableField(
    "stop_order",
    FieldKind.OBJECT,
    subfields=(
        SignableField("stop_tick_level", FieldKind.NUMBER),
        SignableField("limit_tick_level", FieldKind.NUMBER, required=False),
        SignableField("amount", FieldKind.TEXT, required=False),
    ),
)


def _signed(name: str, path: str, *fields: SignableField) -> OperationSpec:
    return OperationSpec(
        name=name,
        method="POST",
        path=path,
        signable_fields=tuple(fields),
        requires_signature=True,
        sender_field="user",
    )


def _account_read(name: str, path: str) -> OperationSpec:
    return OperationSpec(name=name, method="GET", path=path, sender_field="account")


def _public_read(name: str, path: str) -> OperationSpec:
    return OperationSpec(name=name, method="GET", path=path)


OPERATIONS: Dict[str, OperationSpec] = {
    spec.name: spec
    for spec in (
        # Account
        _account_read("get_account_info", "/api/v1/account"),
        _account_read("get_account_settings", "/api/v1/account/settings"),
        _signed(
            "update_leverage",
            "/api/v1/account/leverage",
            SYMBOL,
            SignableField("leverage", FieldKind.NUMBER),
        ),
        _signed(
            "update_margin_mode",
            "/api/v1/account/margin",
            SYMBOL,
            SignableField("is_isolated", FieldKind.BOOLEAN),
        ),
        _signed(
            "withdraw",
            "/api/v1/account/withdraw",
            SignableField("amount", FieldKind.NUMBER),
        ),
        _signed(
            "bind_agent_wallet",
            "/api/v1/agent/bind",
            SignableField("agent_wallet", FieldKind.TEXT),
        ),
        _account_read("get_funding_history", "/api/v1/funding/history"),
        _account_read("get_portfolio_history", "/api/v1/portfolio"),
        _account_read("get_current_positions", "/api/v1/positions"),
        _account_read("get_position_history", "/api/v1/positions/history"),
        # Market
        _public_read("get_info", "/api/v1/info"),
        _public_read("get_kline", "/api/v1/kline"),
        _public_read("get_recent_trades", "/api/v1/trades"),
        # Orders
        _account_read("get_open_orders", "/api/v1/orders"),
        _public_read("get_order_history_by_id", "/api/v1/orders/history"),
        _signed(
            "open_order",
            "/api/v1/orders/create",
            SYMBOL,
            TICK_LEVEL,
            SignableField("amount", FieldKind.TEXT),
            SIDE,
            SignableField("tif", FieldKind.TEXT),
            REDUCE_ONLY,
        ),
        _signed(
            "cancel_order",
            "/api/v1/orders/cancel",
            SYMBOL,
            ORDER_ID,
            TICK_LEVEL,
            SIDE,
        ),
        _signed(
            "cancel_all_orders",
            "/api/v1/orders/cancel_all",
            SYMBOL,
            SignableField("all_symbols", FieldKind.BOOLEAN),
        ),
        _signed(
            "create_stop_order",
            "/api/v1/order/stop/create",
            SYMBOL,
            SIDE,
            REDUCE_ONLY,
            STOP_ORDER,
        ),
        _signed("cancel_stop_order", "/api/v1/orders/stop/cancel", SYMBOL, ORDER_ID),
        # Each batch action carries its own signature
        OperationSpec(name="process_batch_orders", method="POST", path="/api/v1/orders/batch"),
    )
}


def get_operation(name: str) -> OperationSpec:
    """
    Look up an operation by tool name.

    Raises:
        ConfigurationError: If no operation with that name is registered
    """
    try:
        return OPERATIONS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown operation: {name}") from None
