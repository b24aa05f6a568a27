"""
Operation dispatch: resolves the sender, signs when needed, and forwards the
call to the HTTP client.
"""

import logging
from typing import Any, Dict, Optional

from pacifica_mcp_server.client import ExchangeClient, get_exchange_client
from pacifica_mcp_server.config import ExchangeConfig, get_config
from pacifica_mcp_server.errors import ValidationError
from pacifica_mcp_server.operations import get_operation
from pacifica_mcp_server.signer import attach_signature, build_signed_request

logger = logging.getLogger(__name__)


def execute_operation(
    name: str,
    params: Optional[Dict[str, Any]] = None,
    *,
    sender: Optional[str] = None,
    signature: Optional[str] = None,
    config: Optional[ExchangeConfig] = None,
    client: Optional[ExchangeClient] = None,
) -> Any:
    """
    Execute one exchange operation.

    Args:
        name: Operation (tool) name from the operation table
        params: Validated tool parameters
        sender: Explicit account/user address, overriding the configured address
        signature: Caller-supplied signature (presigned mode only)
        config: Configuration to use instead of the process-wide one
        client: HTTP client to use instead of the process-wide one

    Returns:
        Parsed JSON response from the exchange

    Raises:
        ValidationError: If the sender or signature arguments don't fit the signing mode
        ConfigurationError: If the operation table and parameters disagree
        NoIdentityConfigured: If local signing is needed but no key is configured
        SigningError: If the configured key can't be used
        TransportError: If the HTTP call fails
    """
    spec = get_operation(name)
    config = config or get_config()
    client = client or get_exchange_client()
    params = {k: v for k, v in (params or {}).items() if v is not None}

    if spec.requires_signature:
        if config.presigned:
            if not signature:
                raise ValidationError(f"{name} requires a signature in presigned mode")
            user = sender or config.address
            if not user:
                raise ValidationError(f"{name} requires a user address in presigned mode")
            request = attach_signature(spec, params, user, signature)
        else:
            if signature:
                raise ValidationError(
                    "signature must not be supplied when the server signs requests"
                )
            if sender and sender != config.address:
                raise ValidationError(
                    "user must match the configured address when the server signs requests"
                )
            request = build_signed_request(spec, params, config.identity)

        logger.info(f"Submitting signed {name} for {request.sender}")
        return client.request(spec.method, spec.path, body=request.payload(spec.sender_field))

    if spec.sender_field:
        account = sender or config.address
        if not account:
            raise ValidationError(
                f"{name} requires an account address; pass one or set PACIFICA_ADDRESS"
            )
        params = {spec.sender_field: account, **params}

    if spec.method == "GET":
        return client.request(spec.method, spec.path, params=params)
    return client.request(spec.method, spec.path, body=params)
