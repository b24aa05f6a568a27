"""
Error types for the Pacifica MCP Server.

Every error carries an ``error_type`` string that tool modules copy into the
error envelope returned to the MCP client.
"""

from typing import Any, Dict, Optional


class PacificaError(Exception):
    """Base class for all errors raised by this package."""

    error_type = "exchange_error"


class ValidationError(PacificaError):
    """Tool input failed validation before any network or signing work."""

    error_type = "validation_error"


class ConfigurationError(PacificaError):
    """Operation table, parameter record or process configuration is inconsistent."""

    error_type = "configuration_error"


class NoIdentityConfigured(ConfigurationError):
    """A signed operation was requested but no address/private key is configured."""

    error_type = "no_identity_configured"


class SigningError(PacificaError):
    """The signing primitive rejected the key material or the message."""

    error_type = "signing_error"


class TransportError(PacificaError):
    """The HTTP call failed or returned something other than a 2xx JSON body."""

    error_type = "transport_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    def details(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {}
        if self.status_code is not None:
            details["status_code"] = self.status_code
        if self.payload is not None:
            details["raw"] = self.payload
        return details
