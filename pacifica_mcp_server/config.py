"""
Pacifica Exchange Configuration.

This module reads the process-wide configuration once at startup. The result is
an immutable ExchangeConfig that is handed to the HTTP client and dispatcher;
nothing reads environment variables after startup.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from pacifica_mcp_server.errors import ConfigurationError
from pacifica_mcp_server.signer import Identity

logger = logging.getLogger(__name__)


MAINNET_BASE_URL = "https://api.pacifica.fi"
TESTNET_BASE_URL = "https://test-api.pacifica.fi"

SIGNING_MODE_LOCAL = "local"
SIGNING_MODE_PRESIGNED = "presigned"
SIGNING_MODES = (SIGNING_MODE_LOCAL, SIGNING_MODE_PRESIGNED)


@dataclass(frozen=True)
class ExchangeConfig:
    """Configuration for the Pacifica MCP Server."""

    base_url: str = MAINNET_BASE_URL
    testnet: bool = False
    address: Optional[str] = None
    private_key: Optional[str] = field(default=None, repr=False)
    signing_mode: str = SIGNING_MODE_LOCAL
    timeout: float = 10.0

    def __post_init__(self):
        if self.signing_mode not in SIGNING_MODES:
            raise ConfigurationError(
                f"Invalid signing mode '{self.signing_mode}'. Allowed: {', '.join(SIGNING_MODES)}"
            )
        if self.timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls) -> "ExchangeConfig":
        """
        Build a configuration from environment variables.

        Variables:
            PACIFICA_TESTNET: "true" to target the test environment (default false)
            PACIFICA_BASE_URL: Explicit API base URL, overrides the network default
            PACIFICA_ADDRESS: Account address used as sender identity
            PACIFICA_PRIVATE_KEY: Base58 secret key for local signing
            PACIFICA_SIGNING_MODE: "local" (server signs) or "presigned" (caller signs)
            PACIFICA_TIMEOUT: HTTP timeout in seconds (default 10)

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        testnet = os.getenv("PACIFICA_TESTNET", "false").lower() == "true"
        default_url = TESTNET_BASE_URL if testnet else MAINNET_BASE_URL

        timeout_raw = os.getenv("PACIFICA_TIMEOUT", "10")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ConfigurationError(f"PACIFICA_TIMEOUT must be a number, got '{timeout_raw}'") from None

        return cls(
            base_url=os.getenv("PACIFICA_BASE_URL", default_url).rstrip("/"),
            testnet=testnet,
            address=os.getenv("PACIFICA_ADDRESS") or None,
            private_key=os.getenv("PACIFICA_PRIVATE_KEY") or None,
            signing_mode=os.getenv("PACIFICA_SIGNING_MODE", SIGNING_MODE_LOCAL).lower(),
            timeout=timeout,
        )

    @property
    def presigned(self) -> bool:
        return self.signing_mode == SIGNING_MODE_PRESIGNED

    @property
    def identity(self) -> Optional[Identity]:
        """Identity used for local signing, or None when nothing is configured."""
        if not self.address and not self.private_key:
            return None
        return Identity(address=self.address, secret=self.private_key)

    def with_signing_mode(self, signing_mode: str) -> "ExchangeConfig":
        return replace(self, signing_mode=signing_mode)

    def get_validation_warnings(self) -> List[str]:
        """List non-fatal gaps; read-only tools work regardless."""
        warnings = []
        if not self.address:
            warnings.append("PACIFICA_ADDRESS is not set; account tools need an explicit account argument")
        if not self.presigned and not self.private_key:
            warnings.append("PACIFICA_PRIVATE_KEY is not set; signed tools will fail in local signing mode")
        if self.presigned and self.private_key:
            warnings.append("PACIFICA_PRIVATE_KEY is ignored in presigned mode")
        return warnings


# Process-wide configuration, installed once at startup
_config: Optional[ExchangeConfig] = None


def configure(config: ExchangeConfig) -> ExchangeConfig:
    """Install the process-wide configuration."""
    global _config
    _config = config

    from pacifica_mcp_server.client import reset_exchange_client
    reset_exchange_client()

    logger.info(
        f"Configured Pacifica API at {config.base_url} "
        f"(testnet={config.testnet}, signing_mode={config.signing_mode})"
    )
    return config


def get_config() -> ExchangeConfig:
    """
    Get the process-wide ExchangeConfig, reading the environment on first use.

    Returns:
        ExchangeConfig: The configuration instance
    """
    global _config

    if _config is None:
        _config = ExchangeConfig.from_env()

    return _config


def reset_config() -> None:
    """Drop the installed configuration and cached client."""
    global _config
    _config = None

    from pacifica_mcp_server.client import reset_exchange_client
    reset_exchange_client()
