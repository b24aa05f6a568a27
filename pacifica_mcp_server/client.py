"""
HTTP client for the Pacifica REST API.

Reads go out as GET with query parameters, mutating calls as POST with a JSON
body. Every call is a single attempt; failures surface as TransportError.
"""

import logging
from typing import Any, Dict, Optional

import requests

from pacifica_mcp_server.config import ExchangeConfig, get_config
from pacifica_mcp_server.errors import TransportError

logger = logging.getLogger(__name__)


def _drop_none(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {k: v for k, v in (params or {}).items() if v is not None}


class ExchangeClient:
    """
    HTTP client for the Pacifica API.
    """

    def __init__(self, config: Optional[ExchangeConfig] = None):
        self.config = config or get_config()
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    def _handle_response(self, response: requests.Response) -> Any:
        """
        Parse a response body, raising on non-2xx status or non-JSON content.

        Args:
            response: HTTP response object

        Returns:
            Parsed JSON body
        """
        try:
            data = response.json()
        except ValueError:
            data = None

        if 200 <= response.status_code < 300:
            if data is None and response.text.strip() != "null":
                raise TransportError(
                    "Malformed response body: expected JSON",
                    status_code=response.status_code,
                    payload=response.text[:500],
                )
            return data

        message = None
        if isinstance(data, dict):
            message = data.get("error") or data.get("message") or data.get("msg")
        if not message:
            message = response.text[:500] or response.reason or "Request failed"

        raise TransportError(
            f"HTTP {response.status_code}: {message}",
            status_code=response.status_code,
            payload=data if data is not None else response.text[:500],
        )

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make an API request.

        Args:
            method: HTTP method (GET or POST)
            path: API path (e.g., /api/v1/account)
            params: Query parameters
            body: JSON body

        Returns:
            Parsed JSON response

        Raises:
            TransportError: On network failure, non-2xx status or malformed body
        """
        url = f"{self.config.base_url}{path}"
        method = method.upper()

        try:
            if method == "GET":
                response = self.session.get(url, params=_drop_none(params), timeout=self.config.timeout)
            elif method == "POST":
                response = self.session.post(
                    url,
                    params=_drop_none(params) or None,
                    json=_drop_none(body),
                    timeout=self.config.timeout,
                )
            else:
                raise TransportError(f"Unsupported HTTP method: {method}")
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timeout: {method} {path}") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {method} {path}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        return self._handle_response(response)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a GET request."""
        return self.request("GET", path, params=params)

    def post(self, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        """Make a POST request with a JSON body."""
        return self.request("POST", path, body=body)


# Global client instance
_exchange_client: Optional[ExchangeClient] = None


def get_exchange_client() -> ExchangeClient:
    """
    Get or create the global ExchangeClient instance.

    Returns:
        ExchangeClient: Configured HTTP client for the Pacifica API
    """
    global _exchange_client

    if _exchange_client is None:
        _exchange_client = ExchangeClient()

    return _exchange_client


def reset_exchange_client() -> None:
    global _exchange_client
    _exchange_client = None
