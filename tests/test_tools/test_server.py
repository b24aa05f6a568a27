"""
Unit tests for server startup.
"""

import os
import pytest
from unittest.mock import patch

from pacifica_mcp_server import server
from pacifica_mcp_server.config import ExchangeConfig, get_config, reset_config


@pytest.fixture(autouse=True)
def clean_config():
    reset_config()
    yield
    reset_config()


class TestMain:
    """Test argument handling and configuration at startup."""

    def test_stdio_startup(self):
        env = {"PACIFICA_ADDRESS": "addr"}
        with patch.dict(os.environ, env, clear=True), \
                patch.object(server, "load_dotenv"), \
                patch.object(server, "mcp") as mock_mcp, \
                patch("sys.argv", ["pacifica-mcp-server"]):
            server.main()

        mock_mcp.run.assert_called_once_with(transport="stdio")
        assert get_config().address == "addr"

    def test_signing_mode_flag(self):
        with patch.dict(os.environ, {}, clear=True), \
                patch.object(server, "load_dotenv"), \
                patch.object(server, "mcp"), \
                patch("sys.argv", ["pacifica-mcp-server", "--signing-mode", "presigned"]):
            server.main()

        assert get_config().presigned is True

    def test_http_transport(self):
        with patch.dict(os.environ, {}, clear=True), \
                patch.object(server, "load_dotenv"), \
                patch.object(server, "mcp") as mock_mcp, \
                patch("sys.argv", ["pacifica-mcp-server", "--transport", "sse", "--port", "9000"]):
            server.main()

        mock_mcp.run.assert_called_once_with(transport="sse", port=9000, host="localhost")

    def test_invalid_configuration_exits(self):
        with patch.dict(os.environ, {"PACIFICA_SIGNING_MODE": "remote"}, clear=True), \
                patch.object(server, "load_dotenv"), \
                patch.object(server, "mcp") as mock_mcp, \
                patch("sys.argv", ["pacifica-mcp-server"]):
            with pytest.raises(SystemExit) as exc_info:
                server.main()

        assert exc_info.value.code == 1
        mock_mcp.run.assert_not_called()

    def test_startup_failure_exits_84(self):
        with patch.dict(os.environ, {}, clear=True), \
                patch.object(server, "load_dotenv"), \
                patch.object(server, "mcp") as mock_mcp, \
                patch("sys.argv", ["pacifica-mcp-server"]):
            mock_mcp.run.side_effect = RuntimeError("transport failed")
            with pytest.raises(SystemExit) as exc_info:
                server.main()

        assert exc_info.value.code == 84


class TestValidateConfiguration:
    """Test startup validation is non-fatal for missing credentials."""

    def test_missing_credentials_still_valid(self):
        assert server.validate_configuration(ExchangeConfig()) is True


class TestToolError:
    """Test the fallback envelope for unexpected wrapper failures."""

    def test_envelope_shape(self):
        result = server._tool_error("get_info", RuntimeError("boom"))

        assert result["success"] is False
        assert result["error"]["type"] == "tool_error"
        assert "boom" in result["error"]["message"]
        assert isinstance(result["timestamp"], int)

