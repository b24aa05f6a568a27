"""
Pacifica MCP Server.

Model Context Protocol server exposing the Pacifica perpetuals exchange API.
"""

__version__ = "0.1.0"
