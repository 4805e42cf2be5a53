"""Resilient HTTP client layer for an n8n MCP server."""

from min_n8n_mcp.version import __version__

__all__ = ["__version__"]
