"""Spike MCP Server - scaffold templates for AI agents."""

from importlib.metadata import version

from spike_mcp.__main__ import _cli as main
from spike_mcp.server import mcp

__version__ = version("spike-mcp")
__all__ = ["mcp", "main", "__version__"]
