"""
Exception types raised by tgbridge.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for tgbridge errors."""


class ConfigError(BridgeError):
    """Required configuration is missing or invalid. Fatal at startup."""


class UnknownToolError(BridgeError):
    """An MCP client called a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name
