"""Telegram bridge that lets an MCP agent talk to its human operator."""

__version__ = "0.3.0"
