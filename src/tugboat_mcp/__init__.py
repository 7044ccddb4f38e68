"""MCP server exposing the Tugboat preview-environment API."""

from __future__ import annotations

__version__ = "1.0.0"

from .server import build_server, main, run

__all__ = ["__version__", "build_server", "main", "run"]
