"""Environment-driven configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from tugboat_mcp.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://api.tugboatqa.com/v3"
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_FILE = Path.home() / ".cache" / "tugboat-mcp" / "mcp.log"
DEFAULT_MAX_RESPONSE_BYTES = 5_000_000
TRANSPORTS = ("stdio", "http")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUTHY = {"1", "true", "yes"}


@dataclass(frozen=True)
class Config:
    """Process configuration for the Tugboat MCP server."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    transport: str = "stdio"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    debug: bool = False
    log_level: str = "INFO"
    log_file: Path = DEFAULT_LOG_FILE
    max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Build configuration from environment variables.

        Raises:
            ConfigurationError: If TUGBOAT_API_KEY is missing or a value is invalid.
        """
        env = os.environ if environ is None else environ

        api_key = (env.get("TUGBOAT_API_KEY") or "").strip()
        if not api_key:
            raise ConfigurationError("TUGBOAT_API_KEY environment variable must be set")

        transport = (env.get("TRANSPORT_TYPE") or "stdio").strip().lower()
        if transport not in TRANSPORTS:
            raise ConfigurationError(
                f"TRANSPORT_TYPE must be one of {', '.join(TRANSPORTS)}, got {transport!r}"
            )

        port = _parse_int(env, "PORT", DEFAULT_PORT)
        if port < 1 or port > 65535:
            raise ConfigurationError(f"PORT must be between 1 and 65535, got {port}")

        max_response_bytes = _parse_int(
            env, "TUGBOAT_MAX_RESPONSE_BYTES", DEFAULT_MAX_RESPONSE_BYTES
        )
        if max_response_bytes < 1_000 or max_response_bytes > 50_000_000:
            raise ConfigurationError(
                "TUGBOAT_MAX_RESPONSE_BYTES must be between 1000 and 50000000"
            )

        # Verbose client logging follows the transport unless set explicitly.
        debug_env = env.get("TUGBOAT_DEBUG")
        if debug_env is None or not debug_env.strip():
            debug = transport == "http"
        else:
            debug = debug_env.strip().lower() in _TRUTHY

        log_level = (env.get("TUGBOAT_LOG_LEVEL") or "").strip().upper()
        if not log_level:
            log_level = "DEBUG" if debug else "INFO"
        elif log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"TUGBOAT_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}"
            )

        log_file_env = (env.get("TUGBOAT_LOG_FILE") or "").strip()
        log_file = Path(log_file_env).expanduser() if log_file_env else DEFAULT_LOG_FILE

        return cls(
            api_key=api_key,
            base_url=(env.get("TUGBOAT_API_URL") or "").strip() or DEFAULT_BASE_URL,
            transport=transport,
            host=(env.get("HOST") or "").strip() or DEFAULT_HOST,
            port=port,
            debug=debug,
            log_level=log_level,
            log_file=log_file,
            max_response_bytes=max_response_bytes,
        )


def _parse_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None


__all__ = ["Config", "DEFAULT_BASE_URL", "TRANSPORTS"]
