"""Configuration system for eth-wallet-service.

Loads settings from an optional ``wallet-service.yaml`` file, supports
``${VAR}`` environment variable expansion inside it, and then applies the
``RPC_URL``, ``ENCRYPTION_KEY`` and ``PORT`` environment overrides. Settings
are read once at process start.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str, environ: Mapping[str, str]) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    Unset variables expand to an empty string.
    """
    return _ENV_VAR_RE.sub(lambda m: environ.get(m.group(1), ""), value)


def _expand_env_recursive(obj: object, environ: Mapping[str, str]) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj, environ)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v, environ) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item, environ) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------

DEFAULT_FALLBACK_ENDPOINTS: list[str] = [
    "https://ethereum.publicnode.com",
    "https://rpc.ankr.com/eth",
    "https://eth.llamarpc.com",
    "https://1rpc.io/eth",
    "https://rpc.flashbots.net",
]


class RpcConfig(BaseModel):
    """JSON-RPC endpoints, primary first."""

    url: Optional[str] = None  # operator-supplied primary (RPC_URL)
    fallback_urls: list[str] = Field(default_factory=lambda: list(DEFAULT_FALLBACK_ENDPOINTS))
    timeout_seconds: float = 5.0

    def candidates(self) -> list[str]:
        """Ordered, de-duplicated endpoint list with the primary first."""
        ordered: list[str] = []
        for url in [self.url, *self.fallback_urls]:
            if url and url not in ordered:
                ordered.append(url)
        return ordered


class SecurityConfig(BaseModel):
    """Encryption-at-rest settings."""

    # 64 hex chars. Empty means a key is generated at startup and stored
    # wallets do not survive a restart.
    encryption_key: str = ""


class ServerConfig(BaseModel):
    """HTTP API settings."""

    host: str = "127.0.0.1"
    port: int = 5000


class HistoryConfig(BaseModel):
    """Limits for the recent-transactions scan."""

    scan_blocks: int = 5
    max_results: int = 20


class ServiceConfig(BaseModel):
    """Root configuration object."""

    rpc: RpcConfig = Field(default_factory=RpcConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_FILE = "wallet-service.yaml"


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServiceConfig:
    """Load and validate the service configuration.

    Parameters
    ----------
    path:
        YAML file to read. Defaults to ``wallet-service.yaml`` in the
        current directory; a missing default file means "all defaults",
        a missing explicit file is an error.
    environ:
        Environment mapping, ``os.environ`` by default.

    Raises
    ------
    FileNotFoundError
        If an explicitly given *path* does not exist.
    """
    if environ is None:
        environ = os.environ

    raw_data: dict = {}
    if path is None:
        default_path = Path.cwd() / DEFAULT_CONFIG_FILE
        if default_path.exists():
            path = default_path
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"No config file at {path}")
        raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}

    config = ServiceConfig.model_validate(_expand_env_recursive(raw_data, environ))
    return apply_env_overrides(config, environ)


def apply_env_overrides(config: ServiceConfig, environ: Mapping[str, str]) -> ServiceConfig:
    """Apply ``RPC_URL``, ``ENCRYPTION_KEY`` and ``PORT`` on top of *config*."""
    if environ.get("RPC_URL"):
        config.rpc.url = environ["RPC_URL"]
    if environ.get("ENCRYPTION_KEY"):
        config.security.encryption_key = environ["ENCRYPTION_KEY"]
    if environ.get("PORT"):
        config.server.port = int(environ["PORT"])
    return config
