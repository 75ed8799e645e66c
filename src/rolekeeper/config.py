# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Configuration for rolekeeper.

All environment-based configuration flows through this module.

Usage:
    from rolekeeper.config import get_config
    config = get_config()

    max_ttl = config.max_ttl_seconds
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoleKeeperSettings(BaseSettings):
    """Settings for the role registry, its CLI and its logging.

    Settings can be configured via environment variables with the
    ROLEKEEPER_ prefix, or a local .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROLEKEEPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # REGISTRY SETTINGS
    # ==========================================================================

    max_ttl_seconds: int = Field(
        default=0,
        ge=0,
        description="Largest TTL accepted at registration (0 = unlimited)",
    )

    # ==========================================================================
    # CAPABILITY TRANSPORT SETTINGS
    # ==========================================================================

    token_secret: str | None = Field(
        default=None,
        description="Secret for signing exported capability JWTs (required by the CLI)",
    )
    token_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    # ==========================================================================
    # CLI STORAGE SETTINGS
    # ==========================================================================

    store_path: Path = Field(
        default=Path("~/.rolekeeper/registry.json"),
        description="JSON file holding registries for the CLI",
    )
    events_path: Path | None = Field(
        default=None,
        description="Optional JSONL file receiving grant/revoke events",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
    )
    log_file: str | None = Field(default=None, description="Log file path (optional)")

    @property
    def resolved_store_path(self) -> Path:
        """Store path with ``~`` expanded."""
        return self.store_path.expanduser()


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: RoleKeeperSettings | None = None


def get_config() -> RoleKeeperSettings:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = RoleKeeperSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
