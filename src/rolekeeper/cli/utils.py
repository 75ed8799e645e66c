# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Shared helpers for CLI commands."""

from __future__ import annotations

import argparse
import logging

from ..capabilities import ManageCapability, RemoveCapability, capability_from_jwt
from ..config import RoleKeeperSettings, get_config
from ..events import JsonlEventSink
from ..exceptions import ConfigException
from ..registry import RoleRegistry
from ..store import JsonFileRegistryStore

logger = logging.getLogger(__name__)


def get_registry(args: argparse.Namespace, config: RoleKeeperSettings | None = None) -> RoleRegistry:
    """Build a registry over the JSON store selected by ``--store`` or settings."""
    config = config or get_config()
    store_path = getattr(args, "store", None) or config.resolved_store_path
    sinks = []
    if config.events_path:
        sinks.append(JsonlEventSink(config.events_path))
    logger.debug(f"Using registry store {store_path}")
    return RoleRegistry(store=JsonFileRegistryStore(store_path), sinks=sinks, settings=config)


def get_token_secret(config: RoleKeeperSettings | None = None) -> str:
    """Return the JWT signing secret or raise ConfigException."""
    config = config or get_config()
    if not config.token_secret:
        raise ConfigException(
            "Capability tokens need a signing secret; set ROLEKEEPER_TOKEN_SECRET",
            missing_vars=["ROLEKEEPER_TOKEN_SECRET"],
        )
    return config.token_secret


def load_capability(token: str, config: RoleKeeperSettings | None = None) -> ManageCapability | RemoveCapability:
    """Verify a capability JWT passed on the command line."""
    config = config or get_config()
    return capability_from_jwt(token, get_token_secret(config), config.token_algorithm)
