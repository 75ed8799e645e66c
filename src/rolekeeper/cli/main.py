#!/usr/bin/env python3
"""
rolekeeper CLI - manage role registries stored in a JSON file.

Commands:
  rolekeeper register <role> --owner O --caller C   Register a role, print tokens
  rolekeeper grant <account> --token T              Grant with a manage token
  rolekeeper revoke <account> --token T             Revoke with a manage token
  rolekeeper remove --token T                       Delete with a remove token
  rolekeeper check <role> <account> --owner O       Exit 0 if account holds role
  rolekeeper status <role> --owner O                Show registry state
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..logging import configure_logging
from .commands import COMMAND_MODULES

logger = logging.getLogger(__name__)


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rolekeeper",
        description="Capability-gated role registry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  export ROLEKEEPER_TOKEN_SECRET=...                       Token signing secret
  rolekeeper register Moderator --owner 0xA --caller 0xA   Register forever
  rolekeeper register Bridge --owner 0xA --caller 0xA --ttl 3600
  rolekeeper grant 0xU1 --token <manage-token>             Grant membership
  rolekeeper check Moderator 0xU1 --owner 0xA              Check membership
        """,
    )
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("--store", type=Path, default=None, help="Registry JSON file (overrides ROLEKEEPER_STORE_PATH)")
    parser.add_argument("--log-level", default=None, help="Log level (overrides ROLEKEEPER_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in COMMAND_MODULES:
        module.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = app()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, json_format=False)
    logger.debug(f"Running command {args.command}")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
