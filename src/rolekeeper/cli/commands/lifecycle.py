# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Register and remove commands."""

from __future__ import annotations

import argparse
import logging

from ...capabilities import RemoveCapability, capability_to_jwt, check_signing_key
from ...config import get_config
from ...exceptions import RoleKeeperException
from ...roles import RoleKey
from ..output import output_error, output_result
from ..utils import get_registry, get_token_secret, load_capability

logger = logging.getLogger(__name__)


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the lifecycle commands on the CLI parser."""
    reg_parser = subparsers.add_parser("register", help="Register a role and print its capability tokens")
    reg_parser.add_argument("role", help="Role name")
    reg_parser.add_argument("--owner", required=True, help="Account the role is bound to")
    reg_parser.add_argument("--caller", required=True, help="Account performing the registration")
    expiry = reg_parser.add_mutually_exclusive_group()
    expiry.add_argument("--ttl", type=int, default=0, help="Lifetime in seconds (0 = never expires)")
    expiry.add_argument("--expires-at", type=int, default=None, help="Absolute expiry timestamp")
    reg_parser.set_defaults(func=cmd_register)

    remove_parser = subparsers.add_parser("remove", help="Delete a role registry")
    remove_parser.add_argument("--token", required=True, help="Remove capability JWT")
    remove_parser.set_defaults(func=cmd_remove)


def cmd_register(args: argparse.Namespace) -> int:
    """Register a role and print the manage and remove tokens.

    The signing key is checked before anything is stored. If exporting the
    tokens still fails, the new registration is removed again.
    """
    config = get_config()
    try:
        secret = get_token_secret(config)
        check_signing_key(secret, config.token_algorithm)
        registry = get_registry(args, config)
        manage, remove = registry.register(
            RoleKey(args.role, args.owner),
            args.caller,
            ttl=args.ttl,
            expires_at=args.expires_at,
        )
    except (RoleKeeperException, ValueError) as e:
        output_error(str(e))
        return 1

    try:
        manage_token = capability_to_jwt(manage, secret, config.token_algorithm)
        remove_token = capability_to_jwt(remove, secret, config.token_algorithm)
    except RoleKeeperException as e:
        registry.remove(remove)
        logger.warning(f"Rolled back registration of {manage.role}: token export failed")
        output_error(str(e))
        return 1
    expiry = registry.get_expiry(manage.role)

    output_result(
        {
            "role": args.role,
            "owner": args.owner,
            "expiry": expiry,
            "manage_token": manage_token,
            "remove_token": remove_token,
        },
        "\n".join(
            [
                f"✅ Registered {manage.role}",
                f"   Expiry: {expiry if expiry is not None else 'never'}",
                f"   Manage token: {manage_token}",
                f"   Remove token: {remove_token}",
            ]
        ),
        as_json=args.json,
    )
    return 0


def cmd_remove(args: argparse.Namespace) -> int:
    """Delete the registry the remove token belongs to."""
    try:
        capability = load_capability(args.token)
        if not isinstance(capability, RemoveCapability):
            output_error("remove requires a remove token")
            return 1
        get_registry(args).remove(capability)
    except RoleKeeperException as e:
        output_error(str(e))
        return 1

    output_result(
        {"role": capability.role.name, "owner": capability.role.owner, "removed": True},
        f"🗑️  Removed {capability.role}",
        as_json=args.json,
    )
    return 0
