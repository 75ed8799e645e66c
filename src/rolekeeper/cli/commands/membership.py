# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Grant and revoke commands."""

from __future__ import annotations

import argparse

from ...capabilities import ManageCapability
from ...exceptions import RoleKeeperException
from ..output import output_error, output_result
from ..utils import get_registry, load_capability


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the grant/revoke commands on the CLI parser."""
    for name, handler, help_text in (
        ("grant", cmd_grant, "Grant a role to an account"),
        ("revoke", cmd_revoke, "Revoke a role from an account"),
    ):
        parser = subparsers.add_parser(name, help=help_text)
        parser.add_argument("account", help="Account to update")
        parser.add_argument("--token", required=True, help="Manage capability JWT")
        parser.set_defaults(func=handler)


def _toggle(args: argparse.Namespace, grant: bool) -> int:
    try:
        capability = load_capability(args.token)
        if not isinstance(capability, ManageCapability):
            output_error("grant and revoke require a manage token")
            return 1
        registry = get_registry(args)
        if grant:
            event = registry.grant_role(capability, args.account)
        else:
            event = registry.revoke_role(capability, args.account)
    except RoleKeeperException as e:
        output_error(str(e))
        return 1

    verb = "Granted" if grant else "Revoked"
    output_result(
        event.to_dict(),
        f"✅ {verb} {event.role} {'to' if grant else 'from'} {event.account}",
        as_json=args.json,
    )
    return 0


def cmd_grant(args: argparse.Namespace) -> int:
    """Grant the token's role to an account."""
    return _toggle(args, grant=True)


def cmd_revoke(args: argparse.Namespace) -> int:
    """Revoke the token's role from an account."""
    return _toggle(args, grant=False)
