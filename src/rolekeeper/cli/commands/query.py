# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Check and status commands."""

from __future__ import annotations

import argparse

from ...exceptions import RoleKeeperException
from ...roles import RoleKey
from ..output import output_result
from ..utils import get_registry


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the query commands on the CLI parser."""
    check_parser = subparsers.add_parser("check", help="Exit 0 if an account holds a role")
    check_parser.add_argument("role", help="Role name")
    check_parser.add_argument("account", help="Account to check")
    check_parser.add_argument("--owner", required=True, help="Account the role is bound to")
    check_parser.set_defaults(func=cmd_check)

    status_parser = subparsers.add_parser("status", help="Show a role's registry")
    status_parser.add_argument("role", help="Role name")
    status_parser.add_argument("--owner", required=True, help="Account the role is bound to")
    status_parser.set_defaults(func=cmd_status)


def cmd_check(args: argparse.Namespace) -> int:
    """Check membership; the reason for a denial is reported."""
    key = RoleKey(args.role, args.owner)
    try:
        get_registry(args).assert_has_role(key, args.account)
    except RoleKeeperException as e:
        output_result(
            {"role": args.role, "owner": args.owner, "account": args.account, "has_role": False, "reason": e.to_dict()},
            f"❌ {e}",
            as_json=args.json,
        )
        return 1

    output_result(
        {"role": args.role, "owner": args.owner, "account": args.account, "has_role": True},
        f"✅ {args.account} holds {key}",
        as_json=args.json,
    )
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show whether a role is registered and alive, its expiry and its members."""
    key = RoleKey(args.role, args.owner)
    registry = get_registry(args)
    record = registry.snapshot(key)
    if record is None:
        output_result(
            {"role": args.role, "owner": args.owner, "registered": False},
            f"ℹ️  {key} is not registered",
            as_json=args.json,
        )
        return 1

    alive = registry.is_role_alive(key)
    members = registry.members(key)
    data = {
        "role": args.role,
        "owner": args.owner,
        "registered": True,
        "alive": alive,
        "expiry": record.expiry,
        "registered_at": record.registered_at,
        "members": members,
        "grants": len(record.grant_log),
        "revokes": len(record.revoke_log),
    }
    lines = [
        f"🔍 {key}",
        f"   Alive:   {'yes' if alive else 'no (expired)'}",
        f"   Expiry:  {record.expiry if record.expiry is not None else 'never'}",
        f"   Members: {', '.join(members) if members else '(none)'}",
        f"   Events:  {len(record.grant_log)} grants, {len(record.revoke_log)} revokes",
    ]
    output_result(data, "\n".join(lines), as_json=args.json)
    return 0
