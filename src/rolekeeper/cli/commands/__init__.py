"""CLI command modules for rolekeeper.

Each module exposes a ``register(subparsers)`` function that wires up
its argparse sub-commands and sets ``parser.set_defaults(func=handler)``.
"""

from . import lifecycle, membership, query
from .lifecycle import cmd_register, cmd_remove
from .membership import cmd_grant, cmd_revoke
from .query import cmd_check, cmd_status

# All command modules with register() functions, in registration order.
COMMAND_MODULES = [
    lifecycle,
    membership,
    query,
]

__all__ = [
    "COMMAND_MODULES",
    "cmd_check",
    "cmd_grant",
    "cmd_register",
    "cmd_remove",
    "cmd_revoke",
    "cmd_status",
]
