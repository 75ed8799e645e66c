# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""rolekeeper - capability-gated role registry.

Define a role as a marker class bound to its owner account, register it to
receive a ManageCapability and a RemoveCapability, grant and revoke
membership with the manage token, and gate code on ``has_role`` /
``assert_has_role`` or the ``requires_role`` decorator. A role may carry an
expiry after which every membership check answers "no".

CLI entry point: ``rolekeeper``
"""

__version__ = "0.1.0"

from .capabilities import (
    ManageCapability,
    RemoveCapability,
    capability_from_jwt,
    capability_to_jwt,
    check_signing_key,
)
from .clock import Clock, ManualClock, SystemClock
from .events import (
    CallbackEventSink,
    EventSink,
    InMemoryEventSink,
    JsonlEventSink,
    RoleEvent,
    RoleEventKind,
)
from .exceptions import (
    AccessDenied,
    AddressMismatch,
    AlreadyGranted,
    AlreadyRegistered,
    AlreadyRevoked,
    CapabilityConsumed,
    ConfigException,
    InvalidCapabilityToken,
    InvalidTTL,
    NotGranted,
    NotRegistered,
    RoleExpired,
    RoleKeeperException,
)
from .guards import requires_role
from .registry import RoleRegistry, get_role_registry, set_role_registry
from .roles import RoleId, RoleKey, define_role, role_key
from .store import (
    InMemoryRegistryStore,
    JsonFileRegistryStore,
    RegistryRecord,
    RegistryStore,
)

__all__ = [
    # Roles
    "RoleId",
    "RoleKey",
    "define_role",
    "role_key",
    # Registry
    "RoleRegistry",
    "get_role_registry",
    "set_role_registry",
    "requires_role",
    # Capabilities
    "ManageCapability",
    "RemoveCapability",
    "capability_to_jwt",
    "capability_from_jwt",
    "check_signing_key",
    # Storage
    "RegistryRecord",
    "RegistryStore",
    "InMemoryRegistryStore",
    "JsonFileRegistryStore",
    # Events
    "RoleEvent",
    "RoleEventKind",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
    "CallbackEventSink",
    # Clocks
    "Clock",
    "SystemClock",
    "ManualClock",
    # Errors
    "RoleKeeperException",
    "AccessDenied",
    "RoleExpired",
    "AddressMismatch",
    "AlreadyRegistered",
    "NotRegistered",
    "InvalidTTL",
    "AlreadyGranted",
    "NotGranted",
    "AlreadyRevoked",
    "CapabilityConsumed",
    "InvalidCapabilityToken",
    "ConfigException",
]
