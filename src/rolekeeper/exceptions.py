# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Custom exception hierarchy for rolekeeper.

Every failed precondition maps to exactly one exception type, so host code
can catch the specific kind it cares about or fall back to the base class.
No error leaves partial state behind.
"""

from __future__ import annotations

from typing import Any


class RoleKeeperException(Exception):  # noqa: N818 - public name
    """Base exception for all rolekeeper errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


def _role_details(role: Any, account: str | None = None, **extra: Any) -> dict[str, Any]:
    details: dict[str, Any] = {"role": str(role)}
    if account is not None:
        details["account"] = account
    details.update(extra)
    return details


class AccessDenied(RoleKeeperException):
    """Account does not currently hold the role."""

    def __init__(self, role: Any, account: str):
        super().__init__(f"{account} does not hold role {role}", _role_details(role, account))
        self.role = role
        self.account = account


class RoleExpired(RoleKeeperException):
    """The role registry has an expiry and it has passed."""

    def __init__(self, role: Any, expiry: int, now: int):
        super().__init__(
            f"Role {role} expired at {expiry} (now {now})",
            _role_details(role, expiry=expiry, now=now),
        )
        self.role = role
        self.expiry = expiry


class AddressMismatch(RoleKeeperException):
    """Caller is not the owner the role is bound to."""

    def __init__(self, role: Any, caller: str, owner: str):
        super().__init__(
            f"Caller {caller} is not the owner of role {role} ({owner})",
            _role_details(role, caller=caller, owner=owner),
        )
        self.caller = caller
        self.owner = owner


class AlreadyRegistered(RoleKeeperException):
    """A registry already exists for the role."""

    def __init__(self, role: Any):
        super().__init__(f"Role {role} is already registered", _role_details(role))
        self.role = role


class NotRegistered(RoleKeeperException):
    """No registry exists for the role (or the presented token's registration is gone)."""

    def __init__(self, role: Any):
        super().__init__(f"Role {role} is not registered", _role_details(role))
        self.role = role


class InvalidTTL(RoleKeeperException):
    """Requested expiry is not strictly in the future or exceeds the configured maximum."""

    def __init__(self, role: Any, reason: str, **extra: Any):
        super().__init__(f"Invalid TTL for role {role}: {reason}", _role_details(role, **extra))
        self.role = role
        self.reason = reason


class AlreadyGranted(RoleKeeperException):
    """Membership is already true."""

    def __init__(self, role: Any, account: str):
        super().__init__(f"{account} already holds role {role}", _role_details(role, account))
        self.role = role
        self.account = account


class NotGranted(RoleKeeperException):
    """Revoke requested for an account that was never granted."""

    def __init__(self, role: Any, account: str):
        super().__init__(f"{account} was never granted role {role}", _role_details(role, account))
        self.role = role
        self.account = account


class AlreadyRevoked(RoleKeeperException):
    """Membership is already false."""

    def __init__(self, role: Any, account: str):
        super().__init__(f"Role {role} is already revoked for {account}", _role_details(role, account))
        self.role = role
        self.account = account


class CapabilityConsumed(RoleKeeperException):
    """The presented capability object was destroyed or spent by remove()."""

    def __init__(self, role: Any, kind: str):
        super().__init__(
            f"{kind} capability for role {role} has been consumed",
            _role_details(role, kind=kind),
        )
        self.role = role
        self.kind = kind


class InvalidCapabilityToken(RoleKeeperException):
    """A serialized capability failed verification."""

    pass


class ConfigException(RoleKeeperException):
    """Exception for configuration errors.

    Raised when:
    - A required setting (e.g. the token signing secret) is missing
    - A configured path cannot be used
    """

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []
