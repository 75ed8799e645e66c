# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Capability tokens for role registries.

Implements OCAP-style authority over a registry:
- ManageCapability authorizes grant_role / revoke_role
- RemoveCapability authorizes remove
- Tokens are minted only by the registry at registration (or rebuilt from a
  verified JWT); direct construction raises TypeError
- Tokens are bound to the registration epoch, so tokens from a removed
  registry never authorize anything against a later one

Possession is the whole check: a token is never matched against the account
being granted, and it carries no reference to the stored record.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Any, ClassVar

import jwt

from .exceptions import CapabilityConsumed, InvalidCapabilityToken
from .roles import RoleKey

logger = logging.getLogger(__name__)

# Only holders of this object can mint tokens
_SEAL = object()


class _Capability:
    """Shared behaviour of the two capability kinds."""

    kind: ClassVar[str]

    __slots__ = ("_role", "_epoch", "_token_id", "_consumed")

    def __init__(self, role: RoleKey, epoch: str, token_id: str, *, _seal: object = None):
        if _seal is not _SEAL:
            raise TypeError(f"{type(self).__name__} can only be issued by a role registry")
        self._role = role
        self._epoch = epoch
        self._token_id = token_id
        self._consumed = False

    @property
    def role(self) -> RoleKey:
        return self._role

    @property
    def epoch(self) -> str:
        return self._epoch

    @property
    def token_id(self) -> str:
        return self._token_id

    @property
    def consumed(self) -> bool:
        return self._consumed

    def copy(self):
        """Return an independent copy carrying the same authority."""
        self._ensure_live()
        return type(self)(self._role, self._epoch, self._token_id, _seal=_SEAL)

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> Any:
        return self.copy()

    def __reduce__(self):
        raise TypeError(f"{type(self).__name__} cannot be pickled; use capability_to_jwt")

    def _consume(self) -> None:
        self._consumed = True

    def _ensure_live(self) -> None:
        if self._consumed:
            raise CapabilityConsumed(self._role, self.kind)

    def _identity(self) -> tuple:
        return (self.kind, self._role, self._epoch, self._token_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _Capability):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        state = " consumed" if self._consumed else ""
        return f"<{type(self).__name__} {self._role} epoch={self._epoch[:8]}{state}>"


class ManageCapability(_Capability):
    """Authority to grant and revoke membership of one role."""

    kind = "manage"
    __slots__ = ()


class RemoveCapability(_Capability):
    """Authority to delete one role's registry."""

    kind = "remove"
    __slots__ = ()


_KINDS: dict[str, type[_Capability]] = {
    ManageCapability.kind: ManageCapability,
    RemoveCapability.kind: RemoveCapability,
}


def issue_capabilities(role: RoleKey, epoch: str) -> tuple[ManageCapability, RemoveCapability]:
    """Mint the token pair for a fresh registration. Registry use only."""
    manage = ManageCapability(role, epoch, secrets.token_hex(16), _seal=_SEAL)
    remove = RemoveCapability(role, epoch, secrets.token_hex(16), _seal=_SEAL)
    return manage, remove


def consume(capability: _Capability) -> None:
    """Mark one token object as spent. Other copies are unaffected."""
    capability._consume()


def ensure_live(capability: _Capability) -> None:
    """Raise CapabilityConsumed if the token object has been spent."""
    capability._ensure_live()


# =============================================================================
# JWT TRANSPORT
# =============================================================================


def _sign(payload: dict[str, Any], secret: str, algorithm: str) -> str:
    try:
        return jwt.encode(payload, secret, algorithm=algorithm)
    except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
        raise InvalidCapabilityToken(
            f"Cannot sign capability tokens with algorithm {algorithm!r}: {e}",
            {"algorithm": algorithm},
        ) from e


def check_signing_key(secret: str, algorithm: str = "HS256") -> None:
    """Sign a throwaway payload so a bad secret/algorithm pair fails up front.

    Raises:
        InvalidCapabilityToken: If the pair cannot produce a token
    """
    _sign({"check": True}, secret, algorithm)


def capability_to_jwt(capability: _Capability, secret: str, algorithm: str = "HS256") -> str:
    """Serialize a capability to a signed JWT.

    Lets hosts hand a token to another process (the CLI stores nothing
    between invocations). Anyone holding the JWT and the secret holds the
    authority, exactly like holding the in-memory token.

    Args:
        capability: Live token to export
        secret: Signing secret (should be at least 32 bytes)
        algorithm: JWT signing algorithm (default HS256)

    Returns:
        Signed JWT string

    Raises:
        CapabilityConsumed: If this token object has been spent
        InvalidCapabilityToken: If the secret/algorithm pair cannot sign
    """
    capability._ensure_live()
    payload = {
        "jti": capability.token_id,
        "sub": capability.role.name,
        "owner": capability.role.owner,
        "kind": capability.kind,
        "epoch": capability.epoch,
        "iat": int(time.time()),
    }
    return _sign(payload, secret, algorithm)


def capability_from_jwt(token: str, secret: str, algorithm: str = "HS256") -> ManageCapability | RemoveCapability:
    """Verify a JWT and rebuild the capability it carries.

    Raises:
        InvalidCapabilityToken: If the signature or claims are invalid
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["jti", "sub", "owner", "kind", "epoch"]},
        )
    except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
        raise InvalidCapabilityToken(f"Invalid capability token: {e}") from e

    cls = _KINDS.get(payload["kind"])
    if cls is None:
        raise InvalidCapabilityToken(
            f"Unknown capability kind: {payload['kind']!r}",
            {"kind": payload["kind"]},
        )

    role = RoleKey(str(payload["sub"]), str(payload["owner"]))
    logger.debug(f"Imported {cls.kind} capability for {role}")
    return cls(role, str(payload["epoch"]), str(payload["jti"]), _seal=_SEAL)  # type: ignore[return-value]
