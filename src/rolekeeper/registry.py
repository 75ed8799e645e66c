# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Role registry - capability-gated, TTL-aware role membership.

Lifecycle of one role:
- register: the role's owner creates an empty registry and receives a
  ManageCapability and a RemoveCapability
- grant_role / revoke_role: holders of the ManageCapability toggle
  per-account membership (Unset -> Granted <-> Revoked)
- has_role / assert_has_role: anyone checks membership; an expired registry
  answers "no" for every account without its stored data changing
- remove: the holder of the RemoveCapability deletes the registry; the role
  can then be registered again with fresh tokens

Mutations on one role are serialized by a per-role lock. Readers take no
lock; they read the current immutable record from the store.
"""

from __future__ import annotations

import logging
import secrets
import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from .capabilities import (
    ManageCapability,
    RemoveCapability,
    consume,
    ensure_live,
    issue_capabilities,
)
from .clock import Clock, SystemClock
from .config import RoleKeeperSettings, get_config
from .events import EventSink, RoleEvent, RoleEventKind, as_sink
from .exceptions import (
    AccessDenied,
    AddressMismatch,
    AlreadyGranted,
    AlreadyRegistered,
    AlreadyRevoked,
    InvalidTTL,
    NotGranted,
    NotRegistered,
    RoleExpired,
)
from .roles import RoleKey, RoleLike, role_key
from .store import InMemoryRegistryStore, RegistryRecord, RegistryStore

logger = logging.getLogger(__name__)


class RoleRegistry:
    """Registry of registries, one record per role key.

    Args:
        store: Durable keyed storage (in-memory if None)
        clock: Time source for expiry checks (wall clock if None)
        sinks: Event sinks or plain callables notified of grants and revokes
        settings: Configuration (global settings if None)
    """

    def __init__(
        self,
        store: RegistryStore | None = None,
        clock: Clock | None = None,
        sinks: Iterable[EventSink | Callable[[RoleEvent], Any]] | None = None,
        settings: RoleKeeperSettings | None = None,
    ) -> None:
        self.store = store if store is not None else InMemoryRegistryStore()
        self.clock = clock or SystemClock()
        self.sinks: list[EventSink] = [as_sink(s) for s in sinks or ()]
        self.settings = settings or get_config()
        self._locks: dict[RoleKey, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: RoleKey) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def add_sink(self, sink: EventSink | Callable[[RoleEvent], Any]) -> None:
        self.sinks.append(as_sink(sink))

    # -------------------------------------------------------------------------
    # LIFECYCLE
    # -------------------------------------------------------------------------

    def register(
        self,
        role: RoleLike,
        caller: str,
        ttl: int = 0,
        *,
        expires_at: int | None = None,
    ) -> tuple[ManageCapability, RemoveCapability]:
        """Create the registry for a role and issue its capabilities.

        Args:
            role: Role tag or key
            caller: Account performing the registration; must be the role's owner
            ttl: Lifetime in seconds from now; 0 means the role never expires
            expires_at: Absolute expiry timestamp, as an alternative to ``ttl``

        Returns:
            (ManageCapability, RemoveCapability) bound to this registration

        Raises:
            AddressMismatch: caller is not the role's owner
            AlreadyRegistered: the role already has a registry
            InvalidTTL: negative ttl, ttl above ``max_ttl_seconds``, or
                an expiry that is not strictly in the future
        """
        key = role_key(role)
        if ttl and expires_at is not None:
            raise ValueError("Pass either ttl or expires_at, not both")

        if caller != key.owner:
            raise AddressMismatch(key, caller, key.owner)

        with self._lock_for(key):
            if self.store.get(key) is not None:
                raise AlreadyRegistered(key)

            now = self.clock.now()
            expiry = self._resolve_expiry(key, now, ttl, expires_at)

            epoch = secrets.token_hex(16)
            self.store.put(RegistryRecord(role=key, epoch=epoch, registered_at=now, expiry=expiry))

        logger.info(
            f"Registered role {key} (expiry={expiry if expiry is not None else 'never'})",
            extra={"extra_data": {"role": str(key), "expiry": expiry}},
        )
        return issue_capabilities(key, epoch)

    def _resolve_expiry(self, key: RoleKey, now: int, ttl: int, expires_at: int | None) -> int | None:
        if expires_at is not None:
            if not expires_at > now:
                raise InvalidTTL(key, "expiry must be in the future", expires_at=expires_at, now=now)
            return expires_at

        if ttl < 0:
            raise InvalidTTL(key, "ttl must not be negative", ttl=ttl)
        if ttl == 0:
            return None

        max_ttl = self.settings.max_ttl_seconds
        if max_ttl and ttl > max_ttl:
            raise InvalidTTL(key, f"ttl exceeds maximum of {max_ttl}s", ttl=ttl, max_ttl=max_ttl)

        expiry = now + ttl
        if not expiry > now:
            raise InvalidTTL(key, "expiry must be in the future", ttl=ttl, now=now)
        return expiry

    def remove(self, capability: RemoveCapability) -> None:
        """Delete a role's registry, its membership and its event logs.

        Raises:
            NotRegistered: no registry exists for the token's registration
            CapabilityConsumed: this token object was already spent
        """
        if not isinstance(capability, RemoveCapability):
            raise TypeError("remove requires a RemoveCapability")
        ensure_live(capability)
        key = capability.role

        with self._lock_for(key):
            self._live_record(key, capability.epoch)
            self.store.delete(key)
            consume(capability)

        logger.info(f"Removed role {key}", extra={"extra_data": {"role": str(key)}})

    def destroy_manage_cap(self, capability: ManageCapability) -> None:
        """Permanently give up this copy of the grant/revoke authority."""
        if not isinstance(capability, ManageCapability):
            raise TypeError("destroy_manage_cap requires a ManageCapability")
        consume(capability)
        logger.debug(f"Destroyed manage capability for {capability.role}")

    def destroy_remove_cap(self, capability: RemoveCapability) -> None:
        """Permanently give up this copy of the remove authority."""
        if not isinstance(capability, RemoveCapability):
            raise TypeError("destroy_remove_cap requires a RemoveCapability")
        consume(capability)
        logger.debug(f"Destroyed remove capability for {capability.role}")

    def _live_record(self, key: RoleKey, epoch: str) -> RegistryRecord:
        record = self.store.get(key)
        if record is None or record.epoch != epoch:
            raise NotRegistered(key)
        return record

    # -------------------------------------------------------------------------
    # MEMBERSHIP
    # -------------------------------------------------------------------------

    def grant_role(self, capability: ManageCapability, account: str) -> RoleEvent:
        """Grant the capability's role to ``account``.

        Raises:
            NotRegistered, RoleExpired, AlreadyGranted, CapabilityConsumed
        """
        return self._set_membership(capability, account, grant=True)

    def revoke_role(self, capability: ManageCapability, account: str) -> RoleEvent:
        """Revoke the capability's role from ``account``.

        Raises:
            NotRegistered, RoleExpired, NotGranted, AlreadyRevoked, CapabilityConsumed
        """
        return self._set_membership(capability, account, grant=False)

    def _set_membership(self, capability: ManageCapability, account: str, grant: bool) -> RoleEvent:
        if not isinstance(capability, ManageCapability):
            raise TypeError("grant_role and revoke_role require a ManageCapability")
        ensure_live(capability)
        key = capability.role

        with self._lock_for(key):
            record = self._live_record(key, capability.epoch)
            now = self.clock.now()
            if record.is_expired(now):
                raise RoleExpired(key, record.expiry, now)

            current = record.membership.get(account)
            if current is None and not grant:
                raise NotGranted(key, account)
            if current is True and grant:
                raise AlreadyGranted(key, account)
            if current is False and not grant:
                raise AlreadyRevoked(key, account)

            membership = dict(record.membership)
            membership[account] = grant
            if grant:
                event = RoleEvent(RoleEventKind.GRANT_ROLE, key, account, now)
                record = replace(record, membership=membership, grant_log=record.grant_log + (event,))
            else:
                event = RoleEvent(RoleEventKind.REVOKE_ROLE, key, account, now)
                record = replace(record, membership=membership, revoke_log=record.revoke_log + (event,))
            self.store.put(record)

        logger.info(
            f"{'Granted' if grant else 'Revoked'} role {key} {'to' if grant else 'from'} {account}",
            extra={"extra_data": event.to_dict()},
        )
        self._publish(event)
        return event

    def _publish(self, event: RoleEvent) -> None:
        # The mutation is already committed; a sink cannot undo it
        for sink in self.sinks:
            try:
                sink.publish(event)
            except Exception:
                logger.exception(f"Event sink {sink!r} failed for event {event.event_id}")

    # -------------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------------

    def _check(self, key: RoleKey, account: str) -> Exception | None:
        """Shared predicate behind has_role and assert_has_role."""
        record = self.store.get(key)
        if record is None:
            return NotRegistered(key)
        now = self.clock.now()
        if record.is_expired(now):
            return RoleExpired(key, record.expiry, now)
        if record.membership.get(account) is not True:
            return AccessDenied(key, account)
        return None

    def assert_has_role(self, role: RoleLike, account: str) -> None:
        """Raise unless ``account`` currently holds ``role``.

        Raises:
            NotRegistered: the role has no registry
            RoleExpired: the registry has expired
            AccessDenied: the account is not granted
        """
        error = self._check(role_key(role), account)
        if error is not None:
            logger.debug(f"Role check failed: {error}")
            raise error

    def has_role(self, role: RoleLike, account: str) -> bool:
        """True only if the role is registered, alive and granted to ``account``."""
        return self._check(role_key(role), account) is None

    def is_role_registered(self, role: RoleLike) -> bool:
        """True if a registry exists, expired or not."""
        return self.store.get(role_key(role)) is not None

    def is_role_alive(self, role: RoleLike) -> bool:
        """True if a registry exists and has not expired."""
        record = self.store.get(role_key(role))
        return record is not None and not record.is_expired(self.clock.now())

    def get_expiry(self, role: RoleLike) -> int | None:
        """Absolute expiry of the role's registry, or None if it never expires."""
        key = role_key(role)
        record = self.store.get(key)
        if record is None:
            raise NotRegistered(key)
        return record.expiry

    def members(self, role: RoleLike) -> list[str]:
        """Accounts currently holding the role, sorted. Empty if absent or expired."""
        record = self.store.get(role_key(role))
        if record is None or record.is_expired(self.clock.now()):
            return []
        return sorted(account for account, granted in record.membership.items() if granted)

    def snapshot(self, role: RoleLike) -> RegistryRecord | None:
        """The stored record as of now, or None."""
        return self.store.get(role_key(role))


# Module-level singleton for convenience
_default_registry: RoleRegistry | None = None
_default_registry_lock = threading.Lock()


def get_role_registry() -> RoleRegistry:
    """Get the default role registry, creating it on first use."""
    global _default_registry
    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                _default_registry = RoleRegistry()
    return _default_registry


def set_role_registry(registry: RoleRegistry | None) -> None:
    """Replace the default role registry (None resets it)."""
    global _default_registry
    with _default_registry_lock:
        _default_registry = registry
