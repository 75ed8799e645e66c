# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Registry records and the keyed storage that holds them.

A RegistryRecord is an immutable snapshot. The registry never edits a stored
record in place: every mutation builds a new record and replaces the old one
with a single ``put``, so readers always see a whole record from before or
after a change.

Backends:
- InMemoryRegistryStore: process-local, for tests and embedded use
- JsonFileRegistryStore: single JSON document, rewritten atomically
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from .events import RoleEvent
from .roles import RoleKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryRecord:
    """Durable state of one registered role.

    Attributes:
        role: Key of the role this record belongs to
        epoch: Random identifier of this registration; tokens bind to it
        registered_at: Clock time of registration
        expiry: Absolute expiry timestamp, or None for never
        membership: account -> True (granted) / False (revoked); absent = never touched
        grant_log: GRANT_ROLE events, oldest first
        revoke_log: REVOKE_ROLE events, oldest first
    """

    role: RoleKey
    epoch: str
    registered_at: int
    expiry: int | None = None
    membership: Mapping[str, bool] = field(default_factory=dict)
    grant_log: tuple[RoleEvent, ...] = ()
    revoke_log: tuple[RoleEvent, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.membership, MappingProxyType):
            object.__setattr__(self, "membership", MappingProxyType(dict(self.membership)))
        object.__setattr__(self, "grant_log", tuple(self.grant_log))
        object.__setattr__(self, "revoke_log", tuple(self.revoke_log))

    def is_expired(self, now: int) -> bool:
        """True once ``now`` has reached the expiry."""
        return self.expiry is not None and not self.expiry > now

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.name,
            "owner": self.role.owner,
            "epoch": self.epoch,
            "registered_at": self.registered_at,
            "expiry": self.expiry,
            "membership": dict(self.membership),
            "grant_log": [e.to_dict() for e in self.grant_log],
            "revoke_log": [e.to_dict() for e in self.revoke_log],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RegistryRecord:
        expiry = data.get("expiry")
        return cls(
            role=RoleKey(data["role"], data["owner"]),
            epoch=data["epoch"],
            registered_at=int(data["registered_at"]),
            expiry=int(expiry) if expiry is not None else None,
            membership={str(k): bool(v) for k, v in data.get("membership", {}).items()},
            grant_log=tuple(RoleEvent.from_dict(e) for e in data.get("grant_log", [])),
            revoke_log=tuple(RoleEvent.from_dict(e) for e in data.get("revoke_log", [])),
        )


@runtime_checkable
class RegistryStore(Protocol):
    """Keyed storage for registry records. Each call must be atomic."""

    def get(self, key: RoleKey) -> RegistryRecord | None:
        ...

    def put(self, record: RegistryRecord) -> None:
        ...

    def delete(self, key: RoleKey) -> bool:
        ...

    def keys(self) -> list[RoleKey]:
        ...


class InMemoryRegistryStore:
    """In-memory registry store. Not persistent."""

    def __init__(self) -> None:
        self._records: dict[RoleKey, RegistryRecord] = {}
        self._lock = threading.Lock()

    def get(self, key: RoleKey) -> RegistryRecord | None:
        with self._lock:
            return self._records.get(key)

    def put(self, record: RegistryRecord) -> None:
        with self._lock:
            self._records[record.role] = record

    def delete(self, key: RoleKey) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def keys(self) -> list[RoleKey]:
        with self._lock:
            return list(self._records)


class JsonFileRegistryStore:
    """Registry store backed by one JSON file.

    The file nests records as ``{owner: {name: record}}``. Owner and name are
    kept as separate object keys, so any characters are allowed in either.
    Every write replaces the whole file through a temp file and
    ``os.replace`` so a crash never leaves a half-written document. The file
    is re-read on every call, which lets several short-lived processes
    (e.g. CLI invocations) share it.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _load(self) -> dict[str, dict[str, dict[str, Any]]]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
            raise ValueError(f"Registry file {self.path} is not an owner -> role name mapping")
        return data

    def _save(self, data: dict[str, dict[str, dict[str, Any]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote registries for {len(data)} owners to {self.path}")

    def get(self, key: RoleKey) -> RegistryRecord | None:
        with self._lock:
            raw = self._load().get(key.owner, {}).get(key.name)
        if raw is None:
            return None
        record = RegistryRecord.from_dict(raw)
        if record.role != key:
            raise ValueError(f"Registry file {self.path} holds {record.role!r} under {key!r}")
        return record

    def put(self, record: RegistryRecord) -> None:
        with self._lock:
            data = self._load()
            data.setdefault(record.role.owner, {})[record.role.name] = record.to_dict()
            self._save(data)

    def delete(self, key: RoleKey) -> bool:
        with self._lock:
            data = self._load()
            roles = data.get(key.owner, {})
            if roles.pop(key.name, None) is None:
                return False
            if not roles:
                del data[key.owner]
            self._save(data)
            return True

    def keys(self) -> list[RoleKey]:
        with self._lock:
            data = self._load()
        return [RoleKey(name, owner) for owner, roles in data.items() for name in roles]
